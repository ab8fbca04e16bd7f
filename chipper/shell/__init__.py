"""Host-side services that need no window."""
