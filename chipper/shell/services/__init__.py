"""Loading and describing program images."""
