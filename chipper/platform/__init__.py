"""pygame host: window, keyboard and buzzer."""
