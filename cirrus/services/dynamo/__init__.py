"""Key-value store browser."""
