"""Service browsers (key-value store and logs)."""
