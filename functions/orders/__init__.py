"""Order event publishing."""
