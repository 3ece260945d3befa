"""SQL generation."""
