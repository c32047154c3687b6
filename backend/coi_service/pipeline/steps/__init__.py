"""Per-line-of-business pipeline steps."""
