"""Certificate delivery."""
