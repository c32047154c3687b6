"""Certificate-of-Insurance generation service."""
