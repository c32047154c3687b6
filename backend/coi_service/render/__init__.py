"""Certificate renderers (ACORD 25 form fill, HTML → PDF)."""
