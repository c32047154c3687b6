"""Map phase: Canonical → renderer input fields."""
