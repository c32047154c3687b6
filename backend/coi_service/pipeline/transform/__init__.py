"""Transform phase: raw policy data → Canonical."""
