"""Extract phase: policy-head query and raw policy data."""
