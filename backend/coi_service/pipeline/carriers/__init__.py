"""
COI config registry — one entry per (LOB, geography, carrier partner).

Each geography gets a module (us.py, ca.py) defining its carriers'
configs.  To add a carrier:
    1. Add its forms descriptor / templates under coi_service/templates/
    2. Append a COIConfig to the geography module
    3. The ConfigResolver picks it up automatically

Until a carrier has its own entry, requests for it fall back to any
entry with the same (lob, geography).
"""

from coi_service.pipeline.carriers.ca import CA_CONFIGS
from coi_service.pipeline.carriers.us import US_CONFIGS

COI_CONFIGS = [*US_CONFIGS, *CA_CONFIGS]

__all__ = ["COI_CONFIGS", "CA_CONFIGS", "US_CONFIGS"]
