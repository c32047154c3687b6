"""
COI pipeline — policy extraction, canonical transform, field mapping
and per-line-of-business rendering/delivery.

    extract/     policy-head query + raw policy data
    transform/   Canada and US canonical transforms
    map/         config-driven field mapping
    steps/       per-LOB pipeline steps
    carriers/    COI config registry
    engine.py    orchestrator (extract once, settle-all per LOB)
"""
