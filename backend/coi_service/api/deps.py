"""Shared dependencies for API routes."""

from __future__ import annotations

from typing import Any

from fastapi import Depends

from coi_service.db.session import get_db
from coi_service.pipeline.engine import PipelineEngine


async def get_engine(db: Any = Depends(get_db)) -> PipelineEngine:
    """A PipelineEngine bound to the service database."""
    return PipelineEngine(db)
