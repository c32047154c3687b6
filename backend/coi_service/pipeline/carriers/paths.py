"""Resolve template and asset paths against the configured directories."""

from __future__ import annotations

import os

from coi_service.core.config import settings


def template(*parts: str) -> str:
    return os.path.join(settings.TEMPLATES_DIR, *parts)


def asset(*parts: str) -> str:
    return os.path.join(settings.ASSETS_DIR, *parts)
