"""
HTML renderer — Jinja2 certificate templates.

Templates receive the mapped fields as top-level variables and three
filters:

    {{ coverages.gl.each_occurrence.amount | format_currency }}
    {{ effectiveDate | format_date }}          (uses the `timeZone` variable)
    {{ namedInsured.address.province | to_long_province_name }}
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Any

from jinja2 import (
    Environment,
    FileSystemLoader,
    StrictUndefined,
    TemplateError,
    pass_context,
    select_autoescape,
)

from coi_service.core.config import settings
from coi_service.pipeline.errors import RenderError
from coi_service.render.helpers import format_currency, format_date, to_long_province_name


@pass_context
def _format_date_filter(context, value: Any) -> str:
    return format_date(value, context.get("timeZone") or settings.DEFAULT_TIME_ZONE)


@lru_cache(maxsize=8)
def get_environment(directory: str) -> Environment:
    env = Environment(
        loader=FileSystemLoader(directory),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        undefined=StrictUndefined,
        enable_async=True,
    )
    env.filters["format_currency"] = format_currency
    env.filters["format_date"] = _format_date_filter
    env.filters["to_long_province_name"] = to_long_province_name
    return env


async def render_html(template_path: str, fields: dict[str, Any]) -> str:
    """
    Render `template_path` with `fields`.

    Raises:
        RenderError: Template missing or failing to render.
    """
    if not os.path.exists(template_path):
        raise RenderError(f"HTML template not found: {template_path}")

    env = get_environment(os.path.dirname(template_path))
    try:
        template = env.get_template(os.path.basename(template_path))
        return await template.render_async(**fields)
    except (TemplateError, ValueError) as exc:
        raise RenderError(f"HTML template render failed: {exc}") from exc
