"""HTML → PDF through the Browserless `/pdf` endpoint (httpx)."""

from __future__ import annotations

import httpx

from coi_service.core.config import settings
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import RenderError

logger = get_logger(__name__)

PDF_OPTIONS = {
    "format": "A4",
    "printBackground": True,
    "margin": {"top": "0.5in", "bottom": "0.5in"},
}


async def html_to_pdf(
    html: str,
    *,
    token: str | None = None,
    url: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> bytes:
    """
    POST `html` to Browserless and return the PDF bytes.

    Args:
        html: Rendered certificate markup.
        token: API token; defaults to BROWSERLESS_API_TOKEN.
        url: Endpoint; defaults to BROWSERLESS_URL.
        client: Optional shared client (tests pass a mock transport).

    Raises:
        RenderError: Missing token, transport error or non-2xx response.
    """
    token = token if token is not None else settings.BROWSERLESS_API_TOKEN
    if not token:
        raise RenderError("BROWSERLESS_API_TOKEN is required for HTML certificates")

    payload = {"html": html, "options": PDF_OPTIONS}
    endpoint = url or settings.BROWSERLESS_URL

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=settings.BROWSERLESS_TIMEOUT)

    try:
        response = await client.post(endpoint, params={"token": token}, json=payload)
    except httpx.HTTPError as exc:
        raise RenderError(f"Browserless request failed: {exc}") from exc
    finally:
        if owns_client:
            await client.aclose()

    if response.is_error:
        raise RenderError(
            f"Browserless PDF failed [{response.status_code}]: {response.text}",
            details={"status_code": response.status_code},
        )

    logger.debug("Browserless PDF rendered", bytes=len(response.content))
    return response.content
