"""COI request/response schemas."""

from __future__ import annotations

from pydantic import BaseModel


class LobResultResponse(BaseModel):
    """Outcome of one line of business."""

    lob: str
    status: str
    error: str | None = None
    error_type: str | None = None
    duration_ms: int = 0


class COISendResponse(BaseModel):
    """Tally returned by POST /coi/send."""

    policy_foxden_id: str
    geography: str
    status: str
    lobs: list[str]
    succeeded: int
    failed: int
    results: list[LobResultResponse]


class COIErrorResponse(BaseModel):
    detail: str
    error_type: str
    policy_foxden_id: str | None = None
