"""
COI endpoints — trigger certificate generation for a policy.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from coi_service.api.deps import get_engine
from coi_service.api.schemas.coi import COIErrorResponse, COISendResponse, LobResultResponse
from coi_service.core.logging import get_logger
from coi_service.pipeline.engine import PipelineEngine
from coi_service.pipeline.errors import COIError, NotFoundError
from coi_service.schemas.common import COIRequested

logger = get_logger(__name__)

router = APIRouter(prefix="/coi", tags=["COI"])


@router.post(
    "/send",
    response_model=COISendResponse,
    responses={404: {"model": COIErrorResponse}, 500: {"model": COIErrorResponse}},
)
async def send_coi(event: COIRequested, engine: PipelineEngine = Depends(get_engine)):
    """
    Generate and email every certificate of the policy.

    Per-LOB failures are reported in the body with a 200; only
    policy-level errors change the status code.
    """
    try:
        batch = await engine.run(event)
    except NotFoundError as exc:
        return _error_response(404, exc)
    except COIError as exc:
        logger.error(
            "COI request aborted",
            policy_foxden_id=event.policy_foxden_id,
            error_type=exc.error_type,
            error=str(exc),
        )
        return _error_response(500, exc)

    return COISendResponse(
        policy_foxden_id=batch.policy_foxden_id,
        geography=batch.geography,
        status=batch.status,
        lobs=batch.lobs,
        succeeded=batch.succeeded,
        failed=batch.failed,
        results=[
            LobResultResponse(
                lob=r.lob,
                status=r.status,
                error=r.error,
                error_type=r.error_type,
                duration_ms=r.duration_ms,
            )
            for r in batch.results
        ],
    )


def _error_response(status_code: int, exc: COIError) -> JSONResponse:
    body = COIErrorResponse(
        detail=str(exc),
        error_type=exc.error_type,
        policy_foxden_id=exc.policy_foxden_id,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())
