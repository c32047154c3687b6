"""
Domain-specific exception hierarchy for COI generation.

All exceptions inherit from COIError so callers can catch broadly or
narrowly as needed.  Each exception carries structured context
(policy id, line of business, details) for logging/debugging.

    NotFoundError              — lookup found nothing; caller may skip
    SchemaDriftError           — joined record version changed; never retry
    ConsistencyViolationError  — "should never happen" data corruption
    ConfigNotFoundError        — no template/mapping for a combination
"""

from __future__ import annotations


class COIError(Exception):
    """Base exception for all COI errors."""

    error_type = "coi_error"

    def __init__(
        self,
        message: str,
        *,
        policy_foxden_id: str | None = None,
        lob: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.policy_foxden_id = policy_foxden_id
        self.lob = lob
        self.details = details or {}
        super().__init__(message)


class NotFoundError(COIError):
    """A policy, sub-policy or config lookup found nothing."""

    error_type = "not_found"


class PolicyNotFoundError(NotFoundError):
    """No active policy exists for the identifier."""
    pass


class SubPolicyNotFoundError(NotFoundError):
    """The policy has no sub-policy for the requested line of business."""
    pass


class SchemaDriftError(COIError):
    """A joined record's schema version differs from the supported one."""

    error_type = "schema_drift"

    def __init__(
        self,
        message: str,
        *,
        record: str,
        expected: int,
        actual: object,
        **kwargs,
    ) -> None:
        self.record = record
        self.expected = expected
        self.actual = actual
        super().__init__(message, **kwargs)


class ConsistencyViolationError(COIError):
    """The database broke an invariant it is expected to guarantee."""

    error_type = "consistency_violation"


class ConfigNotFoundError(COIError):
    """No COI config for (lob, geography, carrier partner)."""

    error_type = "config_not_found"


class RenderError(COIError):
    """Rendering the certificate PDF failed."""

    error_type = "render_error"


class DeliveryError(COIError):
    """Sending the certificate email failed."""

    error_type = "delivery_error"


class StepExecutionError(COIError):
    """A pipeline step failed for a reason outside the taxonomy above."""

    error_type = "step_failed"

    def __init__(self, message: str, *, step_name: str | None = None, **kwargs) -> None:
        self.step_name = step_name
        super().__init__(message, **kwargs)
