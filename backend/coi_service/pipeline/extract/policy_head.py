"""
Policy-head query — one consistent, joined view of an active policy.

Aggregation, anchored on the ActivePolicy for a policyFoxdenId:

    ActivePolicy → Policy → ApplicationAnswers? → PolicyQuote → Quote?
                 → ApplicationOwner? → Application?

(? = left join, the row survives without a match.)  Root policies carry
their own application-answers snapshot, which replaces the joined one.

The result is validated against the schema versions this service
understands; drift is raised as SchemaDriftError, never as "not found",
so operators can tell a changed data model from a missing record.
"""

from __future__ import annotations

from typing import Any

from pydantic import ValidationError

from coi_service.core.constants import (
    APPLICATION_ANSWERS_VERSION,
    POLICY_VERSION,
    QUOTE_VERSION,
    ROOT_POLICY_KIND,
    Collection,
)
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import ConsistencyViolationError, SchemaDriftError
from coi_service.schemas.policy import PolicyView

logger = get_logger(__name__)

# record name → supported schema version
EXPECTED_VERSIONS: dict[str, int] = {
    "applicationAnswers": APPLICATION_ANSWERS_VERSION,
    "policy": POLICY_VERSION,
    "quote": QUOTE_VERSION,
}


def _lookup(from_: str, local_field: str, foreign_field: str, as_: str) -> dict:
    return {
        "$lookup": {
            "from": str(from_),
            "localField": local_field,
            "foreignField": foreign_field,
            "as": as_,
        }
    }


def _unwind(path: str, optional: bool = False) -> dict:
    stage: dict[str, Any] = {"path": f"${path}"}
    if optional:
        stage["preserveNullAndEmptyArrays"] = True
    return {"$unwind": stage}


def build_policy_head_pipeline(policy_foxden_id: str) -> list[dict[str, Any]]:
    """Aggregation stages run against the ActivePolicy collection."""
    return [
        {"$match": {"data.policyFoxdenId": policy_foxden_id}},
        {"$project": {"activePolicy": "$$ROOT"}},
        _lookup(Collection.POLICY, "activePolicy.data.policyObjectId", "_id", "policy"),
        _unwind("policy"),
        _lookup(
            Collection.APPLICATION_ANSWERS,
            "policy._id",
            "data.endorsementPolicyObjectId",
            "applicationAnswers",
        ),
        _unwind("applicationAnswers", optional=True),
        _lookup(Collection.POLICY_QUOTE, "policy._id", "data.policyObjectId", "policyQuote"),
        _unwind("policyQuote"),
        _lookup(Collection.QUOTE, "policyQuote.data.quoteObjectId", "_id", "quote"),
        _unwind("quote", optional=True),
        {
            "$project": {
                "applicationAnswers": {
                    "$cond": {
                        "if": {"$ne": ["$policy.data.kind", ROOT_POLICY_KIND]},
                        "then": "$applicationAnswers",
                        "else": "$policy.data.applicationAnswers",
                    }
                },
                "quote": 1,
                "policy": 1,
            }
        },
        _lookup(
            Collection.APPLICATION_OWNER,
            "applicationAnswers.data.applicationId",
            "data.applicationId",
            "applicationOwner",
        ),
        _unwind("applicationOwner", optional=True),
        _lookup(
            Collection.APPLICATION,
            "applicationAnswers.data.applicationId",
            "_id",
            "application",
        ),
        _unwind("application", optional=True),
    ]


async def find_policy_head(db: Any, policy_foxden_id: str) -> PolicyView | None:
    """
    Return the joined policy view, or None when no active policy exists.

    Args:
        db: Async MongoDB database handle.
        policy_foxden_id: Policy identifier.

    Raises:
        ConsistencyViolationError: More than one active policy matched, or a
            record needed for validation is missing.
        SchemaDriftError: A record's version is not the supported one.
    """
    pipeline = build_policy_head_pipeline(policy_foxden_id)
    logger.debug("Running policy-head aggregation", policy_foxden_id=policy_foxden_id)

    cursor = await db[Collection.ACTIVE_POLICY.value].aggregate(pipeline)
    try:
        row = await anext(cursor, None)
        if row is None:
            return None

        if await anext(cursor, None) is not None:
            logger.error(
                "Multiple active policies for one identifier",
                policy_foxden_id=policy_foxden_id,
            )
            raise ConsistencyViolationError(
                "Inconsistent database: multiple active policies",
                policy_foxden_id=policy_foxden_id,
            )

        _validate_versions(row, policy_foxden_id)

        try:
            return PolicyView.model_validate(row)
        except ValidationError as exc:
            raise ConsistencyViolationError(
                f"Policy head has an unexpected shape: {exc}",
                policy_foxden_id=policy_foxden_id,
            ) from exc
    finally:
        await cursor.close()


def _validate_versions(row: dict[str, Any], policy_foxden_id: str) -> None:
    for record, expected in EXPECTED_VERSIONS.items():
        document = row.get(record)
        if not isinstance(document, dict):
            raise ConsistencyViolationError(
                f"Policy head is missing {record}",
                policy_foxden_id=policy_foxden_id,
                details={"record": record},
            )

        actual = document.get("version")
        if actual != expected:
            logger.error(
                "Schema version changed",
                record=record,
                expected=expected,
                actual=actual,
                policy_foxden_id=policy_foxden_id,
            )
            raise SchemaDriftError(
                f"{record} data version changed: expected {expected}, got {actual}",
                record=record,
                expected=expected,
                actual=actual,
                policy_foxden_id=policy_foxden_id,
            )
