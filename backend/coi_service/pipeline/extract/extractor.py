"""
Extract phase — policy head → geography-tagged RawPolicyData.

Runs once per request; every line of business generated for the
policy shares the result.

LOB discovery:
    - US policies list their sub-policies in policy.data.policies,
      e.g. [{"kind": "GL", "policyId": "..."}, {"kind": "EO", ...}]
    - Canada policies have an empty list; one combined certificate
      ("GL") covers all coverages
    - A US policy with an empty list has nothing to generate
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ValidationError

from coi_service.core.config import settings
from coi_service.core.constants import (
    CANADA_DEFAULT_LOB,
    CANADA_RATING_KIND,
    ORIGINAL_QUOTE_KIND,
    AnswerKey,
    Geography,
)
from coi_service.core.logging import get_logger
from coi_service.pipeline.errors import ConsistencyViolationError, PolicyNotFoundError
from coi_service.pipeline.extract.policy_head import find_policy_head
from coi_service.schemas.common import COIRequested
from coi_service.schemas.policy import CanadaPolicyData, PolicyView, SubPolicy, USPolicyData

logger = get_logger(__name__)


async def extract(db: Any, event: COIRequested) -> CanadaPolicyData | USPolicyData:
    """
    Build the raw policy data for a COI request.

    Raises:
        PolicyNotFoundError: No active policy for the identifier.
        SchemaDriftError / ConsistencyViolationError: From the policy-head query,
            or when a record the service relies on is missing.
    """
    policy_foxden_id = event.policy_foxden_id
    log = logger.bind(policy_foxden_id=policy_foxden_id, geography=event.geography)
    log.debug("Starting policy lookup")

    view = await find_policy_head(db, policy_foxden_id)
    if view is None:
        raise PolicyNotFoundError(
            f"Policy not found: policyFoxdenId={policy_foxden_id}",
            policy_foxden_id=policy_foxden_id,
        )

    if view.application_answers is None or view.application_owner is None:
        raise ConsistencyViolationError(
            "Policy head is missing application answers or owner",
            policy_foxden_id=policy_foxden_id,
        )

    answers_data = view.application_answers.data
    answers: dict[str, Any] = answers_data.get("answers") or {}
    policy_data = view.policy.data

    sub_policies = _sub_policies(policy_data, policy_foxden_id)
    lobs = _discover_lobs(sub_policies, event.geography)

    carrier_partner = policy_data.get("carrierPartner") or settings.DEFAULT_CARRIER_PARTNER
    log.debug("Discovered LOBs", lobs=lobs, carrier_partner=carrier_partner)

    dba_name = answers.get(AnswerKey.DBA_NAME)
    common = {
        "policy_foxden_id": policy_foxden_id,
        "additional_insured": event.additional_insured,
        "lobs": lobs,
        "carrier_partner": carrier_partner,
        "time_zone": answers_data.get("timeZone") or settings.DEFAULT_TIME_ZONE,
        "recipient_email": view.application_owner.data.get("authenticatedEmail"),
        "application_id": answers_data.get("applicationId"),
        "business_name": answers.get(AnswerKey.COMPANY_NAME),
        "dba_name": dba_name if isinstance(dba_name, str) and dba_name.strip() else None,
        "sub_policies": sub_policies,
    }

    quote = view.quote.data if view.quote else {}
    rating = quote.get("rating") or {}
    is_canada_rating = rating.get("kind") == CANADA_RATING_KIND
    rating_input = rating.get("input") if quote.get("kind") == ORIGINAL_QUOTE_KIND else None

    try:
        if event.geography == Geography.CA:
            if not is_canada_rating:
                log.warning("Geography is CA but rating kind is not Canada", rating_kind=rating.get("kind"))
            return _canada_data(common, answers, policy_data, rating_input)

        if is_canada_rating:
            log.warning("Geography is US but rating kind is Canada", rating_kind=rating.get("kind"))
        return _us_data(common, answers, rating_input)

    except ValidationError as exc:
        raise ConsistencyViolationError(
            f"Policy data has an unexpected shape: {exc}",
            policy_foxden_id=policy_foxden_id,
        ) from exc


def _sub_policies(policy_data: dict[str, Any], policy_foxden_id: str) -> tuple[SubPolicy, ...]:
    try:
        return tuple(SubPolicy.model_validate(p) for p in policy_data.get("policies") or [])
    except ValidationError as exc:
        raise ConsistencyViolationError(
            f"Malformed sub-policy list: {exc}",
            policy_foxden_id=policy_foxden_id,
        ) from exc


def _discover_lobs(sub_policies: tuple[SubPolicy, ...], geography: str) -> tuple[str, ...]:
    if sub_policies:
        return tuple(dict.fromkeys(p.kind for p in sub_policies))
    if geography == Geography.CA:
        return (CANADA_DEFAULT_LOB,)
    return ()


def _canada_data(
    common: dict[str, Any],
    answers: dict[str, Any],
    policy_data: dict[str, Any],
    rating_input: Any,
) -> CanadaPolicyData:
    # Prefer the pre-resolved display labels over raw profession codes
    labels = answers.get(AnswerKey.PROFESSION_LABEL_LIST)
    profession = labels if isinstance(labels, list) and labels else answers.get(AnswerKey.PROFESSION)

    coverage = policy_data.get("coverage") or {}

    return CanadaPolicyData(
        **common,
        named_insured_address=answers.get(AnswerKey.MAILING_ADDRESS),
        profession=profession,
        effective_date=_to_datetime(coverage.get("effectiveDate")),
        expiry_date=_to_datetime(coverage.get("expiryDate")),
        rating_input=rating_input,
    )


def _us_data(common: dict[str, Any], answers: dict[str, Any], rating_input: Any) -> USPolicyData:
    labels = answers.get(AnswerKey.PROFESSION_LABEL_LIST)

    return USPolicyData(
        **common,
        business_address=answers.get(AnswerKey.BUSINESS_ADDRESS),
        profession_list=tuple(labels) if isinstance(labels, list) else (),
        rating_input=rating_input,
    )


def _to_datetime(value: Any) -> datetime | None:
    """Mongo returns datetimes; older documents hold ISO strings."""
    if value is None or isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
