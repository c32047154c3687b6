#!/usr/bin/env python3
"""
Run the COI pipeline locally against the configured MongoDB.

The request is read from TEST_* environment variables (or .env):

    TEST_POLICY_FOXDEN_ID     policy identifier (required)
    TEST_GEOGRAPHY            US | CA (default CA)
    TEST_ADDITIONAL_INSURED   JSON {"name": ..., "address": {...}} (optional)

Usage:
    cd backend
    python -m scripts.send_coi
"""

import asyncio
import json
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

DEFAULT_ADDITIONAL_INSURED = {
    "name": "Sample Holder Inc.",
    "address": {
        "street": "100 King St W",
        "city": "Toronto",
        "province": "ON",
        "postalCode": "M5X 1A9",
    },
}


def _build_event():
    from coi_service.schemas.common import COIRequested

    policy_foxden_id = os.environ.get("TEST_POLICY_FOXDEN_ID")
    if not policy_foxden_id:
        sys.exit("TEST_POLICY_FOXDEN_ID is not set")

    additional_insured = os.environ.get("TEST_ADDITIONAL_INSURED")
    return COIRequested.model_validate({
        "policyFoxdenId": policy_foxden_id,
        "geography": os.environ.get("TEST_GEOGRAPHY", "CA"),
        "additionalInsured": json.loads(additional_insured) if additional_insured else DEFAULT_ADDITIONAL_INSURED,
    })


def _print_result(batch):
    """Pretty-print a COIBatchResult."""
    print(f"\n{'─' * 50}")
    print(f"  Policy       : {batch.policy_foxden_id} ({batch.geography})")
    print(f"  Status       : {batch.status}")
    print(f"  LOBs         : {', '.join(batch.lobs) or '-'}")
    print(f"  Succeeded    : {batch.succeeded}/{len(batch.results)}")

    for result in batch.results:
        icon = "✓" if result.status == "COMPLETED" else "✗"
        print(f"\n  {icon} {result.lob} ({result.duration_ms}ms)")
        for sr in result.step_results:
            step_icon = "✓" if sr["status"] == "COMPLETED" else "✗"
            print(f"    {step_icon} {sr['step_name']} ({sr['duration_ms']}ms)")
            if sr.get("error"):
                print(f"        error: {sr['error']}")
    print(f"{'─' * 50}\n")


async def main():
    from coi_service.core.config import settings
    from coi_service.core.logging import setup_logging
    from coi_service.db.session import close_client, get_database
    from coi_service.pipeline.engine import PipelineEngine

    setup_logging(settings.LOG_LEVEL)
    event = _build_event()

    try:
        batch = await PipelineEngine(get_database()).run(event)
    finally:
        await close_client()

    _print_result(batch)


if __name__ == "__main__":
    asyncio.run(main())
