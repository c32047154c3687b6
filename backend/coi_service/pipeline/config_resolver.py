"""
ConfigResolver — maps (lob, geography, carrier partner) to a COIConfig.

Lookup order:
    1. Exact match on all three keys
    2. Any entry matching (lob, geography), ignoring the carrier

The fallback lets a new carrier reuse the geography-level template
until a carrier-specific entry is registered in pipeline/carriers/.
"""

from __future__ import annotations

from collections.abc import Sequence

from coi_service.core.logging import get_logger
from coi_service.pipeline.carriers import COI_CONFIGS
from coi_service.pipeline.errors import ConfigNotFoundError
from coi_service.schemas.coi_config import COIConfig

logger = get_logger(__name__)


class ConfigResolver:
    """Resolves COI configs from a registry (defaults to COI_CONFIGS)."""

    def __init__(self, registry: Sequence[COIConfig] | None = None) -> None:
        self.registry = list(registry) if registry is not None else COI_CONFIGS

    def find(self, lob: str, geography: str, carrier_partner: str) -> COIConfig | None:
        """Return the best match, or None."""
        for config in self.registry:
            if config.key == (lob, geography, carrier_partner):
                return config

        for config in self.registry:
            if config.lob == lob and config.geography == geography:
                logger.info(
                    "COI config resolved by geography fallback",
                    lob=lob,
                    geography=geography,
                    carrier_partner=carrier_partner,
                    fallback_carrier=config.carrier_partner,
                )
                return config

        return None

    def exists(self, lob: str, geography: str, carrier_partner: str) -> bool:
        """Same resolution order as resolve(); never raises."""
        return self.find(lob, geography, carrier_partner) is not None

    def resolve(self, lob: str, geography: str, carrier_partner: str) -> COIConfig:
        """
        Return the config for the combination.

        Raises:
            ConfigNotFoundError: If neither an exact nor a fallback entry exists.
        """
        config = self.find(lob, geography, carrier_partner)
        if config is None:
            raise ConfigNotFoundError(
                f"No COI config found for lob={lob} geography={geography} "
                f"carrierPartner={carrier_partner}",
                lob=lob,
                details={"geography": geography, "carrier_partner": carrier_partner},
            )
        return config

    def list_available(self) -> list[tuple[str, str, str]]:
        """Return all registered (lob, geography, carrier partner) keys."""
        return [config.key for config in self.registry]
