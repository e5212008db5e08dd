"""
Resource coordinates for Chaos Mesh experiment kinds.

Maps an experiment kind (e.g. "PodChaos") to the group, version and resource
name the Kubernetes custom-objects API addresses it by. The table is data:
supporting another kind means registering it, not editing code.
"""

import logging
from typing import Dict, Iterable, Optional

from pydantic import BaseModel

from chaos_canary.config import config
from chaos_canary.exceptions import UnsupportedKindError


logger = logging.getLogger(__name__)


# Chaos Mesh CRD kinds this controller can drive
CHAOS_KINDS = (
    "PodChaos",
    "NetworkChaos",
    "StressChaos",
    "IOChaos",
    "TimeChaos",
    "KernelChaos",
    "DNSChaos",
    "HTTPChaos",
)


class ResourceCoordinates(BaseModel):
    """
    API coordinates of a custom resource type.

    Attributes:
        group: API group (e.g. "chaos-mesh.org")
        version: API version (e.g. "v1alpha1")
        resource: Plural resource name used in API paths (e.g. "podchaos")
    """

    group: str
    version: str
    resource: str

    class Config:
        """Pydantic model configuration."""
        frozen = True

    @classmethod
    def for_kind(
        cls,
        kind: str,
        group: Optional[str] = None,
        version: Optional[str] = None
    ) -> "ResourceCoordinates":
        """Build coordinates for a Chaos Mesh kind."""
        # Chaos Mesh uses simple lowercase (no 'es' suffix)
        return cls(
            group=group or config.api_group,
            version=version or config.api_version,
            resource=kind.lower(),
        )

    @property
    def api_version(self) -> str:
        return f"{self.group}/{self.version}"

    def __str__(self) -> str:
        return f"{self.resource}.{self.version}.{self.group}"


class ResourceRegistry:
    """Lookup table from experiment kind to resource coordinates."""

    def __init__(self, kinds: Iterable[str] = ()):
        self._table: Dict[str, ResourceCoordinates] = {}
        for kind in kinds:
            self.register(kind, ResourceCoordinates.for_kind(kind))

    def register(self, kind: str, coordinates: ResourceCoordinates) -> None:
        """Add or replace the coordinates for ``kind``."""
        if kind in self._table:
            logger.info("Replacing coordinates for kind %s", kind)
        self._table[kind] = coordinates

    def resolve(self, kind: str) -> ResourceCoordinates:
        """
        Look up the coordinates for ``kind``.

        Raises:
            UnsupportedKindError: If the kind is not registered
        """
        try:
            return self._table[kind]
        except KeyError:
            raise UnsupportedKindError(
                f"unsupported chaos kind: {kind}. "
                f"Supported kinds: {', '.join(sorted(self._table))}"
            ) from None

    def kinds(self):
        return list(self._table)

    def __contains__(self, kind: str) -> bool:
        return kind in self._table


# Default registry shared by the client
registry = ResourceRegistry(CHAOS_KINDS)


def resolve(kind: str) -> ResourceCoordinates:
    """Resolve ``kind`` against the default registry."""
    return registry.resolve(kind)
