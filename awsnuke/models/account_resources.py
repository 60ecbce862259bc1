"""Per-account aggregation of discovered resources.

Built by the orchestrator once per run, keyed by region. Each region holds the
adapter instances that had eligible identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Dict, List, Optional

if TYPE_CHECKING:
    from ..nuke.resource import NukeableResource


@dataclass
class RegionResources:
    """Resource adapters discovered in one region."""

    resources: List["NukeableResource"] = field(default_factory=list)

    def _find(self, resource_type: str) -> Optional["NukeableResource"]:
        wanted = resource_type.lower()
        for resource in self.resources:
            if resource.resource_name.lower() == wanted:
                return resource
        return None

    def map_resource_type_to_identifiers(self) -> Dict[str, List[str]]:
        """Return resource type name -> identifiers for this region."""
        return {resource.resource_name: list(resource.resource_identifiers) for resource in self.resources}

    def count_of_resource_type(self, resource_type: str) -> int:
        resource = self._find(resource_type)
        return len(resource.resource_identifiers) if resource else 0

    def resource_type_present(self, resource_type: str) -> bool:
        return self._find(resource_type) is not None

    def identifiers_for_resource_type(self, resource_type: str) -> List[str]:
        resource = self._find(resource_type)
        return list(resource.resource_identifiers) if resource else []


@dataclass
class AwsAccountResources:
    """Region name -> RegionResources for a single account."""

    resources: Dict[str, RegionResources] = field(default_factory=dict)

    def add(self, region: str, resource: "NukeableResource") -> None:
        self.resources.setdefault(region, RegionResources()).resources.append(resource)

    def get_region(self, region: str) -> RegionResources:
        """Return resources for a region, empty if nothing was discovered there."""
        return self.resources.get(region, RegionResources())

    @property
    def regions(self) -> List[str]:
        return list(self.resources)

    def total_resource_count(self) -> int:
        return sum(
            len(resource.resource_identifiers)
            for region_resources in self.resources.values()
            for resource in region_resources.resources
        )

    def to_dict(self) -> Dict[str, Dict[str, List[str]]]:
        return {region: rr.map_resource_type_to_identifiers() for region, rr in self.resources.items()}
