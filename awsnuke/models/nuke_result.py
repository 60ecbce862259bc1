"""Nuke result model.

Outcome of a single identifier's deletion attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NukeResult:
    """Result of one deletion attempt.

    One result is produced per attempted identifier, whether the deletion
    succeeded or not.

    Attributes:
        resource_type: Resource type name (e.g., "ec2")
        identifier: Resource identifier passed to the delete call
        error: Exception describing the failure, None on success
    """

    resource_type: str
    identifier: str
    error: Optional[Exception] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "resource_type": self.resource_type,
            "identifier": self.identifier,
            "succeeded": self.succeeded,
            "error": str(self.error) if self.error is not None else None,
        }
