"""Candidate resource model produced by resource discovery."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Optional


@dataclass
class CandidateResource:
    """A discovered resource that may be eligible for deletion.

    Attributes:
        identifier: Identifier passed to the delete call (ID, name, ARN or URL)
        name: Human-readable name used for name filters (defaults to identifier)
        created_at: Creation time, or first-seen time for types without one
        tags: Resource tags
        terminal: True if the resource is already being deleted
    """

    identifier: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None
    tags: Dict[str, str] = field(default_factory=dict)
    terminal: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.identifier
