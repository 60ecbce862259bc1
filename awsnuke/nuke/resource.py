"""Capability contract implemented by every nukeable resource type."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, List

if TYPE_CHECKING:
    import boto3

    from ..models.nuke_config import NukeConfig
    from ..models.nuke_result import NukeResult


class NukeableResource(ABC):
    """Abstract resource type the engine can discover and delete.

    The engine only talks to resource types through this interface. A fresh
    instance is created per region per run and bound with init() before use.
    """

    @property
    @abstractmethod
    def resource_name(self) -> str:
        """Stable lowercase name, unique within the registry."""

    @property
    @abstractmethod
    def max_batch_size(self) -> int:
        """Maximum number of identifiers passed to a single nuke() call."""

    @property
    @abstractmethod
    def hard_limit(self) -> int:
        """Ceiling above which nuke() refuses to run at all."""

    @property
    @abstractmethod
    def is_global(self) -> bool:
        """True for account-wide types that live in the global pseudo-region."""

    @property
    @abstractmethod
    def resource_identifiers(self) -> List[str]:
        """Identifiers stored by the last get_and_set_identifiers() call."""

    @abstractmethod
    def init(self, session: "boto3.session.Session", region: str) -> None:
        """Bind the resource type to a session and region. Idempotent."""

    @abstractmethod
    def get_and_set_identifiers(self, config: "NukeConfig") -> List[str]:
        """Discover resources, apply the type's filter rule, store and return eligible identifiers.

        Raises:
            DiscoveryError: If listing resources failed
            FilterEvaluationError: If the rule contains a malformed pattern
        """

    @abstractmethod
    def nuke(self, identifiers: List[str]) -> List["NukeResult"]:
        """Delete the given identifiers.

        Returns:
            Exactly one result per identifier, in input order

        Raises:
            TooManyRequestedError: If more identifiers than hard_limit were passed
        """
