"""Test fixtures for nuke runs.

In-memory resource types and AWS error helpers shared by unit and integration tests.
"""

from __future__ import annotations

from typing import Dict, List, Optional

from botocore.exceptions import ClientError

from awsnuke.models.candidate_resource import CandidateResource
from awsnuke.models.nuke_result import NukeResult
from awsnuke.nuke.errors import TooManyRequestedError
from awsnuke.nuke.filtering import ResourceFilter
from awsnuke.nuke.resource import NukeableResource


def make_client_error(code: str, operation: str = "DeleteResource", message: str = "boom") -> ClientError:
    """Create a botocore ClientError with the given error code."""
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)


class FakeResource(NukeableResource):
    """Resource type backed by a list of identifiers.

    Identifiers listed in failures fail deletion with the mapped exception.
    Every nuke() call is recorded in nuke_calls and every config passed to
    get_and_set_identifiers() in configs.
    """

    def __init__(
        self,
        name: str,
        identifiers: Optional[List[str]] = None,
        failures: Optional[Dict[str, Exception]] = None,
        batch_size: int = 10,
        limit: int = 100,
        discovery_error: Optional[Exception] = None,
        is_global: bool = False,
    ) -> None:
        self._name = name
        self._candidates = list(identifiers or [])
        self._identifiers: List[str] = []
        self._batch_size = batch_size
        self._limit = limit
        self._is_global = is_global
        self.failures = dict(failures or {})
        self.discovery_error = discovery_error
        self.session = None
        self.region: Optional[str] = None
        self.nuke_calls: List[List[str]] = []
        self.configs: list = []
        self.deleted: List[str] = []

    @property
    def resource_name(self) -> str:
        return self._name

    @property
    def max_batch_size(self) -> int:
        return self._batch_size

    @property
    def hard_limit(self) -> int:
        return self._limit

    @property
    def is_global(self) -> bool:
        return self._is_global

    @property
    def resource_identifiers(self) -> List[str]:
        return list(self._identifiers)

    def init(self, session, region: str) -> None:
        self.session = session
        self.region = region

    def get_and_set_identifiers(self, config) -> List[str]:
        self.configs.append(config)
        if self.discovery_error is not None:
            raise self.discovery_error
        resource_filter = ResourceFilter(config.rule_for(self._name))
        eligible = resource_filter.filter(CandidateResource(identifier) for identifier in self._candidates)
        self._identifiers = [candidate.identifier for candidate in eligible]
        return list(self._identifiers)

    def nuke(self, identifiers: List[str]) -> List[NukeResult]:
        identifiers = list(identifiers)
        if len(identifiers) > self._limit:
            raise TooManyRequestedError(self._name, len(identifiers), self._limit)
        self.nuke_calls.append(identifiers)

        results = []
        for identifier in identifiers:
            error = self.failures.get(identifier)
            if error is None:
                self.deleted.append(identifier)
            results.append(NukeResult(self._name, identifier, error))
        return results


class RecordingRenderer:
    """Renderer that keeps every event and counts render() calls."""

    def __init__(self) -> None:
        self.events: list = []
        self.render_count = 0

    def on_event(self, event) -> None:
        self.events.append(event)

    def render(self) -> None:
        self.render_count += 1
