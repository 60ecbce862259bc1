"""Report collection.

The collector receives found/deleted/error events from the orchestrator and
forwards them to every registered renderer. Emission is serialized with a lock
so renderers need no synchronization of their own.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import List, Optional, Protocol, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResourceFound:
    """A resource eligible for deletion was discovered."""

    resource_type: str
    region: str
    identifier: str


@dataclass(frozen=True)
class ResourceDeleted:
    """A deletion attempt finished."""

    resource_type: str
    region: str
    identifier: str
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class GeneralError:
    """A failure not tied to one identifier, such as a discovery error."""

    resource_type: str
    region: str
    description: str
    error: str


Event = Union[ResourceFound, ResourceDeleted, GeneralError]


class Renderer(Protocol):
    def on_event(self, event: Event) -> None:
        ...

    def render(self) -> None:
        ...


class ReportCollector:
    """Routes report events to renderers.

    complete() renders once; events recorded afterwards are dropped.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._renderers: List[Renderer] = []
        self._closed = False

    def add_renderer(self, renderer: Optional[Renderer]) -> None:
        if renderer is None:
            return
        with self._lock:
            self._renderers.append(renderer)

    def record_found(self, resource_type: str, region: str, identifier: str) -> None:
        self._emit(ResourceFound(resource_type, region, identifier))

    def record_deleted(
        self, resource_type: str, region: str, identifier: str, error: Optional[BaseException] = None
    ) -> None:
        self._emit(ResourceDeleted(resource_type, region, identifier, str(error) if error is not None else None))

    def record_error(self, resource_type: str, region: str, description: str, error: BaseException) -> None:
        self._emit(GeneralError(resource_type, region, description, str(error)))

    def _emit(self, event: Event) -> None:
        with self._lock:
            if self._closed:
                logger.debug(f"Dropping event after completion: {event}")
                return
            for renderer in self._renderers:
                renderer.on_event(event)

    def complete(self) -> None:
        """Mark collection finished and render every renderer's final output.

        Safe to call more than once.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            renderers = list(self._renderers)

        for renderer in renderers:
            renderer.render()
