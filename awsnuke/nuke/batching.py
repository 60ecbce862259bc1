"""Batch splitting and the batch driver.

The driver hands identifiers to a resource type's nuke() in batches of at most
max_batch_size, pausing between batches and backing off when AWS throttles.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, List, Optional, Sequence, Tuple, TypeVar

from ..models.nuke_result import NukeResult
from .errors import BatchNukeError, DeleteError
from .resource import NukeableResource

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BATCH_PAUSE_SECONDS = 10.0
DEFAULT_THROTTLE_PAUSE_SECONDS = 60.0


def split(items: Sequence[T], size: int) -> List[List[T]]:
    """Partition items into consecutive batches of at most size elements.

    Args:
        items: Items to partition (order preserved)
        size: Maximum batch size

    Returns:
        ceil(len(items) / size) batches, empty list for no items

    Raises:
        ValueError: If size is not positive
    """
    if size <= 0:
        raise ValueError(f"Batch size must be positive, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class BatchDriver:
    """Drives deletion of one resource type's identifiers in batches.

    A failure inside a batch never stops sibling identifiers or later batches.
    Per-identifier errors are returned in the results and combined into a
    single BatchNukeError for logging.

    Attributes:
        batch_pause_seconds: Pause between consecutive batches
        throttle_pause_seconds: Pause after a batch that hit an API rate limit
    """

    def __init__(
        self,
        batch_pause_seconds: float = DEFAULT_BATCH_PAUSE_SECONDS,
        throttle_pause_seconds: float = DEFAULT_THROTTLE_PAUSE_SECONDS,
    ) -> None:
        self.batch_pause_seconds = batch_pause_seconds
        self.throttle_pause_seconds = throttle_pause_seconds

    def nuke(
        self,
        resource: NukeableResource,
        identifiers: Sequence[str],
        on_result: Optional[Callable[[NukeResult], None]] = None,
    ) -> Tuple[List[NukeResult], Optional[BatchNukeError]]:
        """Delete identifiers of one resource type.

        Args:
            resource: Initialized resource type
            identifiers: Eligible identifiers from discovery
            on_result: Called with each result as soon as its batch finishes

        Returns:
            Tuple of (all results in input order, combined error or None)

        Raises:
            TooManyRequestedError: If the resource type rejects a batch outright
        """
        batches = split(list(identifiers), resource.max_batch_size)
        results: List[NukeResult] = []
        errors: List[DeleteError] = []

        for index, batch in enumerate(batches):
            logger.info(
                f"Deleting {len(batch)} {resource.resource_name} resource(s) "
                f"(batch {index + 1}/{len(batches)})"
            )
            batch_results = resource.nuke(batch)
            throttled = False

            for result in batch_results:
                results.append(result)
                if result.error is not None:
                    error = DeleteError.from_exception(result.resource_type, result.identifier, result.error)
                    errors.append(error)
                    throttled = throttled or error.is_throttling
                if on_result is not None:
                    on_result(result)

            if index == len(batches) - 1:
                break
            if throttled:
                logger.warning(
                    f"Rate limited while deleting {resource.resource_name}, "
                    f"waiting {self.throttle_pause_seconds:g}s before the next batch"
                )
                time.sleep(self.throttle_pause_seconds)
            elif self.batch_pause_seconds > 0:
                logger.debug(f"Sleeping {self.batch_pause_seconds:g}s before the next batch")
                time.sleep(self.batch_pause_seconds)

        combined = BatchNukeError(resource.resource_name, errors) if errors else None
        return results, combined
