"""Nuke orchestrator.

Walks target regions (then the global pseudo-region) and, for every selected
resource type in registry order, discovers eligible identifiers and
immediately drives their deletion.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import boto3

from ..aws.regions import GLOBAL_REGION
from ..models.account_resources import AwsAccountResources
from ..models.nuke_config import NukeConfig
from ..models.nuke_operation import NukeOperation, OperationMode, OperationStatus
from ..models.nuke_result import NukeResult
from ..utils.time import utc_now
from .batching import BatchDriver
from .errors import InvalidRegionError, NukeError, TooManyRequestedError
from .registry import get_and_init_registered_resources, is_nukeable
from .reporting import ReportCollector
from .resource import NukeableResource

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str], boto3.session.Session]
ResourceProvider = Callable[[boto3.session.Session, str], List[NukeableResource]]


class ResourceState(Enum):
    """Lifecycle of one resource type within one region."""

    UNINITIALIZED = "uninitialized"
    DISCOVERING = "discovering"
    DISCOVERY_FAILED = "discovery-failed"
    ELIGIBLE = "eligible"
    DELETING = "deleting"
    DONE = "done"


@dataclass
class NukeRun:
    """Everything produced by one orchestrator run.

    Attributes:
        operation: Run record with counts and final status
        account_resources: Resource types with eligible identifiers, by region
        results_by_region: Deletion results, by region, in production order
        general_errors: Discovery and batching errors, paired with their region
        resource_states: Final state of every visited (region, resource type)
    """

    operation: NukeOperation
    account_resources: AwsAccountResources = field(default_factory=AwsAccountResources)
    results_by_region: Dict[str, List[NukeResult]] = field(default_factory=dict)
    general_errors: List[Tuple[str, NukeError]] = field(default_factory=list)
    resource_states: Dict[Tuple[str, str], ResourceState] = field(default_factory=dict)

    @property
    def results(self) -> List[NukeResult]:
        return [result for results in self.results_by_region.values() for result in results]

    @property
    def has_errors(self) -> bool:
        return self.operation.has_errors

    def add_result(self, region: str, result: NukeResult) -> None:
        self.results_by_region.setdefault(region, []).append(result)
        if result.succeeded:
            self.operation.deleted_count += 1
        else:
            self.operation.failed_count += 1


class NukeOrchestrator:
    """Runs discovery and deletion across regions and resource types.

    The orchestrator is the only writer of the NukeRun; worker threads inside
    resource types only return results.

    Attributes:
        session_factory: Creates a boto3 session for a real region name
        config: Filter configuration
        collector: Receives found/deleted/error events
        driver: Batch driver used for deletions
        resource_types: Selected resource types (empty or "all" for every type)
        exclude_resource_types: Resource types never visited
        dry_run: Discover and report only
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        config: Optional[NukeConfig] = None,
        collector: Optional[ReportCollector] = None,
        driver: Optional[BatchDriver] = None,
        resource_types: Optional[Sequence[str]] = None,
        exclude_resource_types: Optional[Sequence[str]] = None,
        dry_run: bool = False,
        resource_provider: ResourceProvider = get_and_init_registered_resources,
    ) -> None:
        self.session_factory = session_factory
        self.config = config or NukeConfig()
        self.collector = collector or ReportCollector()
        self.driver = driver or BatchDriver()
        self.resource_types = list(resource_types or [])
        self.exclude_resource_types = list(exclude_resource_types or [])
        self.dry_run = dry_run
        self.resource_provider = resource_provider

    def run(
        self,
        regions: Sequence[str],
        account_id: str = "",
        aws_profile: Optional[str] = None,
        include_global: bool = True,
    ) -> NukeRun:
        """Discover and (unless dry-run) delete resources in every target region.

        Args:
            regions: Target regions, visited in order
            account_id: AWS account ID recorded on the operation
            aws_profile: AWS profile recorded on the operation (optional)
            include_global: Visit the global pseudo-region after the regional sweep

        Returns:
            NukeRun with the finalized operation

        Raises:
            InvalidRegionError: If no target region was given
        """
        if not regions:
            raise InvalidRegionError("At least one target region is required")

        started_at = utc_now()
        visited = list(regions) + ([GLOBAL_REGION] if include_global else [])
        operation = NukeOperation(
            operation_id=f"op_{uuid.uuid4()}",
            timestamp=started_at,
            account_id=account_id,
            mode=OperationMode.DRY_RUN if self.dry_run else OperationMode.EXECUTE,
            status=OperationStatus.PLANNED if self.dry_run else OperationStatus.EXECUTING,
            regions=visited,
            resource_types=list(self.resource_types),
            excluded_resource_types=list(self.exclude_resource_types),
            aws_profile=aws_profile,
            started_at=started_at,
        )
        run = NukeRun(operation=operation)

        for region in regions:
            self._process_region(run, region, self.session_factory(region))

        if include_global:
            # There is no real "global" region; any valid one works for the session
            self._process_region(run, GLOBAL_REGION, self.session_factory(regions[0]))

        operation.finalize(utc_now())
        operation.validate()
        logger.info(
            f"Run {operation.operation_id} {operation.status.value}: found {operation.found_count}, "
            f"deleted {operation.deleted_count}, failed {operation.failed_count}, errors {operation.error_count}"
        )
        return run

    def _process_region(self, run: NukeRun, region: str, session: boto3.session.Session) -> None:
        logger.info(f"Processing region {region}")
        for resource in self.resource_provider(session, region):
            if not is_nukeable(resource.resource_name, self.resource_types, self.exclude_resource_types):
                continue
            self._process_resource(run, region, resource)

    def _process_resource(self, run: NukeRun, region: str, resource: NukeableResource) -> None:
        name = resource.resource_name
        key = (region, name)

        run.resource_states[key] = ResourceState.DISCOVERING
        try:
            identifiers = resource.get_and_set_identifiers(self.config)
        except NukeError as e:
            self._record_general_error(run, region, name, f"Unable to retrieve {name}", e)
            run.resource_states[key] = ResourceState.DISCOVERY_FAILED
            return
        except Exception as e:
            logger.exception(f"Unexpected error listing {name} in {region}")
            error = NukeError(f"{name}: unexpected discovery error in {region}: {e}")
            self._record_general_error(run, region, name, f"Unable to retrieve {name}", error)
            run.resource_states[key] = ResourceState.DISCOVERY_FAILED
            return

        run.resource_states[key] = ResourceState.ELIGIBLE
        if not identifiers:
            run.resource_states[key] = ResourceState.DONE
            return

        logger.info(f"Found {len(identifiers)} {name} resource(s) in {region}")
        run.account_resources.add(region, resource)
        run.operation.found_count += len(identifiers)
        for identifier in identifiers:
            self.collector.record_found(name, region, identifier)

        if self.dry_run:
            run.resource_states[key] = ResourceState.DONE
            return

        def on_result(result: NukeResult) -> None:
            run.add_result(region, result)
            self.collector.record_deleted(result.resource_type, region, result.identifier, result.error)

        run.resource_states[key] = ResourceState.DELETING
        try:
            _, batch_error = self.driver.nuke(resource, identifiers, on_result=on_result)
        except TooManyRequestedError as e:
            self._record_general_error(run, region, name, f"Unable to nuke {name}", e)
        except Exception as e:
            logger.exception(f"Unexpected error nuking {name} in {region}")
            error = NukeError(f"{name}: unexpected deletion error in {region}: {e}")
            self._record_general_error(run, region, name, f"Unable to nuke {name}", error)
        else:
            if batch_error is not None:
                logger.warning(f"[{region}] {batch_error}")
        run.resource_states[key] = ResourceState.DONE

    def _record_general_error(
        self, run: NukeRun, region: str, resource_type: str, description: str, error: NukeError
    ) -> None:
        logger.error(f"[{region}] {description}: {error}")
        run.general_errors.append((region, error))
        run.operation.error_count += 1
        self.collector.record_error(resource_type, region, description, error)
