"""Nuke operation model.

Represents one complete nuke run with metadata, filters, and execution counts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class OperationMode(Enum):
    """Operation execution mode."""

    DRY_RUN = "dry-run"
    EXECUTE = "execute"


class OperationStatus(Enum):
    """Operation execution status with state transitions."""

    PLANNED = "planned"
    EXECUTING = "executing"
    COMPLETED = "completed"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class NukeOperation:
    """Nuke operation entity.

    State transitions:
        planned → executing → completed (every deletion succeeded, no errors)
        planned → executing → partial (some deletions or discoveries failed)
        planned → executing → failed (nothing could be deleted)
        planned (dry-run, discovery only)

    Attributes:
        operation_id: Unique identifier for the operation
        timestamp: When the operation was initiated (UTC)
        account_id: AWS account ID (12-digit number)
        mode: dry-run or execute
        status: Current execution status
        regions: Regions targeted by the run
        resource_types: Resource types selected (empty means all)
        excluded_resource_types: Resource types explicitly excluded
        found_count: Identifiers found eligible across all regions
        deleted_count: Identifiers deleted successfully
        failed_count: Identifiers whose deletion failed
        error_count: Discovery or batching errors (whole resource types)
        aws_profile: AWS profile used for credentials (optional)
        started_at: When execution started (optional)
        completed_at: When execution completed (optional)
        duration_seconds: Total execution duration (optional)
    """

    operation_id: str
    timestamp: datetime
    account_id: str
    mode: OperationMode
    status: OperationStatus = OperationStatus.PLANNED
    regions: List[str] = field(default_factory=list)
    resource_types: List[str] = field(default_factory=list)
    excluded_resource_types: List[str] = field(default_factory=list)
    found_count: int = 0
    deleted_count: int = 0
    failed_count: int = 0
    error_count: int = 0
    aws_profile: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None

    @property
    def attempted_count(self) -> int:
        return self.deleted_count + self.failed_count

    @property
    def has_errors(self) -> bool:
        return self.failed_count > 0 or self.error_count > 0

    def finalize(self, completed_at: datetime) -> None:
        """Set final status and timing once the run is over."""
        self.completed_at = completed_at
        if self.started_at:
            self.duration_seconds = (completed_at - self.started_at).total_seconds()

        if self.mode == OperationMode.DRY_RUN:
            self.status = OperationStatus.PLANNED
        elif not self.has_errors:
            self.status = OperationStatus.COMPLETED
        elif self.deleted_count > 0 or (self.failed_count == 0 and self.found_count == 0):
            self.status = OperationStatus.PARTIAL
        else:
            self.status = OperationStatus.FAILED

    def validate(self) -> bool:
        """Validate operation invariants.

        Validation rules:
            - attempted count cannot exceed found count
            - completed_at must be after started_at
            - dry-run mode must have planned status and no attempts

        Returns:
            True if validation passes

        Raises:
            ValueError: If any validation rule fails
        """
        if self.attempted_count > self.found_count:
            raise ValueError("Attempted deletions exceed resources found")

        if self.completed_at and self.started_at:
            if self.completed_at < self.started_at:
                raise ValueError("Completion time before start time")

        if self.mode == OperationMode.DRY_RUN:
            if self.status != OperationStatus.PLANNED:
                raise ValueError("Dry-run mode must have planned status")
            if self.attempted_count:
                raise ValueError("Dry-run mode cannot attempt deletions")

        return True
