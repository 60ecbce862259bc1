"""Audit storage for nuke runs.

Stores and retrieves audit logs in YAML format for compliance and troubleshooting.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from ..utils.time import ensure_utc, parse_timestamp, utc_now
from .orchestrator import NukeRun


def _isoformat(value: Optional[datetime]) -> Optional[str]:
    return ensure_utc(value).isoformat() if value else None


class AuditStorage:
    """Audit log storage and retrieval.

    Stores nuke run audit logs as YAML files organized by year/month.
    Supports querying runs by date range and retrieving a single run's log.

    Storage structure:
        ~/.awsnuke/audit-logs/
            2025/
                11/
                    operation-op_123.yaml
                    operation-op_456.yaml

    Attributes:
        storage_dir: Base directory for audit logs
    """

    def __init__(self, storage_dir: Optional[str] = None) -> None:
        """Initialize audit storage.

        Args:
            storage_dir: Base directory for audit logs (default: ~/.awsnuke/audit-logs)
        """
        if storage_dir is None:
            storage_dir = str(Path.home() / ".awsnuke" / "audit-logs")

        self.storage_dir = Path(storage_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def log_run(self, run: NukeRun) -> Path:
        """Log a nuke run to audit storage.

        Creates a YAML file with operation metadata, general errors and one
        record per deletion result. Overwrites an existing log with the same
        operation ID.

        Args:
            run: Finished nuke run

        Returns:
            Path of the written audit file
        """
        operation = run.operation

        year_month_dir = self.storage_dir / str(operation.timestamp.year) / f"{operation.timestamp.month:02d}"
        year_month_dir.mkdir(parents=True, exist_ok=True)

        audit_data: Dict[str, Any] = {
            "metadata": {
                "version": "1.0",
                "log_type": "resource_nuke",
                "created_at": utc_now().isoformat(),
            },
            "operation": {
                "operation_id": operation.operation_id,
                "timestamp": _isoformat(operation.timestamp),
                "aws_profile": operation.aws_profile,
                "account_id": operation.account_id,
                "mode": operation.mode.value,
                "status": operation.status.value,
                "regions": list(operation.regions),
                "resource_types": list(operation.resource_types),
                "excluded_resource_types": list(operation.excluded_resource_types),
                "found_count": operation.found_count,
                "deleted_count": operation.deleted_count,
                "failed_count": operation.failed_count,
                "error_count": operation.error_count,
                "started_at": _isoformat(operation.started_at),
                "completed_at": _isoformat(operation.completed_at),
                "duration_seconds": operation.duration_seconds,
            },
            "found": run.account_resources.to_dict(),
            "general_errors": [{"region": region, "error": str(error)} for region, error in run.general_errors],
            "records": [
                {"region": region, **result.to_dict()}
                for region, results in run.results_by_region.items()
                for result in results
            ],
        }

        audit_file = year_month_dir / f"operation-{operation.operation_id}.yaml"
        with open(audit_file, "w") as f:
            yaml.dump(audit_data, f, default_flow_style=False, sort_keys=False)

        return audit_file

    def get_operation(self, operation_id: str) -> Optional[dict]:
        """Retrieve a run's audit log by operation ID.

        Args:
            operation_id: Operation ID to retrieve

        Returns:
            Audit log dictionary if found, None otherwise
        """
        for audit_file in self.storage_dir.glob(f"*/*/operation-{operation_id}.yaml"):
            with open(audit_file, "r") as f:
                return yaml.safe_load(f)

        return None

    def query_operations(self, since: Optional[datetime] = None, until: Optional[datetime] = None) -> list[dict]:
        """Query runs within a date range, oldest first.

        Args:
            since: Start time (inclusive), None for all
            until: End time (inclusive), None for all

        Returns:
            List of audit logs matching criteria
        """
        since = ensure_utc(since)
        until = ensure_utc(until)
        results = []

        for audit_file in self.storage_dir.glob("*/*/operation-*.yaml"):
            with open(audit_file, "r") as f:
                audit_data = yaml.safe_load(f)

            timestamp = parse_timestamp(audit_data["operation"]["timestamp"])
            if since and timestamp < since:
                continue
            if until and timestamp > until:
                continue

            results.append(audit_data)

        results.sort(key=lambda data: data["operation"]["timestamp"])
        return results
