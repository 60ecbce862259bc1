"""Report renderers: rich console tables and JSON documents."""

from __future__ import annotations

import json
import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from ..utils.time import utc_now
from .reporting import Event, GeneralError, ResourceDeleted, ResourceFound

SUCCESS_MARK = "✓"
FAILURE_MARK = "✗"


class _EventBuffer:
    """Keeps every event by kind until render time."""

    def __init__(self) -> None:
        self.found: List[ResourceFound] = []
        self.deleted: List[ResourceDeleted] = []
        self.errors: List[GeneralError] = []

    def on_event(self, event: Event) -> None:
        if isinstance(event, ResourceFound):
            self.found.append(event)
        elif isinstance(event, ResourceDeleted):
            self.deleted.append(event)
        elif isinstance(event, GeneralError):
            self.errors.append(event)

    def summary_rows(self) -> List[Tuple[str, str, int, int, int]]:
        """Return (region, resource type, found, attempted, failed) rows."""
        counts: Dict[Tuple[str, str], List[int]] = defaultdict(lambda: [0, 0, 0])
        for event in self.found:
            counts[(event.region, event.resource_type)][0] += 1
        for event in self.deleted:
            counts[(event.region, event.resource_type)][1] += 1
            if not event.succeeded:
                counts[(event.region, event.resource_type)][2] += 1
        return [(region, rtype, *values) for (region, rtype), values in sorted(counts.items())]


class ConsoleRenderer(_EventBuffer):
    """Renders found resources, deletion results, errors and a summary as rich tables."""

    def __init__(self, console: Optional[Console] = None, dry_run: bool = False) -> None:
        super().__init__()
        self.console = console or Console()
        self.dry_run = dry_run

    def render(self) -> None:
        if self.dry_run:
            self._print_found()
        else:
            self._print_deleted()
        self._print_errors()
        self._print_summary()

        if not self.found and not self.errors:
            self.console.print("No resources found.", style="yellow")

    def _print_found(self) -> None:
        if not self.found:
            return
        table = Table(show_header=True, title="Found Resources")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Region")
        table.add_column("Identifier")
        for event in self.found:
            table.add_row(event.resource_type, event.region, event.identifier)
        self.console.print(table)

    def _print_deleted(self) -> None:
        if not self.deleted:
            return
        table = Table(show_header=True, title="Deletion Results")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Region")
        table.add_column("Identifier")
        table.add_column("Status", justify="center")
        table.add_column("Error", style="red")
        for event in self.deleted:
            status = f"[green]{SUCCESS_MARK}[/green]" if event.succeeded else f"[red]{FAILURE_MARK}[/red]"
            table.add_row(event.resource_type, event.region, event.identifier, status, event.error or "")
        self.console.print(table)

    def _print_errors(self) -> None:
        if not self.errors:
            return
        table = Table(show_header=True, title="Errors")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Region")
        table.add_column("Description")
        table.add_column("Error", style="red")
        for event in self.errors:
            table.add_row(event.resource_type, event.region, event.description, event.error)
        self.console.print(table)

    def _print_summary(self) -> None:
        rows = self.summary_rows()
        if not rows:
            return
        table = Table(show_header=True, title="Summary")
        table.add_column("Region")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Found", justify="right")
        table.add_column("Attempted", justify="right")
        table.add_column("Failed", justify="right", style="red")
        for region, resource_type, found, attempted, failed in rows:
            table.add_row(region, resource_type, str(found), str(attempted), str(failed))
        self.console.print(table)


class JsonRenderer(_EventBuffer):
    """Writes a single JSON document to a file, or stdout when no path is given."""

    def __init__(
        self,
        output_path: Optional[str] = None,
        command: str = "nuke",
        regions: Optional[List[str]] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__()
        self.output_path = output_path
        self.command = command
        self.regions = list(regions or [])
        self.query = dict(query or {})

    def build_document(self) -> Dict[str, Any]:
        """Build the output document from the collected events."""
        found = [
            {"resource_type": e.resource_type, "region": e.region, "identifier": e.identifier} for e in self.found
        ]
        errors = [
            {"resource_type": e.resource_type, "region": e.region, "description": e.description, "error": e.error}
            for e in self.errors
        ]
        document: Dict[str, Any] = {
            "timestamp": utc_now().isoformat(),
            "command": self.command,
            "regions": self.regions,
        }
        if self.query:
            document["query"] = self.query
        document["found"] = found

        if self.command == "inspect":
            document["summary"] = {
                "found": len(found),
                "general_errors": len(errors),
                "by_type": _count_by(self.found, "resource_type"),
                "by_region": _count_by(self.found, "region"),
            }
        else:
            resources = [
                {
                    "resource_type": e.resource_type,
                    "region": e.region,
                    "identifier": e.identifier,
                    "status": "deleted" if e.succeeded else "failed",
                    "error": e.error,
                }
                for e in self.deleted
            ]
            failed = sum(1 for e in self.deleted if not e.succeeded)
            document["resources"] = resources
            document["summary"] = {
                "found": len(found),
                "total": len(resources),
                "deleted": len(resources) - failed,
                "failed": failed,
                "general_errors": len(errors),
            }

        document["general_errors"] = errors
        return document

    def render(self) -> None:
        payload = json.dumps(self.build_document(), indent=2, default=str)
        if self.output_path:
            output_path = Path(self.output_path)
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with open(output_path, "w") as f:
                f.write(payload + "\n")
        else:
            sys.stdout.write(payload + "\n")


def _count_by(events: List[ResourceFound], attribute: str) -> Dict[str, int]:
    counts: Dict[str, int] = defaultdict(int)
    for event in events:
        counts[getattr(event, attribute)] += 1
    return dict(counts)
