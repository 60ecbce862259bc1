"""Main CLI entry point using Typer."""

import logging
import sys
from datetime import timedelta
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ..aws.client import create_session
from ..aws.credentials import CredentialValidationError, validate_credentials
from ..aws.regions import DEFAULT_REGION, get_enabled_regions, get_target_regions
from ..models.nuke_config import NukeConfig
from ..models.nuke_operation import OperationMode
from ..nuke.audit import AuditStorage
from ..nuke.batching import BatchDriver
from ..nuke.errors import ConfigError, InvalidRegionError
from ..nuke.orchestrator import NukeOrchestrator, NukeRun
from ..nuke.registry import ALL_RESOURCE_TYPES, is_valid_resource_type, list_resource_types
from ..nuke.renderers import ConsoleRenderer, JsonRenderer
from ..nuke.reporting import ReportCollector
from ..utils.logging import setup_logging
from ..utils.time import parse_duration, parse_timestamp, utc_now
from .config import Config

logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="awsnuke",
    help="awsnuke - discover and destroy AWS resources across regions and resource types",
    add_completion=False,
)

# Create Rich console for output
console = Console()

# Global config
config: Optional[Config] = None

CONFIRMATION_WORD = "nuke"
OUTPUT_FORMATS = ("table", "json")


@app.callback()
def main(
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="AWS profile name"),
    storage_path: Optional[str] = typer.Option(
        None,
        "--storage-path",
        help="Custom path for audit log storage (default: ~/.awsnuke or $AWSNUKE_STORAGE_PATH)",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress output except errors"),
    no_color: bool = typer.Option(False, "--no-color", help="Disable colored output"),
):
    """awsnuke - discover and destroy AWS resources across regions and resource types."""
    global config

    # Load configuration
    config = Config.load()

    # Override with CLI options
    if profile:
        config.aws_profile = profile
    if storage_path:
        config.storage_path = storage_path

    # Setup logging
    log_level = "ERROR" if quiet else ("DEBUG" if verbose else config.log_level)
    setup_logging(level=log_level, verbose=verbose)

    # Disable colors if requested
    if no_color:
        console.no_color = True


@app.command()
def version():
    """Show version information."""
    import boto3

    from .. import __version__

    console.print(f"awsnuke version {__version__}")
    console.print(f"Python {sys.version.split()[0]}")
    console.print(f"boto3 {boto3.__version__}")


@app.command("resource-types")
def resource_types_command():
    """List every resource type that can be passed to --resource-type."""
    _print_resource_types()


def _print_resource_types() -> None:
    for name in list_resource_types():
        console.print(name)


def _validate_resource_types(names: List[str], option: str) -> None:
    invalid = [name for name in names if name.lower() != ALL_RESOURCE_TYPES and not is_valid_resource_type(name)]
    if invalid:
        console.print(f"✗ Invalid {option}: {', '.join(invalid)}", style="bold red")
        console.print("  Use 'awsnuke resource-types' to see valid resource types", style="yellow")
        raise typer.Exit(code=1)


def _parse_duration_option(value: Optional[str], option: str) -> Optional[timedelta]:
    if not value:
        return None
    try:
        return parse_duration(value)
    except ValueError as e:
        console.print(f"✗ Invalid {option}: {e}", style="bold red")
        raise typer.Exit(code=1)


def _build_nuke_config(
    config_file: Optional[str],
    older_than: Optional[str],
    newer_than: Optional[str],
    exclude_first_seen: bool,
    default_only: bool = False,
) -> NukeConfig:
    older = _parse_duration_option(older_than, "--older-than")
    newer = _parse_duration_option(newer_than, "--newer-than")

    try:
        nuke_config = NukeConfig.load(config_file) if config_file else NukeConfig()
    except ConfigError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)

    now = utc_now()
    if older is not None:
        nuke_config.exclude_after = now - older
    if newer is not None:
        nuke_config.include_after = now - newer
    nuke_config.exclude_first_seen = exclude_first_seen
    nuke_config.default_only = default_only
    return nuke_config


def _execute_run(
    command: str,
    dry_run: bool,
    regions: Optional[List[str]],
    exclude_regions: Optional[List[str]],
    resource_types: Optional[List[str]],
    exclude_resource_types: Optional[List[str]],
    older_than: Optional[str],
    newer_than: Optional[str],
    config_file: Optional[str],
    exclude_first_seen: bool,
    force: bool,
    output_format: str,
    output_file: Optional[str],
    default_only: bool = False,
) -> None:
    """Shared body of the nuke, inspect and defaults commands.

    Default-only runs target account defaults and skip the global pseudo-region.
    """
    resource_types = list(resource_types or [])
    exclude_resource_types = list(exclude_resource_types or [])

    if output_format not in OUTPUT_FORMATS:
        console.print(f"✗ Invalid format: {output_format}. Must be 'table' or 'json'", style="bold red")
        raise typer.Exit(code=1)
    _validate_resource_types(resource_types, "--resource-type")
    _validate_resource_types(exclude_resource_types, "--exclude-resource-type")
    nuke_config = _build_nuke_config(config_file, older_than, newer_than, exclude_first_seen, default_only)
    include_global = not default_only

    aws_profile = config.aws_profile

    # Validate credentials
    identity = validate_credentials(aws_profile)
    account_id = identity["account_id"]

    session = create_session(profile_name=aws_profile, region_name=DEFAULT_REGION)
    try:
        target_regions = get_target_regions(
            get_enabled_regions(session),
            selected_regions=regions or config.regions,
            excluded_regions=exclude_regions,
        )
    except InvalidRegionError as e:
        console.print(f"✗ {e}", style="bold red")
        raise typer.Exit(code=1)

    # JSON on stdout must not be mixed with status output
    json_to_stdout = output_format == "json" and not output_file
    status_console = Console(stderr=True, no_color=console.no_color) if json_to_stdout else console

    status_console.print(f"\nAccount: [bold]{account_id}[/bold]")
    status_console.print(f"Regions: {', '.join(target_regions)}{' (+ global)' if include_global else ''}")
    status_console.print(f"Resource types: {', '.join(resource_types) or 'all'}")
    if exclude_resource_types:
        status_console.print(f"Excluded resource types: {', '.join(exclude_resource_types)}")

    if not dry_run and not force:
        status_console.print(
            "\n⚠️  Every matching resource in the regions above will be permanently deleted.",
            style="bold yellow",
        )
        answer = typer.prompt(f"Type '{CONFIRMATION_WORD}' to confirm")
        if answer.strip() != CONFIRMATION_WORD:
            status_console.print("Cancelled.")
            raise typer.Exit(code=0)

    collector = ReportCollector()
    if output_format == "json":
        collector.add_renderer(
            JsonRenderer(
                output_path=output_file,
                command=command,
                regions=target_regions,
                query={
                    "resource_types": resource_types,
                    "exclude_resource_types": exclude_resource_types,
                    "exclude_after": nuke_config.exclude_after.isoformat() if nuke_config.exclude_after else None,
                    "include_after": nuke_config.include_after.isoformat() if nuke_config.include_after else None,
                    "filters": nuke_config.to_dict(),
                },
            )
        )
    else:
        collector.add_renderer(ConsoleRenderer(console=console, dry_run=dry_run))

    orchestrator = NukeOrchestrator(
        session_factory=lambda region: create_session(profile_name=aws_profile, region_name=region),
        config=nuke_config,
        collector=collector,
        driver=BatchDriver(
            batch_pause_seconds=config.batch_pause_seconds,
            throttle_pause_seconds=config.throttle_pause_seconds,
        ),
        resource_types=resource_types,
        exclude_resource_types=exclude_resource_types,
        dry_run=dry_run,
    )

    with status_console.status("Working..."):
        run = orchestrator.run(
            target_regions, account_id=account_id, aws_profile=aws_profile, include_global=include_global
        )
    collector.complete()

    _write_audit_log(run)
    _print_run_summary(status_console, run, output_file)

    if run.has_errors:
        raise typer.Exit(code=1)


def _write_audit_log(run: NukeRun) -> None:
    try:
        audit_file = AuditStorage(config.audit_dir).log_run(run)
    except OSError as e:
        logger.warning(f"Unable to write audit log: {e}")
        return
    logger.debug(f"Audit log written to {audit_file}")


def _print_run_summary(out: Console, run: NukeRun, output_file: Optional[str]) -> None:
    operation = run.operation
    if operation.found_count == 0 and not operation.has_errors:
        out.print("\n✓ No matching resources found", style="green")
    elif operation.mode == OperationMode.DRY_RUN:
        out.print(f"\n✓ Found {operation.found_count} resource(s) eligible for deletion", style="green")
    elif not operation.has_errors:
        out.print(f"\n✓ Deleted {operation.deleted_count} resource(s)", style="green")
    else:
        out.print(
            f"\n✗ Finished with errors: {operation.deleted_count} deleted, "
            f"{operation.failed_count} failed, {operation.error_count} other error(s)",
            style="bold red",
        )

    if output_file:
        out.print(f"✓ Report written to: [cyan]{output_file}[/cyan]")
    out.print(f"  Operation ID: {operation.operation_id}")


@app.command()
def nuke(
    regions: Optional[List[str]] = typer.Option(None, "--region", "-r", help="Region to target (repeatable)"),
    exclude_regions: Optional[List[str]] = typer.Option(
        None, "--exclude-region", help="Region to skip (repeatable)"
    ),
    resource_types: Optional[List[str]] = typer.Option(
        None, "--resource-type", "-t", help="Resource type to nuke (repeatable, 'all' for every type)"
    ),
    exclude_resource_types: Optional[List[str]] = typer.Option(
        None, "--exclude-resource-type", help="Resource type to skip (repeatable)"
    ),
    older_than: Optional[str] = typer.Option(
        None, "--older-than", help="Only nuke resources older than this (e.g. 30m, 24h, 7d)"
    ),
    newer_than: Optional[str] = typer.Option(
        None, "--newer-than", help="Only nuke resources newer than this (e.g. 30m, 24h, 7d)"
    ),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Filter config YAML file"),
    exclude_first_seen: bool = typer.Option(
        False, "--exclude-first-seen", help="Do not tag resources that have no creation time"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="List matching resources without deleting them"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt"),
    output_format: str = typer.Option("table", "--format", help="Output format: table or json"),
    output_file: Optional[str] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
    list_types: bool = typer.Option(False, "--list-resource-types", help="List resource types and exit"),
):
    """Delete AWS resources matching the given filters.

    Regions are processed in order, then account-wide (global) resource types
    such as IAM. A confirmation prompt requires typing 'nuke' unless --force.

    Examples:
        # Nuke everything older than a week in two regions
        awsnuke nuke --region us-east-1 --region eu-west-1 --older-than 7d

        # Only S3 buckets and SQS queues, filtered by config file
        awsnuke nuke --resource-type s3 --resource-type sqs --config filters.yaml
    """
    try:
        if list_types:
            _print_resource_types()
            raise typer.Exit(code=0)

        _execute_run(
            command="nuke",
            dry_run=dry_run,
            regions=regions,
            exclude_regions=exclude_regions,
            resource_types=resource_types,
            exclude_resource_types=exclude_resource_types,
            older_than=older_than,
            newer_than=newer_than,
            config_file=config_file,
            exclude_first_seen=exclude_first_seen,
            force=force,
            output_format=output_format,
            output_file=output_file,
        )

    except typer.Exit:
        raise
    except CredentialValidationError as e:
        console.print(f"✗ Error: {e}", style="bold red")
        raise typer.Exit(code=3)
    except Exception as e:
        console.print(f"✗ Error during nuke: {e}", style="bold red")
        logger.exception("Error in nuke command")
        raise typer.Exit(code=2)


@app.command()
def inspect(
    regions: Optional[List[str]] = typer.Option(None, "--region", "-r", help="Region to inspect (repeatable)"),
    exclude_regions: Optional[List[str]] = typer.Option(
        None, "--exclude-region", help="Region to skip (repeatable)"
    ),
    resource_types: Optional[List[str]] = typer.Option(
        None, "--resource-type", "-t", help="Resource type to inspect (repeatable, 'all' for every type)"
    ),
    exclude_resource_types: Optional[List[str]] = typer.Option(
        None, "--exclude-resource-type", help="Resource type to skip (repeatable)"
    ),
    older_than: Optional[str] = typer.Option(None, "--older-than", help="Only list resources older than this"),
    newer_than: Optional[str] = typer.Option(None, "--newer-than", help="Only list resources newer than this"),
    config_file: Optional[str] = typer.Option(None, "--config", "-c", help="Filter config YAML file"),
    exclude_first_seen: bool = typer.Option(
        False, "--exclude-first-seen", help="Do not tag resources that have no creation time"
    ),
    output_format: str = typer.Option("table", "--format", help="Output format: table or json"),
    output_file: Optional[str] = typer.Option(None, "--output", "-o", help="Write the report to this file"),
):
    """List resources that nuke would delete, without deleting anything."""
    try:
        _execute_run(
            command="inspect",
            dry_run=True,
            regions=regions,
            exclude_regions=exclude_regions,
            resource_types=resource_types,
            exclude_resource_types=exclude_resource_types,
            older_than=older_than,
            newer_than=newer_than,
            config_file=config_file,
            exclude_first_seen=exclude_first_seen,
            force=True,
            output_format=output_format,
            output_file=output_file,
        )

    except typer.Exit:
        raise
    except CredentialValidationError as e:
        console.print(f"✗ Error: {e}", style="bold red")
        raise typer.Exit(code=3)
    except Exception as e:
        console.print(f"✗ Error during inspect: {e}", style="bold red")
        logger.exception("Error in inspect command")
        raise typer.Exit(code=2)


# Deleted in registry order, not list order
DEFAULT_VPC_RESOURCE_TYPES = ["nat-gateway", "internet-gateway", "ec2-subnet", "vpc"]
DEFAULT_SECURITY_GROUP_RESOURCE_TYPES = ["security-group"]


@app.command()
def defaults(
    regions: Optional[List[str]] = typer.Option(None, "--region", "-r", help="Region to target (repeatable)"),
    exclude_regions: Optional[List[str]] = typer.Option(
        None, "--exclude-region", help="Region to skip (repeatable)"
    ),
    sg_only: bool = typer.Option(
        False, "--sg-only", help="Only revoke the rules of default security groups, keeping default VPCs"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="List matching resources without changing them"),
    force: bool = typer.Option(False, "--force", "-f", help="Skip the confirmation prompt"),
):
    """Remove the default VPC of every region, or lock down default security groups.

    Default VPCs are deleted together with their NAT gateways, internet gateway
    and default subnets. With --sg-only the VPCs are kept and every ingress and
    egress rule of their "default" security groups is revoked instead.

    Examples:
        # Delete default VPCs everywhere except one region
        awsnuke defaults --exclude-region us-east-1

        # Empty the default security groups without touching the VPCs
        awsnuke defaults --sg-only --force
    """
    try:
        _execute_run(
            command="defaults",
            dry_run=dry_run,
            regions=regions,
            exclude_regions=exclude_regions,
            resource_types=DEFAULT_SECURITY_GROUP_RESOURCE_TYPES if sg_only else DEFAULT_VPC_RESOURCE_TYPES,
            exclude_resource_types=None,
            older_than=None,
            newer_than=None,
            config_file=None,
            exclude_first_seen=True,
            force=force,
            output_format="table",
            output_file=None,
            default_only=True,
        )

    except typer.Exit:
        raise
    except CredentialValidationError as e:
        console.print(f"✗ Error: {e}", style="bold red")
        raise typer.Exit(code=3)
    except Exception as e:
        console.print(f"✗ Error during defaults: {e}", style="bold red")
        logger.exception("Error in defaults command")
        raise typer.Exit(code=2)


@app.command()
def history(
    since: Optional[str] = typer.Option(None, "--since", help="Only runs at or after this date (YYYY-MM-DD)"),
    until: Optional[str] = typer.Option(None, "--until", help="Only runs at or before this date (YYYY-MM-DD)"),
    operation_id: Optional[str] = typer.Option(None, "--operation", help="Show the records of one run"),
):
    """Show previous nuke and inspect runs from the audit log."""
    try:
        storage = AuditStorage(config.audit_dir)

        if operation_id:
            _print_operation_detail(storage, operation_id)
            return

        try:
            since_dt = parse_timestamp(since) if since else None
            until_dt = parse_timestamp(until) if until else None
        except ValueError as e:
            console.print(f"✗ Invalid date: {e}", style="bold red")
            raise typer.Exit(code=1)

        operations = storage.query_operations(since=since_dt, until=until_dt)
        if not operations:
            console.print("No runs found.", style="yellow")
            return

        table = Table(show_header=True, title="Nuke History")
        table.add_column("Operation ID", style="cyan")
        table.add_column("Timestamp")
        table.add_column("Account")
        table.add_column("Mode")
        table.add_column("Status")
        table.add_column("Found", justify="right")
        table.add_column("Deleted", justify="right", style="green")
        table.add_column("Failed", justify="right", style="red")

        for audit in operations:
            op = audit["operation"]
            table.add_row(
                op["operation_id"],
                op["timestamp"],
                op.get("account_id") or "",
                op["mode"],
                op["status"],
                str(op.get("found_count", 0)),
                str(op.get("deleted_count", 0)),
                str(op.get("failed_count", 0)),
            )

        console.print(table)

    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"✗ Error reading history: {e}", style="bold red")
        logger.exception("Error in history command")
        raise typer.Exit(code=2)


def _print_operation_detail(storage: AuditStorage, operation_id: str) -> None:
    audit = storage.get_operation(operation_id)
    if audit is None:
        console.print(f"✗ Operation '{operation_id}' not found", style="bold red")
        raise typer.Exit(code=1)

    op = audit["operation"]
    console.print(f"\n[bold]{op['operation_id']}[/bold] ({op['mode']}, {op['status']})")
    console.print(f"  Account: {op.get('account_id')}")
    console.print(f"  Regions: {', '.join(op.get('regions') or [])}")
    console.print(f"  Started: {op.get('started_at')}  Duration: {op.get('duration_seconds')}s")

    records = audit.get("records") or []
    if records:
        table = Table(show_header=True, title="Records")
        table.add_column("Region")
        table.add_column("Resource Type", style="cyan")
        table.add_column("Identifier")
        table.add_column("Error", style="red")
        for record in records:
            table.add_row(record["region"], record["resource_type"], record["identifier"], record.get("error") or "")
        console.print(table)

    for error in audit.get("general_errors") or []:
        console.print(f"  ✗ [{error['region']}] {error['error']}", style="red")


def cli_main():
    """Entry point for console script."""
    app()


if __name__ == "__main__":
    cli_main()
