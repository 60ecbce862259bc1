"""Region discovery and target-region resolution."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import boto3

from ..nuke.errors import InvalidRegionError

logger = logging.getLogger(__name__)

# Pseudo-region holding account-wide resource types such as IAM
GLOBAL_REGION = "global"

DEFAULT_REGION = "us-east-1"


def get_enabled_regions(session: boto3.session.Session) -> List[str]:
    """Return regions enabled for the account, sorted by name.

    Args:
        session: boto3 session

    Returns:
        Sorted list of region names
    """
    ec2 = session.client("ec2", region_name=session.region_name or DEFAULT_REGION)
    response = ec2.describe_regions(
        Filters=[{"Name": "opt-in-status", "Values": ["opt-in-not-required", "opted-in"]}]
    )
    return sorted(region["RegionName"] for region in response.get("Regions", []))


def get_target_regions(
    enabled_regions: Sequence[str],
    selected_regions: Optional[Sequence[str]] = None,
    excluded_regions: Optional[Sequence[str]] = None,
) -> List[str]:
    """Resolve which regions a run should visit.

    Args:
        enabled_regions: Regions enabled for the account
        selected_regions: Regions requested by the user, empty for all enabled
        excluded_regions: Regions to skip

    Returns:
        Target regions in enabled-region order

    Raises:
        InvalidRegionError: If a selected or excluded region is not enabled
    """
    enabled = list(enabled_regions)
    for region in list(selected_regions or []) + list(excluded_regions or []):
        if region not in enabled:
            raise InvalidRegionError(f"Invalid region '{region}'. Enabled regions: {', '.join(enabled)}")

    selected = set(selected_regions or enabled)
    excluded = set(excluded_regions or [])
    targets = [region for region in enabled if region in selected and region not in excluded]
    if not targets:
        raise InvalidRegionError("No target regions left after applying region filters")

    return targets
