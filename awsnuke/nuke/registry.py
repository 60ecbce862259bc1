"""Resource registry.

Static ordered catalogs of global and regional resource types. Catalog order
is deletion order: a type must come after every type whose resources can
depend on it (instances before volumes, gateways before the VPC).
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Sequence, Type

import boto3

from ..aws.regions import GLOBAL_REGION
from ..resources.autoscaling import AutoScalingGroups
from ..resources.base import BaseAwsResource
from ..resources.cloudwatch import CloudWatchAlarms, CloudWatchDashboards, CloudWatchLogGroups
from ..resources.dynamodb import DynamoDbTables
from ..resources.ec2 import (
    Amis,
    EbsVolumes,
    Ec2Instances,
    Ec2KeyPairs,
    ElasticIps,
    InternetGateways,
    NatGateways,
    SecurityGroups,
    Snapshots,
    Subnets,
    Vpcs,
)
from ..resources.iam import IamGroups, IamPolicies, IamRoles, IamUsers
from ..resources.lambda_ import LambdaFunctions
from ..resources.s3 import S3Buckets
from ..resources.secretsmanager import Secrets
from ..resources.sns import SnsTopics
from ..resources.sqs import SqsQueues
from .resource import NukeableResource

ALL_RESOURCE_TYPES = "all"

# Users and groups go before policies so attachments are already gone
GLOBAL_RESOURCES: Sequence[Type[BaseAwsResource]] = (
    IamUsers,
    IamGroups,
    IamRoles,
    IamPolicies,
)

REGIONAL_RESOURCES: Sequence[Type[BaseAwsResource]] = (
    AutoScalingGroups,
    Ec2Instances,
    LambdaFunctions,
    EbsVolumes,
    Amis,
    Snapshots,
    Ec2KeyPairs,
    CloudWatchAlarms,
    CloudWatchDashboards,
    CloudWatchLogGroups,
    DynamoDbTables,
    Secrets,
    SnsTopics,
    SqsQueues,
    S3Buckets,
    NatGateways,
    ElasticIps,
    InternetGateways,
    SecurityGroups,
    Subnets,
    Vpcs,
)


def get_registered_global_resources() -> List[NukeableResource]:
    """Return fresh, uninitialized instances of every global resource type in catalog order."""
    return [cls() for cls in GLOBAL_RESOURCES]


def get_registered_regional_resources() -> List[NukeableResource]:
    """Return fresh, uninitialized instances of every regional resource type in catalog order."""
    return [cls() for cls in REGIONAL_RESOURCES]


def get_and_init_registered_resources(session: boto3.session.Session, region: str) -> List[NukeableResource]:
    """Return initialized resource types for a region, or for the global pseudo-region.

    Args:
        session: boto3 session used by every returned resource type
        region: Region name, or GLOBAL_REGION for account-wide types

    Returns:
        Resource types in catalog order, bound to session and region
    """
    if region == GLOBAL_REGION:
        resources = get_registered_global_resources()
    else:
        resources = get_registered_regional_resources()

    for resource in resources:
        resource.init(session, region)
    return resources


def list_resource_types() -> List[str]:
    """Return every registered resource type name, sorted."""
    resources = get_registered_global_resources() + get_registered_regional_resources()
    return sorted(resource.resource_name for resource in resources)


def is_valid_resource_type(name: str) -> bool:
    return name.lower() in list_resource_types()


def is_nukeable(
    resource_type: str,
    include_types: Optional[Iterable[str]] = None,
    exclude_types: Optional[Iterable[str]] = None,
) -> bool:
    """Check whether a resource type is selected for a run.

    An empty include list, or one containing "all", selects every type.
    Exclusions win over inclusions.
    """
    name = resource_type.lower()
    if name in {t.lower() for t in exclude_types or []}:
        return False

    include = {t.lower() for t in include_types or []}
    return not include or ALL_RESOURCE_TYPES in include or name in include
