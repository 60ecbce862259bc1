"""Tests for the per-account resource aggregation."""

from __future__ import annotations

from awsnuke.models.account_resources import AwsAccountResources, RegionResources
from awsnuke.models.nuke_config import NukeConfig
from tests.fixtures.resources import FakeResource


def discovered(name: str, identifiers: list) -> FakeResource:
    resource = FakeResource(name, identifiers)
    resource.get_and_set_identifiers(NukeConfig())
    return resource


class TestRegionResources:
    """Test suite for RegionResources."""

    def test_queries(self) -> None:
        """Test counting and lookup by resource type."""
        region = RegionResources([discovered("ec2", ["i-1", "i-2"]), discovered("s3", ["bucket"])])

        assert region.count_of_resource_type("ec2") == 2
        assert region.count_of_resource_type("EC2") == 2
        assert region.count_of_resource_type("vpc") == 0
        assert region.resource_type_present("s3")
        assert not region.resource_type_present("vpc")
        assert region.identifiers_for_resource_type("s3") == ["bucket"]
        assert region.identifiers_for_resource_type("vpc") == []
        assert region.map_resource_type_to_identifiers() == {"ec2": ["i-1", "i-2"], "s3": ["bucket"]}


class TestAwsAccountResources:
    """Test suite for AwsAccountResources."""

    def test_add_and_totals(self) -> None:
        """Test resources are grouped by region and counted."""
        account = AwsAccountResources()
        account.add("us-east-1", discovered("ec2", ["i-1"]))
        account.add("us-east-1", discovered("s3", ["a", "b"]))
        account.add("global", discovered("iam", ["alice"]))

        assert account.regions == ["us-east-1", "global"]
        assert account.total_resource_count() == 4
        assert account.to_dict() == {
            "us-east-1": {"ec2": ["i-1"], "s3": ["a", "b"]},
            "global": {"iam": ["alice"]},
        }

    def test_get_region_missing(self) -> None:
        """Test an unvisited region is empty."""
        assert AwsAccountResources().get_region("eu-west-1").resources == []
