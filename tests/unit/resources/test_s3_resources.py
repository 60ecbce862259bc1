"""Tests for S3 resource types."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

import pytest

from awsnuke.resources.s3 import DELETE_OBJECTS_CHUNK_SIZE, S3Buckets, bucket_region
from tests.fixtures.resources import make_client_error


def bind(client: MagicMock, region: str = "us-east-1") -> S3Buckets:
    resource = S3Buckets()
    resource.init(MagicMock(), region)
    resource._client = client
    return resource


@pytest.mark.parametrize(
    "constraint,region",
    [(None, "us-east-1"), ("", "us-east-1"), ("EU", "eu-west-1"), ("ap-south-1", "ap-south-1")],
)
def test_bucket_region(constraint, region) -> None:
    """Test location constraints map to region names."""
    assert bucket_region(constraint) == region


class TestS3Buckets:
    """Test suite for S3Buckets."""

    def test_list_candidates_only_bound_region(self) -> None:
        """Test only buckets located in the bound region are listed."""
        client = MagicMock()
        client.list_buckets.return_value = {
            "Buckets": [{"Name": "east-bucket"}, {"Name": "west-bucket"}, {"Name": "gone-bucket"}]
        }
        locations = {
            "east-bucket": {"LocationConstraint": None},
            "west-bucket": {"LocationConstraint": "us-west-2"},
        }

        def get_bucket_location(Bucket):
            if Bucket not in locations:
                raise make_client_error("NoSuchBucket", "GetBucketLocation")
            return locations[Bucket]

        client.get_bucket_location.side_effect = get_bucket_location
        client.get_bucket_tagging.return_value = {"TagSet": [{"Key": "env", "Value": "dev"}]}
        resource = bind(client)

        candidates = list(resource.list_candidates())

        assert [c.identifier for c in candidates] == ["east-bucket"]
        assert candidates[0].tags == {"env": "dev"}

    def test_missing_tag_set_is_empty(self) -> None:
        """Test buckets without tags have an empty tag dictionary."""
        client = MagicMock()
        client.list_buckets.return_value = {"Buckets": [{"Name": "bucket"}]}
        client.get_bucket_location.return_value = {"LocationConstraint": None}
        client.get_bucket_tagging.side_effect = make_client_error("NoSuchTagSet", "GetBucketTagging")
        resource = bind(client)

        assert list(resource.list_candidates())[0].tags == {}

    @patch("awsnuke.resources.base.time.sleep")
    def test_delete_empties_bucket(self, mock_sleep: Mock) -> None:
        """Test every object version and delete marker is removed before the bucket."""
        versions = [{"Key": f"key-{i}", "VersionId": f"v{i}"} for i in range(DELETE_OBJECTS_CHUNK_SIZE + 1)]
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [
            {"Versions": versions, "DeleteMarkers": [{"Key": "gone", "VersionId": "m1"}]}
        ]
        resource = bind(client)

        results = resource.nuke(["bucket"])

        assert results[0].succeeded
        client.get_paginator.assert_called_once_with("list_object_versions")
        assert client.delete_objects.call_count == 2
        first_chunk = client.delete_objects.call_args_list[0].kwargs["Delete"]["Objects"]
        second_chunk = client.delete_objects.call_args_list[1].kwargs["Delete"]["Objects"]
        assert len(first_chunk) == DELETE_OBJECTS_CHUNK_SIZE
        assert second_chunk[-1] == {"Key": "gone", "VersionId": "m1"}
        client.delete_bucket.assert_called_once_with(Bucket="bucket")

    @patch("awsnuke.resources.base.time.sleep")
    def test_empty_bucket_deleted_directly(self, mock_sleep: Mock) -> None:
        """Test an empty bucket needs no DeleteObjects call."""
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = [{}]
        resource = bind(client)

        resource.nuke(["bucket"])

        client.delete_objects.assert_not_called()
        client.delete_bucket.assert_called_once_with(Bucket="bucket")
