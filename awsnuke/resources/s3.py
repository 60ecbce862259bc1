"""S3 resource types."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from botocore.exceptions import ClientError

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict

# DeleteObjects accepts at most 1000 keys per request
DELETE_OBJECTS_CHUNK_SIZE = 1000


def bucket_region(location_constraint: Optional[str]) -> str:
    """Map a GetBucketLocation constraint to a region name."""
    if not location_constraint:
        return "us-east-1"
    if location_constraint == "EU":
        return "eu-west-1"
    return location_constraint


class S3Buckets(BaseAwsResource):
    """S3 buckets in the bound region, emptied of every object version before deletion."""

    @property
    def resource_name(self) -> str:
        return "s3"

    @property
    def service_name(self) -> str:
        return "s3"

    def list_candidates(self) -> Iterable[CandidateResource]:
        s3 = self.client
        for bucket in s3.list_buckets().get("Buckets", []):
            name = bucket["Name"]
            try:
                location = s3.get_bucket_location(Bucket=name).get("LocationConstraint")
            except ClientError as e:
                if e.response.get("Error", {}).get("Code") == "NoSuchBucket":
                    continue
                raise
            if bucket_region(location) != self.region:
                continue

            yield CandidateResource(
                identifier=name,
                created_at=bucket.get("CreationDate"),
                tags=self._bucket_tags(name),
            )

    def _bucket_tags(self, name: str) -> Dict[str, str]:
        try:
            response = self.client.get_bucket_tagging(Bucket=name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in ("NoSuchTagSet", "NoSuchBucket"):
                return {}
            raise
        return tags_to_dict(response.get("TagSet"))

    def delete_identifier(self, identifier: str) -> None:
        self._empty_bucket(identifier)
        self.client.delete_bucket(Bucket=identifier)

    def _empty_bucket(self, name: str) -> None:
        s3 = self.client
        paginator = s3.get_paginator("list_object_versions")
        for page in paginator.paginate(Bucket=name):
            objects: List[dict] = [
                {"Key": item["Key"], "VersionId": item["VersionId"]}
                for item in page.get("Versions", []) + page.get("DeleteMarkers", [])
            ]
            for start in range(0, len(objects), DELETE_OBJECTS_CHUNK_SIZE):
                chunk = objects[start : start + DELETE_OBJECTS_CHUNK_SIZE]
                s3.delete_objects(Bucket=name, Delete={"Objects": chunk, "Quiet": True})
            if objects:
                self.logger.debug(f"Deleted {len(objects)} object version(s) from {name}")
