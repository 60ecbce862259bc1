"""SQS resource types."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource


class SqsQueues(BaseAwsResource):
    """SQS queues, identified by queue URL."""

    @property
    def resource_name(self) -> str:
        return "sqs"

    @property
    def service_name(self) -> str:
        return "sqs"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for queue_url in self._paginate("list_queues", "QueueUrls"):
            response = self.client.get_queue_attributes(QueueUrl=queue_url, AttributeNames=["CreatedTimestamp"])
            created = response.get("Attributes", {}).get("CreatedTimestamp")
            tags = self.client.list_queue_tags(QueueUrl=queue_url).get("Tags", {})
            yield CandidateResource(
                identifier=queue_url,
                name=queue_url.rstrip("/").rsplit("/", 1)[-1],
                created_at=datetime.fromtimestamp(int(created), tz=timezone.utc) if created else None,
                tags=dict(tags),
            )

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_queue(QueueUrl=identifier)
