"""SNS resource types."""

from __future__ import annotations

from typing import Iterable

from ..models.candidate_resource import CandidateResource
from ..utils.time import FIRST_SEEN_TAG_KEY
from .base import BaseAwsResource, tags_to_dict


class SnsTopics(BaseAwsResource):
    """SNS topics; age comes from the first-seen tag."""

    @property
    def resource_name(self) -> str:
        return "sns"

    @property
    def service_name(self) -> str:
        return "sns"

    @property
    def tracks_first_seen(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for topic in self._paginate("list_topics", "Topics"):
            topic_arn = topic["TopicArn"]
            response = self.client.list_tags_for_resource(ResourceArn=topic_arn)
            yield CandidateResource(
                identifier=topic_arn,
                name=topic_arn.rsplit(":", 1)[-1],
                tags=tags_to_dict(response.get("Tags")),
            )

    def tag_first_seen(self, identifier: str, value: str) -> None:
        self.client.tag_resource(ResourceArn=identifier, Tags=[{"Key": FIRST_SEEN_TAG_KEY, "Value": value}])

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_topic(TopicArn=identifier)
