"""Auto Scaling resource types."""

from __future__ import annotations

from typing import Iterable

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict


class AutoScalingGroups(BaseAwsResource):
    """Auto Scaling groups, force-deleted together with their instances."""

    @property
    def resource_name(self) -> str:
        return "asg"

    @property
    def service_name(self) -> str:
        return "autoscaling"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for group in self._paginate("describe_auto_scaling_groups", "AutoScalingGroups"):
            yield CandidateResource(
                identifier=group["AutoScalingGroupName"],
                created_at=group.get("CreatedTime"),
                tags=tags_to_dict(group.get("Tags")),
                terminal=group.get("Status") == "Delete in progress",
            )

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_auto_scaling_group(AutoScalingGroupName=identifier, ForceDelete=True)
