"""CloudWatch and CloudWatch Logs resource types."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, Iterable, List

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict


class CloudWatchAlarms(BaseAwsResource):
    """Metric and composite alarms, deleted with one DeleteAlarms call per batch."""

    @property
    def resource_name(self) -> str:
        return "cloudwatch-alarm"

    @property
    def service_name(self) -> str:
        return "cloudwatch"

    @property
    def max_batch_size(self) -> int:
        # DeleteAlarms accepts at most 100 names
        return 99

    @property
    def supports_bulk_delete(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        paginator = self.client.get_paginator("describe_alarms")
        for page in paginator.paginate(AlarmTypes=["MetricAlarm", "CompositeAlarm"]):
            for alarm in page.get("MetricAlarms", []) + page.get("CompositeAlarms", []):
                yield CandidateResource(
                    identifier=alarm["AlarmName"],
                    created_at=alarm.get("AlarmConfigurationUpdatedTimestamp"),
                    tags=tags_to_dict(self.client.list_tags_for_resource(ResourceARN=alarm["AlarmArn"]).get("Tags")),
                )

    def delete_identifiers(self, identifiers: List[str]) -> Dict[str, Exception]:
        cloudwatch = self.client

        # Composite alarms that reference other alarms block their deletion
        response = cloudwatch.describe_alarms(AlarmNames=identifiers, AlarmTypes=["CompositeAlarm"])
        for alarm in response.get("CompositeAlarms", []):
            cloudwatch.put_composite_alarm(AlarmName=alarm["AlarmName"], AlarmRule="FALSE")

        cloudwatch.delete_alarms(AlarmNames=identifiers)
        return {}


class CloudWatchDashboards(BaseAwsResource):
    """CloudWatch dashboards, deleted with one DeleteDashboards call per batch."""

    @property
    def resource_name(self) -> str:
        return "cloudwatch-dashboard"

    @property
    def service_name(self) -> str:
        return "cloudwatch"

    @property
    def supports_tags(self) -> bool:
        return False

    @property
    def supports_bulk_delete(self) -> bool:
        return True

    def list_candidates(self) -> Iterable[CandidateResource]:
        for dashboard in self._paginate("list_dashboards", "DashboardEntries"):
            yield CandidateResource(identifier=dashboard["DashboardName"], created_at=dashboard.get("LastModified"))

    def delete_identifiers(self, identifiers: List[str]) -> Dict[str, Exception]:
        self.client.delete_dashboards(DashboardNames=identifiers)
        return {}


class CloudWatchLogGroups(BaseAwsResource):
    """CloudWatch Logs log groups."""

    @property
    def resource_name(self) -> str:
        return "cloudwatch-loggroup"

    @property
    def service_name(self) -> str:
        return "logs"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for group in self._paginate("describe_log_groups", "logGroups"):
            created_at = None
            if group.get("creationTime"):
                # Milliseconds since the epoch
                created_at = datetime.fromtimestamp(group["creationTime"] / 1000, tz=timezone.utc)
            # describe_log_groups reports the ARN with a trailing ":*" which tag calls reject
            arn = group.get("logGroupArn") or group["arn"].removesuffix(":*")
            tags = self.client.list_tags_for_resource(resourceArn=arn).get("tags", {})
            yield CandidateResource(identifier=group["logGroupName"], created_at=created_at, tags=dict(tags))

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_log_group(logGroupName=identifier)
