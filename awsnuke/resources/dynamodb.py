"""DynamoDB resource types."""

from __future__ import annotations

from typing import Iterable

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict


class DynamoDbTables(BaseAwsResource):
    """DynamoDB tables."""

    @property
    def resource_name(self) -> str:
        return "dynamodb"

    @property
    def service_name(self) -> str:
        return "dynamodb"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for table_name in self._paginate("list_tables", "TableNames"):
            table = self.client.describe_table(TableName=table_name)["Table"]
            yield CandidateResource(
                identifier=table_name,
                created_at=table.get("CreationDateTime"),
                tags=tags_to_dict(self._paginate("list_tags_of_resource", "Tags", ResourceArn=table["TableArn"])),
                terminal=table.get("TableStatus") == "DELETING",
            )

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_table(TableName=identifier)
