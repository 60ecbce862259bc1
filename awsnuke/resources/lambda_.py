"""Lambda resource types."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource

# Lambda reports LastModified as e.g. 2024-01-31T12:00:00.000+0000
LAST_MODIFIED_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


class LambdaFunctions(BaseAwsResource):
    """Lambda functions, aged by their last modification time."""

    @property
    def resource_name(self) -> str:
        return "lambda"

    @property
    def service_name(self) -> str:
        return "lambda"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for function in self._paginate("list_functions", "Functions"):
            created_at = None
            if function.get("LastModified"):
                created_at = datetime.strptime(function["LastModified"], LAST_MODIFIED_FORMAT)
            tags = self.client.list_tags(Resource=function["FunctionArn"]).get("Tags", {})
            yield CandidateResource(identifier=function["FunctionName"], created_at=created_at, tags=dict(tags))

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_function(FunctionName=identifier)
