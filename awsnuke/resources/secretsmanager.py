"""Secrets Manager resource types."""

from __future__ import annotations

from typing import Iterable

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict


class Secrets(BaseAwsResource):
    """Secrets Manager secrets, deleted without a recovery window."""

    @property
    def resource_name(self) -> str:
        return "secretsmanager"

    @property
    def service_name(self) -> str:
        return "secretsmanager"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for secret in self._paginate("list_secrets", "SecretList"):
            yield CandidateResource(
                identifier=secret["ARN"],
                name=secret.get("Name"),
                created_at=secret.get("CreatedDate"),
                tags=tags_to_dict(secret.get("Tags")),
                terminal="DeletedDate" in secret,
            )

    def delete_identifier(self, identifier: str) -> None:
        self.client.delete_secret(SecretId=identifier, ForceDeleteWithoutRecovery=True)
