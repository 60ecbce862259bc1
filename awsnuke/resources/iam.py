"""IAM resource types (global)."""

from __future__ import annotations

from typing import Dict, Iterable

from botocore.exceptions import ClientError

from ..models.candidate_resource import CandidateResource
from .base import BaseAwsResource, tags_to_dict


class BaseIamResource(BaseAwsResource):
    """Account-wide IAM resource type living in the global pseudo-region."""

    @property
    def service_name(self) -> str:
        return "iam"

    @property
    def is_global(self) -> bool:
        return True

    def _list_tags(self, operation: str, **kwargs) -> Dict[str, str]:
        """Fetch tags with a list_*_tags call; list_users and friends omit them."""
        return tags_to_dict(self._paginate(operation, "Tags", **kwargs))


class IamUsers(BaseIamResource):
    """IAM users, removed together with their credentials and attachments."""

    @property
    def resource_name(self) -> str:
        return "iam"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for user in self._paginate("list_users", "Users"):
            yield CandidateResource(
                identifier=user["UserName"],
                created_at=user.get("CreateDate"),
                tags=self._list_tags("list_user_tags", UserName=user["UserName"]),
            )

    def delete_identifier(self, identifier: str) -> None:
        iam = self.client

        for policy in self._paginate("list_attached_user_policies", "AttachedPolicies", UserName=identifier):
            iam.detach_user_policy(UserName=identifier, PolicyArn=policy["PolicyArn"])
        for policy_name in self._paginate("list_user_policies", "PolicyNames", UserName=identifier):
            iam.delete_user_policy(UserName=identifier, PolicyName=policy_name)
        for group in self._paginate("list_groups_for_user", "Groups", UserName=identifier):
            iam.remove_user_from_group(UserName=identifier, GroupName=group["GroupName"])

        try:
            iam.delete_login_profile(UserName=identifier)
        except ClientError as e:
            # Users without console access have no login profile
            if e.response.get("Error", {}).get("Code") != "NoSuchEntity":
                raise

        for key in self._paginate("list_access_keys", "AccessKeyMetadata", UserName=identifier):
            iam.delete_access_key(UserName=identifier, AccessKeyId=key["AccessKeyId"])
        for cert in self._paginate("list_signing_certificates", "Certificates", UserName=identifier):
            iam.delete_signing_certificate(UserName=identifier, CertificateId=cert["CertificateId"])
        for ssh_key in self._paginate("list_ssh_public_keys", "SSHPublicKeys", UserName=identifier):
            iam.delete_ssh_public_key(UserName=identifier, SSHPublicKeyId=ssh_key["SSHPublicKeyId"])

        credentials = iam.list_service_specific_credentials(UserName=identifier)
        for credential in credentials.get("ServiceSpecificCredentials", []):
            iam.delete_service_specific_credential(
                UserName=identifier, ServiceSpecificCredentialId=credential["ServiceSpecificCredentialId"]
            )

        for device in self._paginate("list_mfa_devices", "MFADevices", UserName=identifier):
            iam.deactivate_mfa_device(UserName=identifier, SerialNumber=device["SerialNumber"])
            # Virtual devices must also be deleted; hardware serials are not ARNs
            if device["SerialNumber"].startswith("arn:"):
                iam.delete_virtual_mfa_device(SerialNumber=device["SerialNumber"])

        iam.delete_user(UserName=identifier)


class IamGroups(BaseIamResource):
    """IAM groups, emptied of users and policies before deletion."""

    @property
    def resource_name(self) -> str:
        return "iam-group"

    @property
    def supports_tags(self) -> bool:
        return False

    def list_candidates(self) -> Iterable[CandidateResource]:
        for group in self._paginate("list_groups", "Groups"):
            yield CandidateResource(identifier=group["GroupName"], created_at=group.get("CreateDate"))

    def delete_identifier(self, identifier: str) -> None:
        iam = self.client

        for page in iam.get_paginator("get_group").paginate(GroupName=identifier):
            for user in page.get("Users", []):
                iam.remove_user_from_group(GroupName=identifier, UserName=user["UserName"])
        for policy in self._paginate("list_attached_group_policies", "AttachedPolicies", GroupName=identifier):
            iam.detach_group_policy(GroupName=identifier, PolicyArn=policy["PolicyArn"])
        for policy_name in self._paginate("list_group_policies", "PolicyNames", GroupName=identifier):
            iam.delete_group_policy(GroupName=identifier, PolicyName=policy_name)

        iam.delete_group(GroupName=identifier)


class IamRoles(BaseIamResource):
    """IAM roles, excluding service-linked roles managed by AWS."""

    SERVICE_ROLE_PATH_PREFIX = "/aws-service-role/"

    @property
    def resource_name(self) -> str:
        return "iam-role"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for role in self._paginate("list_roles", "Roles"):
            if role.get("Path", "/").startswith(self.SERVICE_ROLE_PATH_PREFIX):
                continue
            yield CandidateResource(
                identifier=role["RoleName"],
                created_at=role.get("CreateDate"),
                tags=self._list_tags("list_role_tags", RoleName=role["RoleName"]),
            )

    def delete_identifier(self, identifier: str) -> None:
        iam = self.client

        for profile in self._paginate("list_instance_profiles_for_role", "InstanceProfiles", RoleName=identifier):
            iam.remove_role_from_instance_profile(
                InstanceProfileName=profile["InstanceProfileName"], RoleName=identifier
            )
        for policy in self._paginate("list_attached_role_policies", "AttachedPolicies", RoleName=identifier):
            iam.detach_role_policy(RoleName=identifier, PolicyArn=policy["PolicyArn"])
        for policy_name in self._paginate("list_role_policies", "PolicyNames", RoleName=identifier):
            iam.delete_role_policy(RoleName=identifier, PolicyName=policy_name)

        iam.delete_role(RoleName=identifier)


class IamPolicies(BaseIamResource):
    """Customer managed IAM policies, detached from every entity before deletion."""

    @property
    def resource_name(self) -> str:
        return "iam-policy"

    def list_candidates(self) -> Iterable[CandidateResource]:
        for policy in self._paginate("list_policies", "Policies", Scope="Local"):
            yield CandidateResource(
                identifier=policy["Arn"],
                name=policy["PolicyName"],
                created_at=policy.get("CreateDate"),
                tags=self._list_tags("list_policy_tags", PolicyArn=policy["Arn"]),
            )

    def delete_identifier(self, identifier: str) -> None:
        iam = self.client

        for page in iam.get_paginator("list_entities_for_policy").paginate(PolicyArn=identifier):
            for user in page.get("PolicyUsers", []):
                iam.detach_user_policy(UserName=user["UserName"], PolicyArn=identifier)
            for group in page.get("PolicyGroups", []):
                iam.detach_group_policy(GroupName=group["GroupName"], PolicyArn=identifier)
            for role in page.get("PolicyRoles", []):
                iam.detach_role_policy(RoleName=role["RoleName"], PolicyArn=identifier)

        for version in self._paginate("list_policy_versions", "Versions", PolicyArn=identifier):
            if not version.get("IsDefaultVersion"):
                iam.delete_policy_version(PolicyArn=identifier, VersionId=version["VersionId"])

        iam.delete_policy(PolicyArn=identifier)

