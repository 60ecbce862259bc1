"""Error taxonomy for nuke runs.

Discovery errors and batching misuse propagate to the orchestrator, which logs
them and moves on to the next resource type. Per-identifier delete errors never
propagate: they are carried inside NukeResult entries.
"""

from __future__ import annotations

from typing import Optional

from botocore.exceptions import ClientError

# AWS error codes that mean the caller lacks permission for the action
PERMISSION_ERROR_CODES = {"UnauthorizedOperation", "AccessDenied", "AccessDeniedException", "AuthFailure"}

# AWS error codes that mean the resource is already gone
NOT_FOUND_ERROR_CODES = {
    "InvalidInstanceID.NotFound",
    "InvalidVolume.NotFound",
    "InvalidSnapshot.NotFound",
    "InvalidAMIID.NotFound",
    "InvalidAMIID.Unavailable",
    "InvalidKeyPair.NotFound",
    "InvalidAllocationID.NotFound",
    "InvalidVpcID.NotFound",
    "InvalidInternetGatewayID.NotFound",
    "InvalidGroup.NotFound",
    "InvalidSubnetID.NotFound",
    "NatGatewayNotFound",
    "NoSuchEntity",
    "NoSuchBucket",
    "NotFound",
    "ResourceNotFoundException",
    "AWS.SimpleQueueService.NonExistentQueue",
}

# AWS error codes raised when an API rate limit is hit
THROTTLING_ERROR_CODES = {
    "RequestLimitExceeded",
    "Throttling",
    "ThrottlingException",
    "TooManyRequestsException",
}

DEPENDENCY_ERROR_CODES = {"DependencyViolation", "DeleteConflict", "ResourceInUse", "ResourceInUseException"}


def get_error_code(error: BaseException) -> Optional[str]:
    """Return the AWS error code carried by an exception, if any."""
    if isinstance(error, DeleteError):
        return error.error_code
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Code")
    return None


def describe_aws_error(error: BaseException) -> str:
    """Translate an AWS error into a short human-readable message."""
    if isinstance(error, ClientError):
        error_code = error.response.get("Error", {}).get("Code", "Unknown")
        error_message = error.response.get("Error", {}).get("Message", str(error))
        if error_code in PERMISSION_ERROR_CODES:
            return f"insufficient permission ({error_code})"
        return f"{error_code}: {error_message}"
    return str(error)


class NukeError(Exception):
    """Base class for all awsnuke errors."""


class ConfigError(NukeError):
    """Filter configuration could not be parsed."""


class InvalidRegionError(NukeError):
    """A requested region is not enabled for the account."""


class DiscoveryError(NukeError):
    """Listing resources of one type failed.

    Short-circuits discovery for that resource type only.
    """

    def __init__(self, resource_type: str, region: str, cause: BaseException) -> None:
        self.resource_type = resource_type
        self.region = region
        self.cause = cause
        super().__init__(f"{resource_type}: failed to list resources in {region}: {describe_aws_error(cause)}")


class FilterEvaluationError(NukeError):
    """A filter rule is malformed (for example an invalid regular expression)."""

    def __init__(self, pattern: str, reason: str) -> None:
        self.pattern = pattern
        super().__init__(f"invalid filter pattern {pattern!r}: {reason}")


class DeleteError(NukeError):
    """Deleting a single identifier failed."""

    def __init__(self, resource_type: str, identifier: str, message: str, error_code: Optional[str] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier
        self.error_code = error_code
        self.message = message
        super().__init__(f"{resource_type} {identifier}: {message}")

    @classmethod
    def from_exception(cls, resource_type: str, identifier: str, error: BaseException) -> "DeleteError":
        """Wrap an arbitrary exception raised while deleting an identifier."""
        if isinstance(error, DeleteError):
            return error
        return cls(resource_type, identifier, describe_aws_error(error), error_code=get_error_code(error))

    @property
    def is_throttling(self) -> bool:
        return self.error_code in THROTTLING_ERROR_CODES


class TooManyRequestedError(NukeError):
    """A single nuke call received more identifiers than the type allows."""

    def __init__(self, resource_type: str, requested: int, limit: int) -> None:
        self.resource_type = resource_type
        self.requested = requested
        self.limit = limit
        super().__init__(f"too many {resource_type} requested at once ({requested} > {limit} limit)")


class BatchNukeError(NukeError):
    """Combined per-identifier failures of one resource type's delete phase."""

    def __init__(self, resource_type: str, errors: list[DeleteError]) -> None:
        self.resource_type = resource_type
        self.errors = errors
        super().__init__(f"{len(errors)} {resource_type} deletion(s) failed: " + "; ".join(str(e) for e in errors))
