"""AWS credential validation."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, ProfileNotFound

from .client import create_boto_client

logger = logging.getLogger(__name__)


class CredentialValidationError(Exception):
    """AWS credentials are missing, invalid or expired."""


def validate_credentials(profile_name: Optional[str] = None) -> Dict[str, str]:
    """Validate credentials by calling STS GetCallerIdentity.

    Args:
        profile_name: AWS profile name (optional)

    Returns:
        Dictionary with account_id, arn and user_id

    Raises:
        CredentialValidationError: If credentials cannot be used
    """
    try:
        sts = create_boto_client("sts", profile_name=profile_name)
        response = sts.get_caller_identity()
    except ProfileNotFound as e:
        raise CredentialValidationError(f"AWS profile not found: {profile_name}") from e
    except NoCredentialsError as e:
        raise CredentialValidationError(
            "No AWS credentials found. Configure credentials with 'aws configure' or set AWS_PROFILE."
        ) from e
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        raise CredentialValidationError(f"AWS credentials are invalid or expired ({error_code})") from e
    except BotoCoreError as e:
        raise CredentialValidationError(f"Unable to validate AWS credentials: {e}") from e

    identity = {
        "account_id": response["Account"],
        "arn": response["Arn"],
        "user_id": response["UserId"],
    }
    logger.debug(f"Authenticated as {identity['arn']}")
    return identity
