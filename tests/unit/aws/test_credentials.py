"""Tests for AWS client construction and credential validation."""

from __future__ import annotations

from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import NoCredentialsError, ProfileNotFound

from awsnuke.aws.client import CLIENT_CONFIG, create_boto_client
from awsnuke.aws.credentials import CredentialValidationError, validate_credentials
from tests.fixtures.resources import make_client_error


class TestCreateBotoClient:
    """Test suite for create_boto_client()."""

    def test_uses_given_session(self) -> None:
        """Test clients are built from an existing session with the shared config."""
        session = MagicMock()

        client = create_boto_client("sqs", region_name="eu-west-1", session=session)

        assert client is session.client.return_value
        session.client.assert_called_once_with("sqs", region_name="eu-west-1", config=CLIENT_CONFIG)

    @patch("awsnuke.aws.client.create_session")
    def test_creates_session_from_profile(self, mock_create_session: Mock) -> None:
        """Test a session is created when none is given."""
        create_boto_client("sts", profile_name="dev")

        mock_create_session.assert_called_once_with(profile_name="dev", region_name=None)


@patch("awsnuke.aws.credentials.create_boto_client")
class TestValidateCredentials:
    """Test suite for validate_credentials()."""

    def test_success(self, mock_create_client: Mock) -> None:
        """Test the caller identity is returned."""
        mock_create_client.return_value.get_caller_identity.return_value = {
            "Account": "123456789012",
            "Arn": "arn:aws:iam::123456789012:user/alice",
            "UserId": "AIDA123",
        }

        identity = validate_credentials("dev")

        assert identity == {
            "account_id": "123456789012",
            "arn": "arn:aws:iam::123456789012:user/alice",
            "user_id": "AIDA123",
        }
        mock_create_client.assert_called_once_with("sts", profile_name="dev")

    def test_profile_not_found(self, mock_create_client: Mock) -> None:
        """Test an unknown profile is reported."""
        mock_create_client.side_effect = ProfileNotFound(profile="missing")

        with pytest.raises(CredentialValidationError, match="profile not found"):
            validate_credentials("missing")

    def test_no_credentials(self, mock_create_client: Mock) -> None:
        """Test missing credentials are reported."""
        mock_create_client.return_value.get_caller_identity.side_effect = NoCredentialsError()

        with pytest.raises(CredentialValidationError, match="No AWS credentials"):
            validate_credentials()

    def test_expired_token(self, mock_create_client: Mock) -> None:
        """Test rejected credentials include the error code."""
        mock_create_client.return_value.get_caller_identity.side_effect = make_client_error(
            "ExpiredToken", "GetCallerIdentity"
        )

        with pytest.raises(CredentialValidationError, match="ExpiredToken"):
            validate_credentials()
