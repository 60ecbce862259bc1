"""Tests for the nuke error taxonomy."""

from __future__ import annotations

from awsnuke.nuke.errors import (
    BatchNukeError,
    DeleteError,
    DiscoveryError,
    TooManyRequestedError,
    describe_aws_error,
    get_error_code,
)
from tests.fixtures.resources import make_client_error


class TestErrorHelpers:
    """Test suite for error helpers."""

    def test_get_error_code_from_client_error(self) -> None:
        """Test the AWS error code is extracted from a ClientError."""
        assert get_error_code(make_client_error("DependencyViolation")) == "DependencyViolation"

    def test_get_error_code_other_exception(self) -> None:
        """Test non-AWS exceptions carry no code."""
        assert get_error_code(RuntimeError("x")) is None

    def test_describe_permission_error(self) -> None:
        """Test permission errors get a short message."""
        assert describe_aws_error(make_client_error("AccessDenied")) == "insufficient permission (AccessDenied)"

    def test_describe_other_client_error(self) -> None:
        """Test other AWS errors show code and message."""
        error = make_client_error("DependencyViolation", message="has dependencies")

        assert describe_aws_error(error) == "DependencyViolation: has dependencies"


class TestErrorTypes:
    """Test suite for error classes."""

    def test_delete_error_from_client_error(self) -> None:
        """Test wrapping a ClientError keeps its code."""
        error = DeleteError.from_exception("ec2", "i-1", make_client_error("RequestLimitExceeded"))

        assert error.error_code == "RequestLimitExceeded"
        assert error.is_throttling
        assert str(error).startswith("ec2 i-1: ")

    def test_delete_error_from_delete_error(self) -> None:
        """Test an existing DeleteError is returned unchanged."""
        original = DeleteError("ec2", "i-1", "in use")

        assert DeleteError.from_exception("ec2", "i-1", original) is original

    def test_discovery_error_message(self) -> None:
        """Test discovery errors name the type and region."""
        error = DiscoveryError("sqs", "eu-west-1", make_client_error("AccessDenied"))

        assert str(error) == "sqs: failed to list resources in eu-west-1: insufficient permission (AccessDenied)"

    def test_too_many_requested_message(self) -> None:
        """Test the message names the requested count and limit."""
        error = TooManyRequestedError("ec2", 150, 100)

        assert error.requested == 150
        assert "150 > 100" in str(error)

    def test_batch_nuke_error_combines_errors(self) -> None:
        """Test every per-identifier error is listed."""
        errors = [DeleteError("ec2", "i-1", "a"), DeleteError("ec2", "i-2", "b")]

        error = BatchNukeError("ec2", errors)

        assert error.errors == errors
        assert "2 ec2 deletion(s) failed" in str(error)
        assert "i-2" in str(error)
