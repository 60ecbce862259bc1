"""Tests for BaseAwsResource.

Covers discovery, first-seen tagging, per-item retries and bulk deletion using
minimal in-test resource types.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional
from unittest.mock import MagicMock, Mock, patch

import pytest
from botocore.exceptions import ClientError

from awsnuke.aws.regions import GLOBAL_REGION
from awsnuke.models.candidate_resource import CandidateResource
from awsnuke.models.filter_rule import FilterRule
from awsnuke.models.nuke_config import NukeConfig
from awsnuke.nuke.errors import DeleteError, DiscoveryError, TooManyRequestedError
from awsnuke.resources.base import BaseAwsResource, tags_to_dict
from awsnuke.utils.time import FIRST_SEEN_TAG_KEY
from tests.fixtures.resources import make_client_error


class Widgets(BaseAwsResource):
    """Per-item resource type; errors maps identifier -> exceptions raised in turn."""

    def __init__(
        self,
        candidates: Optional[List[CandidateResource]] = None,
        errors: Optional[Dict[str, List[Exception]]] = None,
        list_error: Optional[Exception] = None,
        tag_error: Optional[Exception] = None,
        first_seen: bool = False,
    ) -> None:
        super().__init__()
        self.candidates = list(candidates or [])
        self.errors = {key: list(value) for key, value in (errors or {}).items()}
        self.list_error = list_error
        self.tag_error = tag_error
        self.first_seen = first_seen
        self.deleted: List[str] = []
        self.tagged: List[tuple] = []

    @property
    def resource_name(self) -> str:
        return "widget"

    @property
    def service_name(self) -> str:
        return "widgets"

    @property
    def tracks_first_seen(self) -> bool:
        return self.first_seen

    def list_candidates(self) -> Iterable[CandidateResource]:
        if self.list_error is not None:
            raise self.list_error
        return list(self.candidates)

    def tag_first_seen(self, identifier: str, value: str) -> None:
        if self.tag_error is not None:
            raise self.tag_error
        self.tagged.append((identifier, value))

    def delete_identifier(self, identifier: str) -> None:
        pending = self.errors.get(identifier)
        if pending:
            raise pending.pop(0)
        self.deleted.append(identifier)


class BulkWidgets(Widgets):
    """Bulk resource type; failures maps identifier -> reported error."""

    def __init__(self, failures=None, call_error: Optional[Exception] = None) -> None:
        super().__init__()
        self.failures = dict(failures or {})
        self.call_error = call_error
        self.bulk_calls: List[List[str]] = []

    @property
    def supports_bulk_delete(self) -> bool:
        return True

    def delete_identifiers(self, identifiers: List[str]) -> Dict[str, Exception]:
        self.bulk_calls.append(list(identifiers))
        if self.call_error is not None:
            raise self.call_error
        return {i: e for i, e in self.failures.items() if i in identifiers}


def make_resource(resource: Widgets, region: str = "us-east-1") -> Widgets:
    resource.init(MagicMock(), region)
    return resource


class TestTagsToDict:
    """Test suite for tags_to_dict()."""

    def test_converts_tag_list(self) -> None:
        """Test AWS tag lists become dictionaries."""
        assert tags_to_dict([{"Key": "env", "Value": "dev"}, {"Key": "empty"}]) == {"env": "dev", "empty": ""}

    def test_none(self) -> None:
        """Test missing tags become an empty dictionary."""
        assert tags_to_dict(None) == {}


class TestClient:
    """Client creation and init()."""

    @patch("awsnuke.resources.base.create_boto_client")
    def test_client_created_lazily_once(self, mock_create_client: Mock) -> None:
        """Test the client is created on first use and reused."""
        session = MagicMock()
        resource = Widgets()
        resource.init(session, "eu-west-1")

        assert mock_create_client.call_count == 0
        first = resource.client
        second = resource.client

        assert first is second
        mock_create_client.assert_called_once_with("widgets", region_name="eu-west-1", session=session)

    @patch("awsnuke.resources.base.create_boto_client")
    def test_global_region_uses_session_region(self, mock_create_client: Mock) -> None:
        """Test global types build their client in the session's region."""
        session = MagicMock()
        session.region_name = "us-west-2"
        resource = Widgets()
        resource.init(session, GLOBAL_REGION)

        _ = resource.client

        mock_create_client.assert_called_once_with("widgets", region_name="us-west-2", session=session)

    @patch("awsnuke.resources.base.create_boto_client")
    def test_init_is_idempotent(self, mock_create_client: Mock) -> None:
        """Test re-initializing with the same session and region keeps the client."""
        session = MagicMock()
        resource = Widgets()
        resource.init(session, "us-east-1")
        client = resource.client

        resource.init(session, "us-east-1")

        assert resource.client is client
        assert mock_create_client.call_count == 1

    def test_client_before_init_raises(self) -> None:
        """Test using a resource type before init() fails loudly."""
        with pytest.raises(RuntimeError, match="before init"):
            _ = Widgets().client


class TestDiscovery:
    """get_and_set_identifiers()."""

    def test_filters_and_stores_identifiers(self) -> None:
        """Test eligible identifiers are returned and remembered."""
        resource = make_resource(
            Widgets([CandidateResource("w-1", name="test-a"), CandidateResource("w-2", name="prod-b")])
        )
        config = NukeConfig(rules={"widget": FilterRule(exclude_names=["^prod"])})

        identifiers = resource.get_and_set_identifiers(config)

        assert identifiers == ["w-1"]
        assert resource.resource_identifiers == ["w-1"]

    def test_client_error_becomes_discovery_error(self) -> None:
        """Test listing failures are wrapped with type and region."""
        resource = make_resource(Widgets(list_error=make_client_error("AccessDenied", "ListWidgets")))

        with pytest.raises(DiscoveryError) as exc_info:
            resource.get_and_set_identifiers(NukeConfig())

        assert exc_info.value.resource_type == "widget"
        assert exc_info.value.region == "us-east-1"
        assert resource.resource_identifiers == []


class TestFirstSeen:
    """First-seen tagging for types without a creation time."""

    def test_untagged_resource_is_tagged_with_now(self) -> None:
        """Test a new resource is tagged and treated as created now."""
        resource = make_resource(Widgets([CandidateResource("w-1")], first_seen=True))
        config = NukeConfig(exclude_after=datetime.now(timezone.utc) - timedelta(hours=1))

        identifiers = resource.get_and_set_identifiers(config)

        assert identifiers == []
        assert len(resource.tagged) == 1
        assert resource.tagged[0][0] == "w-1"

    def test_existing_tag_is_used(self) -> None:
        """Test a previously written tag provides the creation time."""
        old = {FIRST_SEEN_TAG_KEY: "2020-01-01T00:00:00Z"}
        resource = make_resource(Widgets([CandidateResource("w-1", tags=old)], first_seen=True))
        config = NukeConfig(exclude_after=datetime.now(timezone.utc) - timedelta(hours=1))

        identifiers = resource.get_and_set_identifiers(config)

        assert identifiers == ["w-1"]
        assert resource.tagged == []

    def test_legacy_tag_format(self) -> None:
        """Test first-seen tags in the older space-separated format are accepted."""
        old = {FIRST_SEEN_TAG_KEY: "2020-01-01 00:00:00"}
        resource = make_resource(Widgets([CandidateResource("w-1", tags=old)], first_seen=True))
        config = NukeConfig(exclude_after=datetime(2021, 1, 1, tzinfo=timezone.utc))

        assert resource.get_and_set_identifiers(config) == ["w-1"]

    def test_exclude_first_seen_skips_tagging(self) -> None:
        """Test no tags are written when first-seen tracking is disabled."""
        resource = make_resource(Widgets([CandidateResource("w-1")], first_seen=True))
        config = NukeConfig(exclude_after=datetime.now(timezone.utc) - timedelta(hours=1), exclude_first_seen=True)

        identifiers = resource.get_and_set_identifiers(config)

        assert identifiers == ["w-1"]
        assert resource.tagged == []

    def test_tag_failure_skips_candidate(self) -> None:
        """Test a resource whose tag cannot be written is left alone."""
        resource = make_resource(
            Widgets(
                [CandidateResource("w-1")],
                first_seen=True,
                tag_error=make_client_error("AccessDenied", "TagResource"),
            )
        )

        assert resource.get_and_set_identifiers(NukeConfig()) == []


@patch("awsnuke.resources.base.time.sleep")
@patch("awsnuke.resources.base.create_boto_client")
class TestPerItemNuke:
    """nuke() for per-item resource types."""

    def test_deletes_every_identifier(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test one successful result per identifier, in input order."""
        resource = make_resource(Widgets())

        results = resource.nuke(["w-1", "w-2", "w-3"])

        assert [r.identifier for r in results] == ["w-1", "w-2", "w-3"]
        assert all(r.succeeded for r in results)
        assert sorted(resource.deleted) == ["w-1", "w-2", "w-3"]

    def test_empty_input(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test no identifiers means no work."""
        assert make_resource(Widgets()).nuke([]) == []

    def test_over_hard_limit_deletes_nothing(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test more identifiers than the hard limit are rejected up front."""
        resource = make_resource(Widgets())

        with pytest.raises(TooManyRequestedError):
            resource.nuke([f"w-{i}" for i in range(resource.hard_limit + 1)])

        assert resource.deleted == []

    def test_not_found_counts_as_deleted(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test a resource that is already gone is reported as deleted."""
        resource = make_resource(Widgets(errors={"w-1": [make_client_error("NotFound")]}))

        results = resource.nuke(["w-1"])

        assert results[0].succeeded

    def test_dependency_violation_retried(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test dependency errors are retried with exponential backoff."""
        resource = make_resource(
            Widgets(errors={"w-1": [make_client_error("DependencyViolation") for _ in range(2)]})
        )

        results = resource.nuke(["w-1"])

        assert results[0].succeeded
        assert [c.args[0] for c in mock_sleep.call_args_list] == [1.0, 2.0]

    def test_retries_exhausted(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test a persistent dependency error fails after the last attempt."""
        resource = make_resource(
            Widgets(errors={"w-1": [make_client_error("DependencyViolation") for _ in range(5)]})
        )

        results = resource.nuke(["w-1"])

        assert not results[0].succeeded
        assert isinstance(results[0].error, DeleteError)
        assert results[0].error.error_code == "DependencyViolation"
        assert mock_sleep.call_count == 2

    def test_failure_isolated_to_identifier(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test a failing identifier does not affect its siblings."""
        resource = make_resource(Widgets(errors={"w-2": [make_client_error("AccessDenied")]}))

        results = resource.nuke(["w-1", "w-2", "w-3"])

        assert [r.succeeded for r in results] == [True, False, True]
        assert "insufficient permission" in str(results[1].error)
        mock_sleep.assert_not_called()

    def test_unexpected_exception(self, mock_create_client: Mock, mock_sleep: Mock) -> None:
        """Test non-AWS exceptions become per-identifier failures."""
        resource = make_resource(Widgets(errors={"w-1": [ValueError("bad")]}))

        results = resource.nuke(["w-1"])

        assert not results[0].succeeded
        assert "bad" in str(results[0].error)


@patch("awsnuke.resources.base.create_boto_client")
class TestBulkNuke:
    """nuke() for bulk resource types."""

    def test_single_call_with_reported_failures(self, mock_create_client: Mock) -> None:
        """Test one bulk call and per-identifier failures from its response."""
        resource = make_resource(BulkWidgets(failures={"w-2": make_client_error("AccessDenied")}))

        results = resource.nuke(["w-1", "w-2"])

        assert resource.bulk_calls == [["w-1", "w-2"]]
        assert [r.succeeded for r in results] == [True, False]
        assert isinstance(results[1].error, DeleteError)

    def test_call_error_fails_every_identifier(self, mock_create_client: Mock) -> None:
        """Test a failed bulk call fails the whole batch."""
        error = ClientError({"Error": {"Code": "RequestLimitExceeded", "Message": "slow down"}}, "DeleteWidgets")
        resource = make_resource(BulkWidgets(call_error=error))

        results = resource.nuke(["w-1", "w-2"])

        assert [r.succeeded for r in results] == [False, False]
        assert all(r.error.is_throttling for r in results)
