"""Base class for AWS resource type adapters.

Implements the NukeableResource contract once. Concrete types only list their
candidates and delete identifiers, either one at a time or in bulk.
"""

from __future__ import annotations

import logging
import time
from abc import abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..aws.client import create_boto_client
from ..aws.regions import GLOBAL_REGION
from ..models.candidate_resource import CandidateResource
from ..models.nuke_config import NukeConfig
from ..models.nuke_result import NukeResult
from ..nuke.errors import (
    DEPENDENCY_ERROR_CODES,
    NOT_FOUND_ERROR_CODES,
    THROTTLING_ERROR_CODES,
    ConfigError,
    DeleteError,
    DiscoveryError,
    TooManyRequestedError,
    get_error_code,
)
from ..nuke.filtering import ResourceFilter
from ..nuke.resource import NukeableResource
from ..utils.time import FIRST_SEEN_TAG_KEY, format_timestamp, parse_timestamp, utc_now

RETRYABLE_ERROR_CODES = DEPENDENCY_ERROR_CODES | THROTTLING_ERROR_CODES


def tags_to_dict(tags: Optional[Iterable[Dict[str, str]]]) -> Dict[str, str]:
    """Convert an AWS [{"Key": ..., "Value": ...}] tag list to a dictionary."""
    return {tag["Key"]: tag.get("Value", "") for tag in tags or []}


class BaseAwsResource(NukeableResource):
    """Shared discovery and deletion behaviour for AWS resource types.

    Subclasses provide resource_name, service_name and list_candidates(), plus
    either delete_identifier() or, when supports_bulk_delete is True,
    delete_identifiers().

    Types whose API exposes no creation time set tracks_first_seen and
    implement tag_first_seen(); candidates listed without created_at are then
    stamped with a first-seen tag and evaluated against that time.
    """

    DEFAULT_BATCH_SIZE = 10
    MAX_BATCH_SIZE_LIMIT = 100
    MAX_DELETE_ATTEMPTS = 3
    RETRY_BASE_DELAY = 1.0

    def __init__(self) -> None:
        self.session: Optional[boto3.session.Session] = None
        self.region: Optional[str] = None
        self.logger = logging.getLogger(self.__class__.__module__)
        self._client: Any = None
        self._identifiers: List[str] = []
        self._exclude_first_seen = False
        self.default_only = False

    @property
    @abstractmethod
    def service_name(self) -> str:
        """boto3 service name used to create the client."""

    @property
    def supports_bulk_delete(self) -> bool:
        return False

    @property
    def tracks_first_seen(self) -> bool:
        return False

    @property
    def supports_tags(self) -> bool:
        """False for types whose API cannot tag resources; tag filters are then rejected."""
        return True

    @property
    def max_batch_size(self) -> int:
        return self.DEFAULT_BATCH_SIZE

    @property
    def hard_limit(self) -> int:
        return self.MAX_BATCH_SIZE_LIMIT

    @property
    def is_global(self) -> bool:
        return False

    @property
    def resource_identifiers(self) -> List[str]:
        return list(self._identifiers)

    def init(self, session: boto3.session.Session, region: str) -> None:
        if self.session is session and self.region == region:
            return
        self.session = session
        self.region = region
        self._client = None

    @property
    def client(self):
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self, service_name: Optional[str] = None):
        """Create a boto3 client bound to this resource type's region.

        Global types use the session's default region.
        """
        if self.session is None:
            raise RuntimeError(f"{self.resource_name} used before init()")
        region_name = self.session.region_name if self.region == GLOBAL_REGION else self.region
        return create_boto_client(service_name or self.service_name, region_name=region_name, session=self.session)

    def _paginate(self, operation: str, key: str, **kwargs) -> List[dict]:
        """Collect every item under key across all pages of a list/describe call."""
        paginator = self.client.get_paginator(operation)
        items = []
        for page in paginator.paginate(**kwargs):
            items.extend(page.get(key, []))
        return items

    # Hooks implemented by concrete resource types

    @abstractmethod
    def list_candidates(self) -> Iterable[CandidateResource]:
        """List every resource of this type in the bound region."""

    def delete_identifier(self, identifier: str) -> None:
        raise NotImplementedError(f"{self.resource_name} does not implement per-item deletion")

    def delete_identifiers(self, identifiers: List[str]) -> Dict[str, Exception]:
        """Delete identifiers with one bulk API call.

        Returns:
            Identifier -> error for identifiers the API reported as failed
        """
        raise NotImplementedError(f"{self.resource_name} does not implement bulk deletion")

    def tag_first_seen(self, identifier: str, value: str) -> None:
        raise NotImplementedError(f"{self.resource_name} does not track first-seen time")

    # Contract

    def get_and_set_identifiers(self, config: NukeConfig) -> List[str]:
        rule = config.rule_for(self.resource_name)
        if not self.supports_tags and (rule.include_tags or rule.exclude_tags):
            raise ConfigError(f"{self.resource_name} resources cannot be tagged; remove its tag filters")
        resource_filter = ResourceFilter(rule)
        self._exclude_first_seen = config.exclude_first_seen
        self.default_only = config.default_only

        try:
            candidates = list(self.list_candidates())
        except (ClientError, BotoCoreError) as e:
            self._identifiers = []
            raise DiscoveryError(self.resource_name, self.region or "", e) from e

        if self.tracks_first_seen:
            candidates = self._resolve_first_seen(candidates)

        eligible = resource_filter.filter(candidates)
        self._identifiers = [candidate.identifier for candidate in eligible]
        self.logger.debug(
            f"Found {len(self._identifiers)} of {len(candidates)} {self.resource_name} eligible in {self.region}"
        )
        return list(self._identifiers)

    def _resolve_first_seen(self, candidates: List[CandidateResource]) -> List[CandidateResource]:
        """Fill created_at from the first-seen tag, tagging resources seen for the first time.

        A candidate whose tag cannot be written is skipped for this run.
        """
        if self._exclude_first_seen:
            return candidates

        resolved = []
        for candidate in candidates:
            if candidate.created_at is None and not candidate.terminal:
                first_seen = self._first_seen(candidate)
                if first_seen is None:
                    continue
                candidate.created_at = first_seen
            resolved.append(candidate)
        return resolved

    def _first_seen(self, candidate: CandidateResource):
        value = candidate.tags.get(FIRST_SEEN_TAG_KEY)
        if value:
            try:
                return parse_timestamp(value)
            except ValueError:
                self.logger.warning(f"Ignoring malformed {FIRST_SEEN_TAG_KEY} tag on {candidate.identifier}: {value}")

        now = utc_now()
        try:
            self.tag_first_seen(candidate.identifier, format_timestamp(now))
        except (ClientError, BotoCoreError) as e:
            self.logger.error(f"Unable to set first-seen tag on {self.resource_name} {candidate.identifier}: {e}")
            return None
        return now

    def nuke(self, identifiers: List[str]) -> List[NukeResult]:
        identifiers = list(identifiers)
        if len(identifiers) > self.hard_limit:
            raise TooManyRequestedError(self.resource_name, len(identifiers), self.hard_limit)
        if not identifiers:
            return []

        if self.supports_bulk_delete:
            results = self._nuke_bulk(identifiers)
        else:
            # Create the client up front so workers share it
            _ = self.client
            with ThreadPoolExecutor(max_workers=min(len(identifiers), self.max_batch_size)) as executor:
                results = list(executor.map(self._delete_with_retry, identifiers))

        for result in results:
            if result.succeeded:
                self.logger.debug(f"[OK] Deleted {self.resource_name}: {result.identifier}")
            else:
                self.logger.error(f"[Failed] {self.resource_name} {result.identifier}: {result.error}")
        return results

    def _nuke_bulk(self, identifiers: List[str]) -> List[NukeResult]:
        try:
            failures = self.delete_identifiers(identifiers) or {}
        except Exception as e:
            return [
                NukeResult(
                    self.resource_name, identifier, DeleteError.from_exception(self.resource_name, identifier, e)
                )
                for identifier in identifiers
            ]

        results = []
        for identifier in identifiers:
            error = failures.get(identifier)
            if error is not None:
                error = DeleteError.from_exception(self.resource_name, identifier, error)
            results.append(NukeResult(self.resource_name, identifier, error))
        return results

    def _delete_with_retry(self, identifier: str) -> NukeResult:
        """Delete one identifier, retrying dependency and throttling errors with backoff."""
        for attempt in range(self.MAX_DELETE_ATTEMPTS):
            try:
                self.delete_identifier(identifier)
                return NukeResult(self.resource_name, identifier)
            except ClientError as e:
                error_code = get_error_code(e)
                if error_code in NOT_FOUND_ERROR_CODES:
                    self.logger.info(f"{self.resource_name} {identifier} already deleted")
                    return NukeResult(self.resource_name, identifier)
                if error_code in RETRYABLE_ERROR_CODES and attempt < self.MAX_DELETE_ATTEMPTS - 1:
                    wait_time = self.RETRY_BASE_DELAY * 2**attempt
                    self.logger.debug(
                        f"{error_code} for {identifier}, retrying in {wait_time:g}s "
                        f"(attempt {attempt + 1}/{self.MAX_DELETE_ATTEMPTS})"
                    )
                    time.sleep(wait_time)
                    continue
                return NukeResult(
                    self.resource_name, identifier, DeleteError.from_exception(self.resource_name, identifier, e)
                )
            except Exception as e:
                return NukeResult(
                    self.resource_name, identifier, DeleteError.from_exception(self.resource_name, identifier, e)
                )

        # All retries exhausted
        message = f"failed after {self.MAX_DELETE_ATTEMPTS} attempts"
        return NukeResult(self.resource_name, identifier, DeleteError(self.resource_name, identifier, message))
