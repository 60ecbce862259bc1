"""Discovery filtering policy.

Decides which discovered candidates of one resource type are eligible for
deletion under a FilterRule.
"""

from __future__ import annotations

import logging
import re
from typing import Dict, Iterable, List, Optional, Pattern

from ..models.candidate_resource import CandidateResource
from ..models.filter_rule import FilterRule
from ..utils.time import ensure_utc
from .errors import FilterEvaluationError

logger = logging.getLogger(__name__)

# Resources tagged with this key and value "true" are never nuked
EXCLUSION_TAG_KEY = "awsnuke-excluded"


def _compile(pattern: str) -> Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise FilterEvaluationError(pattern, str(e)) from e


class ResourceFilter:
    """Compiled form of a FilterRule.

    Patterns are compiled once so a malformed rule fails before any candidate
    is evaluated.

    Attributes:
        rule: The rule being evaluated
    """

    def __init__(self, rule: FilterRule) -> None:
        """Initialize resource filter.

        Args:
            rule: Filter rule for one resource type

        Raises:
            FilterEvaluationError: If any name or tag pattern is not a valid regex
        """
        self.rule = rule
        self._include_names = [_compile(p) for p in rule.include_names]
        self._exclude_names = [_compile(p) for p in rule.exclude_names]
        self._include_tags = {key: _compile(p) for key, p in rule.include_tags.items()}
        self._exclude_tags = {key: _compile(p) for key, p in rule.exclude_tags.items()}

    def filter(self, candidates: Iterable[CandidateResource]) -> List[CandidateResource]:
        """Return the eligible subset of candidates, preserving discovery order.

        A repeated identifier is emitted only once. Two candidates with the same
        name but different identifiers are evaluated independently.
        """
        eligible: List[CandidateResource] = []
        seen = set()
        for candidate in candidates:
            if candidate.identifier in seen:
                continue
            if self.should_include(candidate):
                seen.add(candidate.identifier)
                eligible.append(candidate)
            else:
                logger.debug(f"Skipping {candidate.identifier}: filtered out")
        return eligible

    def should_include(self, candidate: CandidateResource) -> bool:
        """Check whether a single candidate is eligible.

        Args:
            candidate: Discovered resource

        Returns:
            True if the candidate should be deleted
        """
        if candidate.terminal:
            return False
        if candidate.tags.get(EXCLUSION_TAG_KEY, "").lower() == "true":
            return False

        name = candidate.display_name
        if any(p.search(name) for p in self._exclude_names):
            return False
        if self._include_names and not any(p.search(name) for p in self._include_names):
            return False

        if not self._time_allows(candidate.created_at):
            return False

        if _any_tag_matches(self._exclude_tags, candidate.tags):
            return False
        if self._include_tags and not _all_tags_match(self._include_tags, candidate.tags):
            return False

        return True

    def _time_allows(self, created_at) -> bool:
        # No timestamp means eligible by time
        if created_at is None:
            return True
        created_at = ensure_utc(created_at)
        if self.rule.exclude_after and created_at > self.rule.exclude_after:
            return False
        if self.rule.include_after and created_at <= self.rule.include_after:
            return False
        return True


def _any_tag_matches(patterns: Dict[str, Pattern[str]], tags: Dict[str, str]) -> bool:
    return any(key in tags and p.search(tags[key]) for key, p in patterns.items())


def _all_tags_match(patterns: Dict[str, Pattern[str]], tags: Dict[str, str]) -> bool:
    return all(key in tags and p.search(tags[key]) for key, p in patterns.items())


def filter_candidates(
    candidates: Iterable[CandidateResource], rule: Optional[FilterRule] = None
) -> List[CandidateResource]:
    """Return the eligible subset of candidates under rule.

    Raises:
        FilterEvaluationError: If the rule contains a malformed pattern
    """
    return ResourceFilter(rule or FilterRule()).filter(candidates)
