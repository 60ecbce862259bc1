"""Filter rule model.

Inclusion/exclusion rules applied to discovered resources of one resource type.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from ..utils.time import ensure_utc, parse_timestamp


@dataclass
class FilterRule:
    """Per-resource-type filter rule.

    A resource is eligible when:
        - include_names is empty or its name matches one of the patterns
        - its name matches none of exclude_names
        - its creation time is not after exclude_after
        - its creation time is after include_after (when set)
        - it carries ALL include_tags and NONE of exclude_tags

    Exclusion wins when a name matches both include and exclude patterns.
    Resources without a creation time are always eligible by time.

    Attributes:
        include_names: Regular expressions a name must match (any)
        exclude_names: Regular expressions that exclude a name (any)
        exclude_after: Resources created after this instant are excluded
        include_after: Only resources created after this instant are included
        include_tags: Tag key -> value regex, resource must match all
        exclude_tags: Tag key -> value regex, resource must match none
    """

    include_names: List[str] = field(default_factory=list)
    exclude_names: List[str] = field(default_factory=list)
    exclude_after: Optional[datetime] = None
    include_after: Optional[datetime] = None
    include_tags: Dict[str, str] = field(default_factory=dict)
    exclude_tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.exclude_after = ensure_utc(self.exclude_after)
        self.include_after = ensure_utc(self.include_after)

    @property
    def is_empty(self) -> bool:
        return not (
            self.include_names
            or self.exclude_names
            or self.exclude_after
            or self.include_after
            or self.include_tags
            or self.exclude_tags
        )

    def with_time_bounds(
        self, exclude_after: Optional[datetime] = None, include_after: Optional[datetime] = None
    ) -> "FilterRule":
        """Return a copy with run-wide time bounds applied.

        Both windows must hold, so the earlier exclude_after and the later
        include_after win.
        """
        return replace(
            self,
            include_names=list(self.include_names),
            exclude_names=list(self.exclude_names),
            include_tags=dict(self.include_tags),
            exclude_tags=dict(self.exclude_tags),
            exclude_after=_earliest(self.exclude_after, ensure_utc(exclude_after)),
            include_after=_latest(self.include_after, ensure_utc(include_after)),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert rule to the filter config file layout."""
        include: Dict[str, Any] = {}
        exclude: Dict[str, Any] = {}
        if self.include_names:
            include["names_regex"] = list(self.include_names)
        if self.include_tags:
            include["tags"] = dict(self.include_tags)
        if self.include_after:
            include["time_after"] = self.include_after.isoformat()
        if self.exclude_names:
            exclude["names_regex"] = list(self.exclude_names)
        if self.exclude_tags:
            exclude["tags"] = dict(self.exclude_tags)
        if self.exclude_after:
            exclude["time_after"] = self.exclude_after.isoformat()

        data: Dict[str, Any] = {}
        if include:
            data["include"] = include
        if exclude:
            data["exclude"] = exclude
        return data

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FilterRule":
        """Create rule from the filter config file layout.

        Raises:
            ValueError: If the section contains unknown keys or malformed values
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"expected a mapping, got {type(data).__name__}")

        unknown = set(data) - {"include", "exclude"}
        if unknown:
            raise ValueError(f"unknown keys: {', '.join(sorted(unknown))}")

        include = _parse_section(data.get("include"), "include")
        exclude = _parse_section(data.get("exclude"), "exclude")

        return cls(
            include_names=include["names_regex"],
            exclude_names=exclude["names_regex"],
            include_after=include["time_after"],
            exclude_after=exclude["time_after"],
            include_tags=include["tags"],
            exclude_tags=exclude["tags"],
        )


def _earliest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None or b is None:
        return a or b
    return min(a, b)


def _latest(a: Optional[datetime], b: Optional[datetime]) -> Optional[datetime]:
    if a is None or b is None:
        return a or b
    return max(a, b)


def _parse_section(section: Optional[Dict[str, Any]], label: str) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {"names_regex": [], "tags": {}, "time_after": None}
    if not section:
        return parsed
    if not isinstance(section, dict):
        raise ValueError(f"'{label}' must be a mapping")

    unknown = set(section) - set(parsed)
    if unknown:
        raise ValueError(f"unknown keys in '{label}': {', '.join(sorted(unknown))}")

    names = section.get("names_regex") or []
    if isinstance(names, str):
        names = [names]
    if not isinstance(names, list):
        raise ValueError(f"'{label}.names_regex' must be a list of patterns")
    parsed["names_regex"] = [str(n) for n in names]

    tags = section.get("tags") or {}
    if not isinstance(tags, dict):
        raise ValueError(f"'{label}.tags' must be a mapping of tag key to pattern")
    parsed["tags"] = {str(k): str(v) for k, v in tags.items()}

    time_after = section.get("time_after")
    if time_after is not None:
        if isinstance(time_after, (datetime, date)):
            parsed["time_after"] = ensure_utc(time_after)
        else:
            parsed["time_after"] = parse_timestamp(str(time_after))

    return parsed
