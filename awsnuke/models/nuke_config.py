"""Nuke filter configuration.

Per-resource-type filter rules loaded from a YAML file, plus run-wide options
supplied on the command line.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from ..nuke.errors import ConfigError
from .filter_rule import FilterRule


@dataclass
class NukeConfig:
    """Filter configuration for a nuke run.

    Attributes:
        rules: Resource type name -> filter rule
        exclude_after: Run-wide cutoff, resources created after it are kept
        include_after: Run-wide lower bound, only resources created after it are nuked
        exclude_first_seen: Do not tag resources that lack a creation time
        default_only: Target only account defaults (default VPCs and their default security groups)
    """

    rules: Dict[str, FilterRule] = field(default_factory=dict)
    exclude_after: Optional[datetime] = None
    include_after: Optional[datetime] = None
    exclude_first_seen: bool = False
    default_only: bool = False

    def rule_for(self, resource_type: str) -> FilterRule:
        """Return the effective filter rule for a resource type.

        Run-wide time bounds are applied on top of the per-type rule.
        """
        rule = self.rules.get(resource_type.lower(), FilterRule())
        return rule.with_time_bounds(exclude_after=self.exclude_after, include_after=self.include_after)

    def to_dict(self) -> Dict[str, Any]:
        """Convert per-type rules to the filter config file layout, omitting empty rules."""
        return {name: rule.to_dict() for name, rule in sorted(self.rules.items()) if not rule.is_empty}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NukeConfig":
        """Create config from the parsed YAML document.

        Raises:
            ConfigError: If any resource type section is malformed
        """
        if not data:
            return cls()
        if not isinstance(data, dict):
            raise ConfigError("Filter config must be a mapping of resource type to rules")

        rules: Dict[str, FilterRule] = {}
        for resource_type, section in data.items():
            try:
                rules[str(resource_type).lower()] = FilterRule.from_dict(section)
            except ValueError as e:
                raise ConfigError(f"Invalid filter config for '{resource_type}': {e}") from e

        return cls(rules=rules)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "NukeConfig":
        """Load filter config from a YAML file.

        Raises:
            ConfigError: If the file is missing or is not valid YAML
        """
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise ConfigError(f"Filter config file not found: {config_path}")

        try:
            with open(config_path, "r") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

        return cls.from_dict(data)
