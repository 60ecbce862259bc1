"""Tests for NukeConfig model."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from awsnuke.models.candidate_resource import CandidateResource
from awsnuke.models.filter_rule import FilterRule
from awsnuke.models.nuke_config import NukeConfig
from awsnuke.nuke.errors import ConfigError
from awsnuke.nuke.filtering import ResourceFilter
from awsnuke.utils.time import utc_now


class TestNukeConfig:
    """Test suite for NukeConfig."""

    def test_rule_for_unknown_type_is_empty(self) -> None:
        """Test types without a section get an empty rule."""
        assert NukeConfig().rule_for("ec2").is_empty

    def test_rule_for_applies_run_wide_bounds(self) -> None:
        """Test run-wide time bounds are merged into the per-type rule."""
        cutoff = datetime(2025, 1, 1, tzinfo=timezone.utc)
        config = NukeConfig(rules={"s3": FilterRule(include_names=["^tmp-"])}, exclude_after=cutoff)

        rule = config.rule_for("S3")

        assert rule.include_names == ["^tmp-"]
        assert rule.exclude_after == cutoff
        assert config.rules["s3"].exclude_after is None

    def test_run_wide_older_than_not_loosened_by_type_cutoff(self) -> None:
        """Test a later per-type cutoff does not let recent resources through."""
        now = utc_now()
        config = NukeConfig(
            rules={"s3": FilterRule(exclude_after=datetime(2099, 1, 1, tzinfo=timezone.utc))},
            exclude_after=now - timedelta(days=7),
        )
        candidates = [
            CandidateResource(identifier="made-yesterday", created_at=now - timedelta(days=1)),
            CandidateResource(identifier="made-last-month", created_at=now - timedelta(days=30)),
        ]

        eligible = ResourceFilter(config.rule_for("s3")).filter(candidates)

        assert [c.identifier for c in eligible] == ["made-last-month"]

    def test_run_wide_newer_than_not_loosened_by_type_bound(self) -> None:
        """Test an earlier per-type include bound does not let old resources through."""
        now = utc_now()
        config = NukeConfig(
            rules={"s3": FilterRule(include_after=datetime(2000, 1, 1, tzinfo=timezone.utc))},
            include_after=now - timedelta(days=7),
        )

        assert config.rule_for("s3").include_after == now - timedelta(days=7)

    def test_to_dict_omits_empty_rules(self) -> None:
        """Test only types with criteria are reported."""
        config = NukeConfig(rules={"sqs": FilterRule(), "s3": FilterRule(exclude_names=["-keep$"])})

        assert config.to_dict() == {"s3": {"exclude": {"names_regex": ["-keep$"]}}}

    def test_from_dict_lowercases_types(self) -> None:
        """Test resource type keys are case-insensitive."""
        config = NukeConfig.from_dict({"EC2": {"exclude": {"names_regex": ["prod"]}}})

        assert config.rules["ec2"].exclude_names == ["prod"]

    def test_from_dict_invalid_section(self) -> None:
        """Test a malformed section raises ConfigError naming the type."""
        with pytest.raises(ConfigError, match="'s3'"):
            NukeConfig.from_dict({"s3": {"bogus": {}}})

    def test_from_dict_not_a_mapping(self) -> None:
        """Test a non-mapping document is rejected."""
        with pytest.raises(ConfigError):
            NukeConfig.from_dict(["ec2"])

    def test_load_yaml(self, tmp_path: Path) -> None:
        """Test loading a filter config file."""
        config_file = tmp_path / "filters.yaml"
        config_file.write_text(
            "s3:\n"
            "  include:\n"
            "    names_regex:\n"
            "      - ^test-\n"
            "ec2:\n"
            "  exclude:\n"
            "    tags:\n"
            "      env: prod\n"
        )

        config = NukeConfig.load(config_file)

        assert config.rules["s3"].include_names == ["^test-"]
        assert config.rules["ec2"].exclude_tags == {"env": "prod"}

    def test_load_empty_file(self, tmp_path: Path) -> None:
        """Test an empty file yields an empty config."""
        config_file = tmp_path / "empty.yaml"
        config_file.write_text("")

        assert NukeConfig.load(config_file).rules == {}

    def test_load_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            NukeConfig.load(tmp_path / "missing.yaml")

    def test_load_invalid_yaml(self, tmp_path: Path) -> None:
        """Test malformed YAML raises ConfigError."""
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("s3: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            NukeConfig.load(config_file)
