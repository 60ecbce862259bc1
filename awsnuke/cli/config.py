"""CLI configuration loading."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".awsnuke" / "config.yaml"


@dataclass
class Config:
    """awsnuke CLI configuration.

    Attributes:
        aws_profile: AWS profile name (optional)
        regions: Default target regions, empty for every enabled region
        log_level: Log level when neither --verbose nor --quiet is given
        storage_path: Base directory for audit logs (optional)
        batch_pause_seconds: Pause between deletion batches
        throttle_pause_seconds: Pause after a batch hit an API rate limit
    """

    aws_profile: Optional[str] = None
    regions: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    storage_path: Optional[str] = None
    batch_pause_seconds: float = 10.0
    throttle_pause_seconds: float = 60.0

    @classmethod
    def load(cls, path: Optional[str] = None) -> "Config":
        """Load configuration from YAML, then apply environment overrides.

        The file is read from path, $AWSNUKE_CONFIG or ~/.awsnuke/config.yaml;
        a missing file yields defaults.

        Args:
            path: Explicit config file path (optional)

        Returns:
            Loaded configuration
        """
        config_path = Path(path or os.environ.get("AWSNUKE_CONFIG") or DEFAULT_CONFIG_PATH).expanduser()
        data: Dict[str, Any] = {}

        if config_path.is_file():
            try:
                with open(config_path, "r") as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                logger.warning(f"Ignoring invalid config file {config_path}: {e}")
                data = {}

        config = cls.from_dict(data)
        config._apply_env()
        return config

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        known = {name: data[name] for name in cls.__dataclass_fields__ if name in data}
        if isinstance(known.get("regions"), str):
            known["regions"] = _split_list(known["regions"])
        return cls(**known)

    def _apply_env(self) -> None:
        if os.environ.get("AWS_PROFILE"):
            self.aws_profile = os.environ["AWS_PROFILE"]
        if os.environ.get("AWSNUKE_REGIONS"):
            self.regions = _split_list(os.environ["AWSNUKE_REGIONS"])
        if os.environ.get("AWSNUKE_LOG_LEVEL"):
            self.log_level = os.environ["AWSNUKE_LOG_LEVEL"].upper()
        if os.environ.get("AWSNUKE_STORAGE_PATH"):
            self.storage_path = os.environ["AWSNUKE_STORAGE_PATH"]

    @property
    def audit_dir(self) -> Optional[str]:
        if not self.storage_path:
            return None
        return str(Path(self.storage_path).expanduser() / "audit-logs")


def _split_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]
