"""Configuration management for netscope."""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any
from pathlib import Path
import logging
import os

import yaml

from .errors import ConfigError


@dataclass
class CaptureConfig:
    """Capture configuration."""
    interface: str = ""
    bpf_filter: str = ""
    snapshot_length: int = 65536
    promiscuous: bool = True
    read_timeout_ms: int = 50
    duration: int = 0  # 0 = continuous


@dataclass
class BatchConfig:
    """Batch delivery configuration."""
    max_batch_size: int = 200
    max_buffer_time: float = 0.3  # seconds


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"


@dataclass
class NetscopeConfig:
    """Main configuration container."""
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    batch: BatchConfig = field(default_factory=BatchConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "NetscopeConfig":
        """Create config from dictionary."""
        config = cls()

        if "capture" in data:
            cap = data["capture"] or {}
            config.capture = CaptureConfig(
                interface=cap.get("interface", ""),
                bpf_filter=cap.get("bpf_filter", ""),
                snapshot_length=cap.get("snapshot_length", 65536),
                promiscuous=cap.get("promiscuous", True),
                read_timeout_ms=cap.get("read_timeout_ms", 50),
                duration=cap.get("duration", 0),
            )

        if "batch" in data:
            batch = data["batch"] or {}
            config.batch = BatchConfig(
                max_batch_size=batch.get("max_batch_size", 200),
                max_buffer_time=batch.get("max_buffer_time", 0.3),
            )

        if "logging" in data:
            log = data["logging"] or {}
            config.logging = LoggingConfig(
                level=str(log.get("level", "INFO")).upper(),
            )

        config.validate()
        return config

    @classmethod
    def from_yaml(cls, path: str) -> "NetscopeConfig":
        """Load config from YAML file."""
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        if data is not None and not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, path: Optional[str] = None) -> "NetscopeConfig":
        """Load config from file or use defaults."""
        if path and not os.path.exists(path):
            raise ConfigError(f"Config file not found: {path}")

        search_paths = [
            path,
            "netscope.yaml",
            "netscope.yml",
            os.path.expanduser("~/.config/netscope/config.yaml"),
            "/etc/netscope/config.yaml",
        ]

        for config_path in search_paths:
            if config_path and os.path.exists(config_path):
                return cls.from_yaml(config_path)

        return cls()

    def validate(self) -> None:
        """Raise ConfigError on out-of-range values."""
        if self.capture.snapshot_length <= 0:
            raise ConfigError("capture.snapshot_length must be positive")
        if self.capture.read_timeout_ms <= 0:
            raise ConfigError("capture.read_timeout_ms must be positive")
        if self.capture.duration < 0:
            raise ConfigError("capture.duration must be >= 0")
        if self.batch.max_batch_size < 1:
            raise ConfigError("batch.max_batch_size must be >= 1")
        if self.batch.max_buffer_time < 0:
            raise ConfigError("batch.max_buffer_time must be >= 0")
        if not isinstance(logging.getLevelName(self.logging.level), int):
            raise ConfigError(f"logging.level is not a valid level: {self.logging.level}")

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "capture": {
                "interface": self.capture.interface,
                "bpf_filter": self.capture.bpf_filter,
                "snapshot_length": self.capture.snapshot_length,
                "promiscuous": self.capture.promiscuous,
                "read_timeout_ms": self.capture.read_timeout_ms,
                "duration": self.capture.duration,
            },
            "batch": {
                "max_batch_size": self.batch.max_batch_size,
                "max_buffer_time": self.batch.max_buffer_time,
            },
            "logging": {
                "level": self.logging.level,
            },
        }

    def save_yaml(self, path: str) -> None:
        """Save config to YAML file."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)
