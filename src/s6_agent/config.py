"""
Agent configuration.

Loaded once at startup from a YAML file (JSON is accepted, being a YAML
subset), overlaid with environment variables, validated, and then passed
by value into every component. Nothing reads configuration ad hoc.

Example config.json:
    {
        "http_address": ":8080",
        "base_dir": "/data/media",
        "bucket": {"image": ["images-prod"], "video": ["videos-prod"]},
        "thumbor": {
            "url": "https://img.example.com",
            "key": "secret",
            "paths": ["300x200/smart", "fit-in/640x480"]
        }
    }
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

import yaml

from core.errors.exceptions import ConfigurationError

DEFAULT_CONFIG_PATH = Path("config.json")

DEFAULT_HTTP_ADDRESS = ":80"
DEFAULT_BASE_DIR = "/tmp"

# Environment variable -> dotted config key
ENV_OVERRIDES = {
    "S6_HTTP_ADDRESS": "http_address",
    "S6_BASE_DIR": "base_dir",
    "S6_THUMBOR_URL": "thumbor.url",
    "S6_THUMBOR_KEY": "thumbor.key",
}


@dataclass(frozen=True)
class BucketConfig:
    """Bucket lists selecting the processing lane."""

    image: FrozenSet[str] = frozenset()
    video: FrozenSet[str] = frozenset()


@dataclass(frozen=True)
class ThumborConfig:
    """Image cache warm-up settings."""

    url: str = ""
    key: str = ""  # empty = unsigned ("unsafe") URLs
    paths: Tuple[str, ...] = ()
    max_attempts: int = 5


@dataclass(frozen=True)
class DownloadConfig:
    """Video download settings."""

    max_attempts: int = 5
    backoff_seconds: float = 1.0
    timeout_seconds: float = 300.0
    chunk_size: int = 64 * 1024


@dataclass(frozen=True)
class SourceConfig:
    """Object store settings.

    endpoint overrides the public S3 URL with an S3-compatible endpoint,
    giving {endpoint}/{bucket}/{key}.
    """

    endpoint: str = ""


@dataclass(frozen=True)
class AgentConfig:
    """Root configuration for the sync agent."""

    http_address: str = DEFAULT_HTTP_ADDRESS
    base_dir: str = DEFAULT_BASE_DIR
    bucket: BucketConfig = field(default_factory=BucketConfig)
    thumbor: ThumborConfig = field(default_factory=ThumborConfig)
    download: DownloadConfig = field(default_factory=DownloadConfig)
    source: SourceConfig = field(default_factory=SourceConfig)

    @property
    def base_path(self) -> Path:
        return Path(self.base_dir)

    def listen_address(self) -> Tuple[str, int]:
        """Host and port to bind, parsed from http_address."""
        return parse_http_address(self.http_address)

    def validate(self) -> List[str]:
        """
        Validate configuration.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        try:
            parse_http_address(self.http_address)
        except ValueError as e:
            errors.append(str(e))

        if not self.base_dir:
            errors.append("base_dir is required")

        overlap = self.bucket.image & self.bucket.video
        if overlap:
            errors.append(
                "buckets listed under both bucket.image and bucket.video: "
                + ", ".join(sorted(overlap))
            )

        if self.bucket.image:
            if not self.thumbor.url:
                errors.append("thumbor.url is required when bucket.image is set")
            if not self.thumbor.paths:
                errors.append("thumbor.paths is required when bucket.image is set")

        if self.thumbor.max_attempts < 1:
            errors.append("thumbor.max_attempts must be >= 1")
        if self.download.max_attempts < 1:
            errors.append("download.max_attempts must be >= 1")
        if self.download.backoff_seconds < 0:
            errors.append("download.backoff_seconds must be >= 0")
        if self.download.timeout_seconds <= 0:
            errors.append("download.timeout_seconds must be > 0")
        if self.download.chunk_size < 1:
            errors.append("download.chunk_size must be >= 1")

        return errors

    def is_valid(self) -> bool:
        """Check if configuration is valid."""
        return len(self.validate()) == 0


def parse_http_address(address: str) -> Tuple[str, int]:
    """
    Parse "host:port" into a bindable pair.

    An empty host (":80") binds all interfaces. IPv6 hosts may be
    bracketed ("[::1]:8080").

    Raises:
        ValueError: If the address has no valid port
    """
    host, sep, port_str = address.rpartition(":")
    if not sep:
        raise ValueError(f"http_address must be host:port, got '{address}'")

    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"http_address has invalid port: '{address}'")

    if not 0 <= port <= 65535:
        raise ValueError(f"http_address port out of range: '{address}'")

    host = host.strip("[]") or "0.0.0.0"
    return host, port


def _deep_merge(base: Dict[str, Any], overlay: Dict[str, Any]) -> Dict[str, Any]:
    """Deep merge overlay into base dict."""
    result = base.copy()
    for key, value in overlay.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _env_overrides() -> Dict[str, Any]:
    """Collect overrides from environment variables."""
    overrides: Dict[str, Any] = {}
    for env_name, dotted in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value is None:
            continue
        target = overrides
        *parents, leaf = dotted.split(".")
        for parent in parents:
            target = target.setdefault(parent, {})
        target[leaf] = value
    return overrides


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(f"{name} must be a mapping")
    return value


def _string_list(data: Dict[str, Any], name: str) -> List[str]:
    value = data.get(name) or []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigurationError(f"{name} must be a list of strings")
    return [str(v) for v in value]


def _dict_to_config(data: Dict[str, Any]) -> AgentConfig:
    """Convert dict to AgentConfig with nested dataclasses."""
    bucket = _section(data, "bucket")
    thumbor = _section(data, "thumbor")
    download = _section(data, "download")
    source = _section(data, "source")

    try:
        return AgentConfig(
            http_address=str(data.get("http_address", DEFAULT_HTTP_ADDRESS)),
            base_dir=str(data.get("base_dir", DEFAULT_BASE_DIR)),
            bucket=BucketConfig(
                image=frozenset(_string_list(bucket, "image")),
                video=frozenset(_string_list(bucket, "video")),
            ),
            thumbor=ThumborConfig(
                url=str(thumbor.get("url") or ""),
                key=str(thumbor.get("key") or ""),
                paths=tuple(_string_list(thumbor, "paths")),
                max_attempts=int(thumbor.get("max_attempts", 5)),
            ),
            download=DownloadConfig(**download),
            source=SourceConfig(endpoint=str(source.get("endpoint") or "")),
        )
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}", cause=e)


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
    validate: bool = True,
    use_env: bool = True,
) -> AgentConfig:
    """
    Load configuration from a YAML/JSON file with optional overrides.

    Precedence: file < environment < overrides.

    Args:
        config_path: Path to config file (default: ./config.json if present)
        overrides: Dict of overrides to apply after loading
        validate: Raise on validation errors
        use_env: Apply S6_* environment overrides

    Returns:
        AgentConfig instance

    Raises:
        ConfigurationError: If an explicit file is missing, unreadable,
            not a mapping, or the result fails validation
    """
    if config_path is not None and not config_path.exists():
        raise ConfigurationError(f"Config file not found: {config_path}")

    path = config_path or DEFAULT_CONFIG_PATH
    data: Dict[str, Any] = {}

    if path.exists():
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed loading config: {path}", cause=e)

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file must contain a mapping: {path}")

    if use_env:
        data = _deep_merge(data, _env_overrides())
    if overrides:
        data = _deep_merge(data, overrides)

    config = _dict_to_config(data)

    if validate:
        errors = config.validate()
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(errors),
                context={"errors": errors},
            )

    return config


def load_config_from_dict(data: Dict[str, Any], validate: bool = True) -> AgentConfig:
    """
    Load configuration from a dictionary.

    Useful for testing or programmatic config.
    """
    config = _dict_to_config(data)
    if validate:
        errors = config.validate()
        if errors:
            raise ConfigurationError(
                "Invalid configuration: " + "; ".join(errors),
                context={"errors": errors},
            )
    return config
