import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

DEFAULT_CONFIG_PATH = "/etc/node-metrics-exporter/config.json"

DEFAULT_REPORT_INTERVAL = 300
DEFAULT_COLLECT_INTERVAL = 1
DEFAULT_COLLECT_DURATION = 5

LOG_FORMATS = ("console", "json")


class ConfigError(Exception):
    """Raised when the configuration file is missing or malformed."""


@dataclass(frozen=True, slots=True)
class Config:
    url: str
    token: Optional[str] = None
    report_interval: int = DEFAULT_REPORT_INTERVAL
    collect_interval: int = DEFAULT_COLLECT_INTERVAL
    collect_duration: int = DEFAULT_COLLECT_DURATION
    log_level: str = "INFO"
    log_format: str = "console"

    @property
    def sample_count(self) -> int:
        return self.collect_duration // self.collect_interval


def _read_seconds(data: Dict[str, Any], key: str, default: int, zero_is_unset: bool = True) -> int:
    value = data.get(key)
    if value is None:
        return default
    # bool is an int subclass; "true" is not a duration
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer number of seconds, got {value!r}")
    if value < 0:
        raise ConfigError(f"'{key}' must not be negative, got {value}")
    if value == 0 and zero_is_unset:
        return default
    return value


def parse_config(data: Any) -> Config:
    """
    Builds a Config from an already decoded JSON document.

    Args:
        data (Any): The decoded JSON document.

    Returns:
        Config: The validated configuration with defaults applied.

    Raises:
        ConfigError: If the document is not an object or any known key has an invalid value.
    """
    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")

    url = data.get("URL")
    if not isinstance(url, str) or not url.strip():
        raise ConfigError("'URL' is required and must be a non-empty string")

    token = data.get("token")
    if token is not None and not isinstance(token, str):
        raise ConfigError("'token' must be a string")

    log_level = data.get("log_level") or "INFO"
    if not isinstance(log_level, str):
        raise ConfigError("'log_level' must be a string")

    log_format = data.get("log_format") or "console"
    if log_format not in LOG_FORMATS:
        raise ConfigError(f"'log_format' must be one of {', '.join(LOG_FORMATS)}")

    return Config(
        url=url.strip(),
        token=token or None,
        report_interval=_read_seconds(data, "report_interval", DEFAULT_REPORT_INTERVAL),
        collect_interval=_read_seconds(data, "collect_interval", DEFAULT_COLLECT_INTERVAL),
        # An explicit zero duration is a valid zero-sample window
        collect_duration=_read_seconds(data, "collect_duration", DEFAULT_COLLECT_DURATION, zero_is_unset=False),
        log_level=log_level.upper(),
        log_format=log_format,
    )


def load_config(path: str | Path) -> Config:
    """Reads and validates the JSON config file at `path`. Raises ConfigError on any failure."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"failed to open config file {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"failed to read config {path}: {e}") from e
    return parse_config(data)
