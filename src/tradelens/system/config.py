"""
System configuration.

One configuration object for the whole tool:
- AnalyticsConfig: starting-equity inference, breakdown windows, caching
- LoggingConfig: logging setup (converted to log_system.LoggingConfig)

Values come from built-in defaults, deep-merged with an optional YAML file.
String values may reference environment variables as ``${VAR}``.

Config file search order:
1. Explicit path passed to load() / get_system_config()
2. $TRADELENS_CONFIG
3. ./config/tradelens.yaml
"""

import os
import re
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from tradelens.system import log_system

CONFIG_ENV_VAR = "TRADELENS_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/tradelens.yaml")

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class AnalyticsConfig:
    """Analytics engine settings."""

    balance_asset: str = "USDT"
    minimum_starting_equity: Decimal = Decimal("100")
    fallback_leverage: int = 10
    monthly_window_months: int = 12
    hourly_window_days: int = 30
    symbol_window_days: int = 30
    cache_ttl_seconds: int = 300
    cache_max_size: int = 32
    default_period: str = "30d"
    monte_carlo_simulations: int = 1000
    monte_carlo_trades: int = 100

    def __post_init__(self) -> None:
        # YAML gives ints/floats; keep money in Decimal
        if not isinstance(self.minimum_starting_equity, Decimal):
            self.minimum_starting_equity = Decimal(str(self.minimum_starting_equity))


@dataclass
class LoggingConfig:
    """Logging section of the system config."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = False
    file_path: str = "logs/tradelens.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def to_logger_config(self) -> log_system.LoggingConfig:
        """Convert to the pydantic model consumed by LoggerFactory."""
        values = asdict(self)
        values["file_path"] = Path(self.file_path) if self.file_path else None
        return log_system.LoggingConfig(**values)


@dataclass
class SystemConfig:
    """Complete tradelens configuration."""

    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration, falling back to defaults when no file exists.

        Args:
            path: Explicit YAML file. When None, $TRADELENS_CONFIG and then
                ./config/tradelens.yaml are tried.

        Returns:
            SystemConfig with file values merged over defaults
        """
        config_path = _resolve_config_path(path)

        data: dict[str, Any] = {}
        if config_path is not None and config_path.exists():
            with open(config_path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
            if loaded:
                if not isinstance(loaded, dict):
                    raise ValueError(f"Config file {config_path} must contain a mapping")
                data = loaded

        merged = _deep_merge(_defaults(), data)
        return cls._from_dict(_substitute_env_vars(merged))

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build config from a (possibly partial) nested dict."""
        analytics = data.get("analytics") or {}
        logging_section = data.get("logging") or {}

        return cls(
            analytics=AnalyticsConfig(**analytics),
            logging=LoggingConfig(**logging_section),
        )


def _defaults() -> dict[str, Any]:
    return {
        "analytics": asdict(AnalyticsConfig()),
        "logging": asdict(LoggingConfig()),
    }


def _resolve_config_path(path: Path | str | None) -> Path | None:
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path)

    return DEFAULT_CONFIG_PATH


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Recursively merge override into base, returning a new dict.

    Nested dicts are merged key by key; any other value in override replaces
    the base value.
    """
    result = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """
    Replace ``${VAR}`` placeholders in strings, recursing into dicts and lists.

    Undefined variables keep their placeholder.
    """
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: Path | str | None = None) -> SystemConfig:
    """
    Get the system config singleton.

    Passing an explicit path always loads that file and replaces the
    cached instance.
    """
    global _system_config
    if path is not None or _system_config is None:
        _system_config = SystemConfig.load(path)
    return _system_config


def reload_system_config(path: Path | str | None = None) -> SystemConfig:
    """Force a reload and replace the singleton."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
