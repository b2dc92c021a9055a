"""
System configuration for pnltracker.

One YAML file configures the whole tool:

    calculation:
      oversell_policy: zero_cost      # zero_cost | reject
      invalid_trade_policy: reject    # reject | skip | ignore
      default_fee_currency: USDT
      sort_trades: true
    output:
      decimals: 2
    logging:
      level: INFO

Values may reference environment variables as ${VAR}. Missing sections and
keys fall back to the defaults below.
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import yaml

from pnltracker.system.log_system import LoggingConfig as LoggerConfig

if TYPE_CHECKING:
    from pnltracker.services.portfolio.models import PnLConfig

DEFAULT_CONFIG_PATH = Path("config/system.yaml")

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


@dataclass
class CalculationConfig:
    """How trades are turned into P&L."""

    oversell_policy: str = "zero_cost"
    invalid_trade_policy: str = "reject"
    default_fee_currency: str = "USDT"
    sort_trades: bool = True

    def to_pnl_config(self) -> "PnLConfig":
        """Convert to the calculator's validated config model."""
        from pnltracker.services.portfolio.models import PnLConfig

        return PnLConfig(
            oversell_policy=self.oversell_policy,
            invalid_trade_policy=self.invalid_trade_policy,
            sort_trades=self.sort_trades,
        )


@dataclass
class OutputConfig:
    """Report rendering."""

    decimals: int = 2
    percent_decimals: int = 2


@dataclass
class LoggingConfig:
    """Logging section (converted to log_system.LoggingConfig)."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json"] = "console"
    timestamp_format: Literal["iso", "compact", "time", "short"] = "compact"
    enable_file: bool = False
    file_path: str = "logs/pnltracker.log"
    file_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3

    def to_logger_config(self) -> LoggerConfig:
        """Convert to log_system.LoggingConfig."""
        return LoggerConfig(
            level=self.level,
            format=self.format,
            timestamp_format=self.timestamp_format,
            enable_file=self.enable_file,
            file_path=Path(self.file_path),
            file_level=self.file_level,
            file_rotation=self.file_rotation,
            max_file_size_mb=self.max_file_size_mb,
            backup_count=self.backup_count,
        )


@dataclass
class SystemConfig:
    """Complete system configuration."""

    calculation: CalculationConfig = field(default_factory=CalculationConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, merged over built-in defaults.

        Args:
            path: Config file (defaults to config/system.yaml). A missing
                file yields the defaults.

        Returns:
            SystemConfig

        Raises:
            ValueError: If the file is not a YAML mapping
        """
        config_path = Path(path) if path is not None else DEFAULT_CONFIG_PATH

        file_dict: dict[str, Any] = {}
        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as f:
                loaded = yaml.safe_load(f)
            if loaded is None:
                loaded = {}
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping, got {type(loaded).__name__}")
            file_dict = loaded

        merged = _deep_merge(_defaults_dict(), _substitute_env_vars(file_dict))
        return cls._from_dict(merged)

    @classmethod
    def _from_dict(cls, config_dict: dict[str, Any]) -> "SystemConfig":
        """Build from a (possibly partial) dict; missing keys use defaults."""
        return cls(
            calculation=CalculationConfig(**(config_dict.get("calculation") or {})),
            output=OutputConfig(**(config_dict.get("output") or {})),
            logging=LoggingConfig(**(config_dict.get("logging") or {})),
        )


def _defaults_dict() -> dict[str, Any]:
    """Built-in defaults as a plain dict."""
    defaults = SystemConfig()
    return {
        "calculation": vars(defaults.calculation).copy(),
        "output": vars(defaults.output).copy(),
        "logging": vars(defaults.logging).copy(),
    }


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base; override wins."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} in strings (recursively); undefined vars are left as is."""
    if isinstance(value, dict):
        return {key: _substitute_env_vars(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda match: os.environ.get(match.group(1), match.group(0)), value)
    return value
