"""Configuration loading and validation for the finance tracker."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from finance_tracker.errors import ConfigError
from finance_tracker.utils.logging_config import get_logger

logger = get_logger(__name__)

# Environment variable overriding storage.path (may be set in a .env file)
DATA_PATH_ENV = "FINANCE_TRACKER_DATA"

DEFAULT_DATA_PATH = "data/finance_tracker.json"


def _positive_int(data: dict[str, object], key: str, default: int) -> int:
    value = data.get(key, default)
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}") from None
    if number < 1:
        raise ConfigError(f"'{key}' must be at least 1, got {number}")
    return number


def _non_negative_float(data: dict[str, object], key: str, default: float) -> float:
    value = data.get(key, default)
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise ConfigError(f"'{key}' must be a number, got {value!r}") from None
    if number < 0:
        raise ConfigError(f"'{key}' must not be negative, got {number}")
    return number


@dataclass
class LedgerConfig:
    """Configuration for the ledger.

    Attributes:
        items_per_page: Transactions shown per page.
    """

    items_per_page: int = 5

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LedgerConfig":
        """Create from dictionary."""
        return cls(items_per_page=_positive_int(data, "items_per_page", 5))


@dataclass
class StorageConfig:
    """Configuration for persistence.

    Attributes:
        path: JSON file holding the key-value store.
    """

    path: Path = field(default_factory=lambda: Path(DEFAULT_DATA_PATH))

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "StorageConfig":
        """Create from dictionary."""
        return cls(path=Path(str(data.get("path", DEFAULT_DATA_PATH))))


@dataclass
class InsightsConfig:
    """Configuration for the insights engine.

    Attributes:
        max_cards: Maximum number of insight cards returned.
        refresh_delay_seconds: Artificial delay before a scheduled refresh runs.
        recent_days: Trailing window for the "recent" subset.
        weekly_days: Trailing window for the "weekly" subset.
    """

    max_cards: int = 4
    refresh_delay_seconds: float = 1.0
    recent_days: int = 30
    weekly_days: int = 7

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "InsightsConfig":
        """Create from dictionary."""
        return cls(
            max_cards=_positive_int(data, "max_cards", 4),
            refresh_delay_seconds=_non_negative_float(data, "refresh_delay_seconds", 1.0),
            recent_days=_positive_int(data, "recent_days", 30),
            weekly_days=_positive_int(data, "weekly_days", 7),
        )


@dataclass
class OutputConfig:
    """Configuration for amount display.

    Attributes:
        currency_symbol: Prefix shown before amounts.
        thousands_separator: Digit group separator.
        decimal_separator: Separator before fraction digits.
    """

    currency_symbol: str = "Rp"
    thousands_separator: str = "."
    decimal_separator: str = ","

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "OutputConfig":
        """Create from dictionary."""
        config = cls(
            currency_symbol=str(data.get("currency_symbol", "Rp")),
            thousands_separator=str(data.get("thousands_separator", ".")),
            decimal_separator=str(data.get("decimal_separator", ",")),
        )
        if config.thousands_separator == config.decimal_separator:
            raise ConfigError("thousands_separator and decimal_separator must differ")
        return config


@dataclass
class LoggingConfig:
    """Configuration for logging.

    Attributes:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Path to log file.
    """

    level: str = "INFO"
    file: str = "finance_tracker.log"

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> "LoggingConfig":
        """Create from dictionary."""
        return cls(
            level=str(data.get("level", "INFO")),
            file=str(data.get("file", "finance_tracker.log")),
        )


@dataclass
class Config:
    """Main configuration container."""

    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    insights: InsightsConfig = field(default_factory=InsightsConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_yaml_file(path: Path) -> dict[str, object]:
    """Load a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed YAML content (empty dict for an empty file).

    Raises:
        FileNotFoundError: If file doesn't exist.
        ConfigError: If the file is invalid YAML or not a mapping.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, encoding="utf-8") as f:
        try:
            content = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if content is None:
        return {}
    if not isinstance(content, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(content).__name__}")
    return content


def _section(data: dict[str, object], name: str) -> dict[str, object]:
    section = data.get(name)
    if section is None:
        return {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def load_config(
    settings_path: Optional[Path] = None,
    config_dir: Optional[Path] = None,
) -> Config:
    """Load configuration from settings.yaml and the environment.

    A missing settings file is not an error; defaults apply. The
    FINANCE_TRACKER_DATA environment variable overrides storage.path.

    Args:
        settings_path: Path to settings.yaml (or None to use default).
        config_dir: Base config directory (default: ./config).

    Returns:
        Complete Config object.

    Raises:
        ConfigError: If the settings file holds invalid values.
    """
    if config_dir is None:
        config_dir = Path("config")
    if settings_path is None:
        settings_path = config_dir / "settings.yaml"

    config = Config()

    if settings_path.exists():
        data = load_yaml_file(settings_path)
        config.ledger = LedgerConfig.from_dict(_section(data, "ledger"))
        config.storage = StorageConfig.from_dict(_section(data, "storage"))
        config.insights = InsightsConfig.from_dict(_section(data, "insights"))
        config.output = OutputConfig.from_dict(_section(data, "output"))
        config.logging = LoggingConfig.from_dict(_section(data, "logging"))
        logger.info(f"Loaded settings from {settings_path}")
    else:
        logger.debug(f"Settings file not found: {settings_path}, using defaults")

    data_path = os.environ.get(DATA_PATH_ENV)
    if data_path:
        config.storage.path = Path(data_path)
        logger.debug(f"Storage path overridden by {DATA_PATH_ENV}: {data_path}")

    return config
