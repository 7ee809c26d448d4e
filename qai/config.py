"""
Configuration settings using pydantic-settings.

Supports configuration via environment variables and a YAML file
(~/.config/qai/qai.yml, then ./qai.yml).
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Type

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from .errors import ConfigError
from .xdg import APP_NAME, default_history_dir, get_config_dir

logger = logging.getLogger(__name__)

CONFIG_FILENAME = f"{APP_NAME}.yml"


class BindingsConfig(BaseModel):
    """Key bindings used by the shell integration."""
    trigger: str = Field(default="tab", description="Key that enters AI mode after typing 'ai'")
    submit: str = Field(default="enter", description="Key that submits the query in AI mode")


class QaiSettings(BaseSettings):
    """qai configuration settings.

    Configuration is loaded from (in order of priority):
    1. Environment variables (QAI_*, nested with QAI_BINDINGS__TRIGGER)
    2. Config file (qai.yml)
    3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="QAI_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    # Model API
    api_key: Optional[str] = Field(
        default=None,
        description="API key (QAI_API_KEY overrides the file)",
    )
    model: str = Field(
        default="gpt-4o-mini",
        description="Model used for chat completions",
    )
    api_base: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL of the OpenAI-compatible API",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="HTTP request timeout in seconds",
    )
    allow_no_api_key: bool = Field(
        default=False,
        description="Allow requests without a key (local endpoints)",
    )

    # Logging
    debug: bool = Field(
        default=False,
        description="Log at debug level",
    )

    # Learning store
    history_enabled: bool = Field(
        default=True,
        description="Record queries and selections",
    )
    history_dir: Optional[Path] = Field(
        default=None,
        description="History directory (default: XDG_DATA_HOME/qai/history)",
    )

    # Shell integration
    bindings: BindingsConfig = Field(default_factory=BindingsConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; the environment wins over them
        return (env_settings, init_settings)

    def get_api_key(self) -> Optional[str]:
        """Get the API key, or None when unset or empty."""
        if self.api_key:
            return self.api_key
        return None

    def get_history_dir(self) -> Path:
        """Get the learning store directory."""
        if self.history_dir:
            return self.history_dir.expanduser()
        return default_history_dir()


def get_config_path() -> Path:
    """Get the primary config file path (XDG_CONFIG_HOME/qai/qai.yml)."""
    return get_config_dir() / CONFIG_FILENAME


def _normalize_keys(data: Dict[str, Any]) -> Dict[str, Any]:
    """Accept kebab-case keys (api-key) alongside snake_case ones."""
    normalized = {}
    for key, value in data.items():
        if isinstance(value, dict):
            value = _normalize_keys(value)
        normalized[str(key).replace("-", "_")] = value
    return normalized


def load_config_file(path: Path) -> QaiSettings:
    """Load settings from a YAML file.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Failed to read config file {path}: {e}") from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse config file {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Failed to parse config file {path}: expected a mapping")

    try:
        settings = QaiSettings(**_normalize_keys(data))
    except ValidationError as e:
        raise ConfigError(f"Invalid config file {path}: {e}") from e

    logger.info(f"Loaded config from: {path}")
    return settings


def load_config(config_path: Optional[Path] = None) -> QaiSettings:
    """Load configuration.

    An explicit path must load cleanly. Otherwise the XDG config file and
    ./qai.yml are tried in turn; broken files there are logged and skipped.

    Raises:
        ConfigError: If an explicit config_path cannot be loaded
    """
    if config_path is not None:
        return load_config_file(config_path)

    for candidate in (get_config_path(), Path(CONFIG_FILENAME)):
        if not candidate.exists():
            continue
        try:
            return load_config_file(candidate)
        except ConfigError as e:
            logger.warning(f"Failed to load config from {candidate}: {e}")

    logger.info("No config file found, using defaults")
    try:
        return QaiSettings()
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e


def is_api_key_configured(settings: QaiSettings) -> bool:
    """Check whether requests can be made (doesn't validate the key)."""
    return settings.get_api_key() is not None or settings.allow_no_api_key
