"""Configuration file support for TaskTrail."""

import logging
import os
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TASKTRAIL_CONFIG"
CONFIG_FILE = Path.home() / ".config" / "tasktrail" / "tasktrail.toml"
DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "tasktrail"

DEFAULT_THEME = "textual-dark"
DEFAULT_BACKEND = "local"  # "local" or "http"
DEFAULT_CLIENT_ID = "tasktrail"
DEFAULT_PAGE_SIZE = 10
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"


@dataclass
class CustomThemeConfig:
    """Configuration for a custom theme."""

    name: str
    dark: bool = True
    primary: str = ""
    secondary: str | None = None
    accent: str | None = None
    foreground: str | None = None
    background: str | None = None
    surface: str | None = None
    panel: str | None = None
    warning: str | None = None
    error: str | None = None
    success: str | None = None
    variables: dict[str, str] = field(default_factory=dict)

    def is_valid(self) -> bool:
        """Check if the custom theme has all required fields."""
        return bool(self.primary)

    def theme_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for textual.theme.Theme, skipping unset colors."""
        kwargs: dict[str, Any] = {"primary": self.primary, "dark": self.dark}
        for name in (
            "secondary",
            "accent",
            "foreground",
            "background",
            "surface",
            "panel",
            "warning",
            "error",
            "success",
        ):
            value = getattr(self, name)
            if value:
                kwargs[name] = value
        if self.variables:
            kwargs["variables"] = self.variables
        return kwargs


@dataclass
class Config:
    """Application configuration."""

    theme: str = DEFAULT_THEME
    custom_theme: CustomThemeConfig | None = None
    backend: str = DEFAULT_BACKEND
    api_url: str = ""
    client_id: str = DEFAULT_CLIENT_ID
    data_dir: Path = DEFAULT_DATA_DIR
    database: Path | None = None
    page_size: int = DEFAULT_PAGE_SIZE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def database_path(self) -> Path:
        return self.database or self.data_dir / "tasktrail.db"

    @property
    def state_path(self) -> Path:
        return self.data_dir / "state.json"

    @property
    def log_path(self) -> Path:
        return self.data_dir / "tasktrail.log"


def config_path() -> Path:
    """Path of the config file, honoring the TASKTRAIL_CONFIG override."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else CONFIG_FILE


def load_config(path: Path | None = None) -> Config:
    """Load configuration from the config file.

    Returns the default configuration if:
    - The config file doesn't exist
    - The config file has invalid TOML syntax
    - Any other error occurs during loading

    Returns:
        Config object with loaded or default values.
    """
    path = path or config_path()
    if not path.exists():
        return Config()

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        # Invalid TOML or read error - use defaults
        logger.warning("Ignoring config file %s: %s", path, e)
        return Config()

    return _parse_config(data)


def _parse_config(data: dict[str, Any]) -> Config:
    """Parse configuration from a dictionary.

    Args:
        data: Dictionary from parsed TOML file.

    Returns:
        Config object with parsed values.
    """
    config = Config()

    if isinstance(data.get("theme"), str):
        config.theme = data["theme"]

    if data.get("backend") in ("local", "http"):
        config.backend = data["backend"]

    if isinstance(data.get("api_url"), str):
        config.api_url = data["api_url"]

    if isinstance(data.get("client_id"), str) and data["client_id"]:
        config.client_id = data["client_id"]

    if isinstance(data.get("data_dir"), str):
        config.data_dir = Path(data["data_dir"]).expanduser()

    if isinstance(data.get("database"), str):
        config.database = Path(data["database"]).expanduser()

    # bool is an int subclass; reject it explicitly
    page_size = data.get("page_size")
    if isinstance(page_size, int) and not isinstance(page_size, bool) and page_size > 0:
        config.page_size = page_size

    timeout = data.get("request_timeout")
    if isinstance(timeout, (int, float)) and not isinstance(timeout, bool) and timeout > 0:
        config.request_timeout = float(timeout)

    level = data.get("log_level")
    if isinstance(level, str) and level.upper() in ("DEBUG", "INFO", "WARNING", "ERROR"):
        config.log_level = level.upper()

    # Load custom theme if present
    if isinstance(data.get("custom_theme"), dict):
        custom_data = data["custom_theme"]
        config.custom_theme = CustomThemeConfig(
            name=custom_data.get("name", "custom"),
            dark=custom_data.get("dark", True),
            primary=custom_data.get("primary", ""),
            secondary=custom_data.get("secondary"),
            accent=custom_data.get("accent"),
            foreground=custom_data.get("foreground"),
            background=custom_data.get("background"),
            surface=custom_data.get("surface"),
            panel=custom_data.get("panel"),
            warning=custom_data.get("warning"),
            error=custom_data.get("error"),
            success=custom_data.get("success"),
            variables=custom_data.get("variables", {}),
        )

    return config
