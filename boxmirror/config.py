"""Configuration management for boxmirror.

Settings are resolved from (highest precedence first) values set at
runtime by the CLI, environment variables and a JSON config file.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Optional

from .exceptions import BoxConfigError
from .utils import DEFAULT_API_URL

logger = logging.getLogger(__name__)

ENV_ACCESS_TOKEN = "BOX_ACCESS_TOKEN"
ENV_API_URL = "BOX_API_URL"
ENV_LOG_DIR = "BOXMIRROR_LOG_DIR"
ENV_CONFIG_FILE = "BOXMIRROR_CONFIG"

DEFAULT_LOG_DIR_NAME = "log"


class Config:
    """Runtime configuration for boxmirror."""

    def __init__(self, config_path: Optional[Path] = None):
        self._config_path = config_path
        self._file_data: Optional[dict[str, Any]] = None
        self._overrides: dict[str, Any] = {}

    # =========================
    # Config file handling
    # =========================

    def get_config_path(self) -> Path:
        """Return the path of the JSON config file in use."""
        if self._config_path is not None:
            return self._config_path
        env_path = os.environ.get(ENV_CONFIG_FILE)
        if env_path:
            return Path(env_path).expanduser()
        return Path.home() / ".config" / "boxmirror" / "config.json"

    def load_file(self, path: Path) -> None:
        """Use ``path`` as the config file and (re)load it.

        Raises:
            BoxConfigError: If the file is missing or not valid JSON
        """
        path = Path(path).expanduser()
        if not path.is_file():
            raise BoxConfigError(f"Config file not found: {path}")
        self._config_path = path
        self._file_data = self._read(path)

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise BoxConfigError(f"Cannot read config file {path}: {e}") from e
        if not isinstance(data, dict):
            raise BoxConfigError(f"Config file {path} must contain a JSON object")
        logger.debug(f"Loaded config file {path}")
        return data

    def _file(self) -> dict[str, Any]:
        if self._file_data is None:
            path = self.get_config_path()
            self._file_data = self._read(path) if path.is_file() else {}
        return self._file_data

    def _file_value(self, *keys: str) -> Optional[Any]:
        data = self._file()
        # Box developer console exports nest app settings one level down
        sections = [data, data.get("boxAppSettings") or {}]
        for section in sections:
            for key in keys:
                value = section.get(key)
                if value:
                    return value
        return None

    # =========================
    # Settings
    # =========================

    def set(self, key: str, value: Any) -> None:
        """Override a setting for the rest of the process (None is ignored)."""
        if value is not None:
            self._overrides[key] = value

    @property
    def access_token(self) -> Optional[str]:
        return (
            self._overrides.get("access_token")
            or os.environ.get(ENV_ACCESS_TOKEN)
            or self._file_value("accessToken", "access_token", "developerToken")
        )

    @property
    def api_url(self) -> str:
        return (
            self._overrides.get("api_url")
            or os.environ.get(ENV_API_URL)
            or self._file_value("apiUrl", "api_url")
            or DEFAULT_API_URL
        )

    @property
    def log_dir(self) -> Path:
        value = (
            self._overrides.get("log_dir")
            or os.environ.get(ENV_LOG_DIR)
            or self._file_value("logDir", "log_dir")
        )
        return Path(value) if value else Path.cwd() / DEFAULT_LOG_DIR_NAME

    def is_configured(self) -> bool:
        """Check whether an access token is available."""
        return bool(self.access_token)


config = Config()
