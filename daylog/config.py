"""
Settings - loads config.yaml with defaults and environment overrides.
"""

import logging
import os
from pathlib import Path
from typing import Optional

import yaml

from daylog import constants

logger = logging.getLogger(__name__)


class Settings:
    """Runtime configuration for one daylog invocation."""

    def __init__(self, config: Optional[dict] = None, config_path: Optional[Path] = None):
        self.config_path = config_path
        self.config = config or {}

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Settings":
        """
        Load settings from a YAML file.

        The path defaults to $DAYLOG_CONFIG, then config.yaml in the current
        directory. A missing file yields the built-in defaults.

        Args:
            config_path: Explicit path to a YAML config file

        Returns:
            Settings instance
        """
        path = Path(config_path or os.environ.get("DAYLOG_CONFIG") or constants.DEFAULT_CONFIG_PATH)

        if not path.exists():
            logger.debug(f"Config not found: {path}, using defaults")
            return cls(config_path=path)

        with open(path, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f) or {}

        if not isinstance(config, dict):
            raise ValueError(f"Config file {path} must contain a mapping")

        logger.debug(f"Loaded config from {path}")
        return cls(config, config_path=path)

    def _llm(self) -> dict:
        return self.config.get("llm", {}) or {}

    def _thresholds(self) -> dict:
        return self.config.get("thresholds", {}) or {}

    @property
    def provider(self) -> str:
        """LLM provider: 'gemini' or 'ollama'."""
        return self._llm().get("provider", constants.DEFAULT_PROVIDER)

    @property
    def model(self) -> str:
        env_model = os.environ.get("DAYLOG_MODEL")
        if env_model:
            return env_model
        default = constants.DEFAULT_OLLAMA_MODEL if self.provider == "ollama" else constants.DEFAULT_MODEL
        return self._llm().get("model", default)

    @property
    def base_url(self) -> str:
        return self._llm().get("base_url", constants.GEMINI_BASE_URL)

    @property
    def timeout(self) -> int:
        return int(self._llm().get("timeout", constants.REQUEST_TIMEOUT))

    @property
    def api_key(self) -> Optional[str]:
        """API key from $GEMINI_API_KEY, falling back to llm.api_key in config."""
        return os.environ.get("GEMINI_API_KEY") or self._llm().get("api_key")

    @property
    def energy_change_threshold(self) -> int:
        return int(self._thresholds().get("energy_change", constants.ENERGY_CHANGE_THRESHOLD))

    @property
    def sleep_end_hour(self) -> int:
        return int(self._thresholds().get("sleep_end_hour", constants.SLEEP_END_HOUR))

    @property
    def extra_keywords(self) -> dict:
        """Additional fallback keywords per category label or name."""
        keywords = self.config.get("keywords") or {}
        return keywords if isinstance(keywords, dict) else {}

    @property
    def keystore_path(self) -> Path:
        return Path(self.config.get("keystore_path", constants.DEFAULT_KEYSTORE_PATH)).expanduser()
