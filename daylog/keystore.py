"""
Key Store - Keeps the LLM API key in a small YAML file.

Storage errors are logged and reported through return values, never raised.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

import yaml

from daylog import constants

logger = logging.getLogger(__name__)

KEY_FIELD = "gemini_api_key"


class KeyStore:
    """File-backed credential storage."""

    def __init__(self, path: Union[str, Path] = constants.DEFAULT_KEYSTORE_PATH):
        self.path = Path(path).expanduser()

    def save(self, key: str) -> bool:
        """
        Write the API key to disk, readable only by the current user.

        Args:
            key: API key to store

        Returns:
            True on success, False if the key is empty or the write failed
        """
        if not key or not key.strip():
            return False

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w", encoding="utf-8") as f:
                yaml.safe_dump({KEY_FIELD: key.strip()}, f)
            os.chmod(self.path, 0o600)
        except OSError as e:
            logger.error(f"Failed to save API key: {e}")
            return False

        logger.info(f"API key saved to {self.path}")
        return True

    def load(self) -> Optional[str]:
        """
        Read the stored API key.

        Returns:
            The key, or None if nothing is stored or the file is unreadable
        """
        if not self.path.exists():
            return None

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Failed to load API key: {e}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Ignoring malformed key file: {self.path}")
            return None

        key = data.get(KEY_FIELD)
        return str(key) if key else None

    def clear(self) -> None:
        """Remove the stored API key, if any."""
        try:
            self.path.unlink()
            logger.info(f"API key removed from {self.path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Failed to clear API key: {e}")
