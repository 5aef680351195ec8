"""JSON config files under ``config/`` (``suppression_config.json`` and friends)."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _resolve_config_dir() -> Path:
    """Prefer ``./config``; fall back to the repository's ``config/`` beside ``src/``."""
    cwd_config = Path.cwd() / "config"
    if cwd_config.exists():
        return cwd_config
    return Path(__file__).resolve().parents[2] / "config"


class BaseConfigLoader:
    """Reads JSON documents from one config directory."""

    def __init__(self, config_dir: Path):
        self.config_dir = config_dir

    def load_json_file(self, filename: str) -> Dict[str, Any]:
        """
        Parse ``config_dir / filename``.

        Raises:
            FileNotFoundError: The file does not exist
            ConfigurationError: The file is not valid JSON
        """
        config_path = self.config_dir / filename
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        logger.debug("Loading config file %s", config_path)
        with config_path.open("r", encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Invalid JSON in config file {filename}") from exc


def load_config(filename: str, config_dir: Optional[Path] = None) -> Dict[str, Any]:
    """Load ``filename`` from ``config_dir`` or the default config directory."""
    return BaseConfigLoader(config_dir if config_dir is not None else _resolve_config_dir()).load_json_file(filename)


__all__ = ["BaseConfigLoader", "load_config"]
