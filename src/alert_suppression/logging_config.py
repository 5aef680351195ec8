"""
Logging setup for processes that embed the suppression engine.

``setup_logging`` installs a stdout handler and, when a service name is given,
``logs/<service>.log``. The file is truncated on every start unless
``LOG_APPEND`` is truthy; ``LOG_DIRECTORY`` moves it.
"""

import logging
import logging.handlers
import sys
import threading
from pathlib import Path
from typing import Optional

from .config import env_bool, env_str

_config_lock = threading.Lock()
_MODULE_LOGGER = logging.getLogger(__name__)
_LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_NOISY_LOGGERS = ("asyncio", "redis", "redis.connection", "redis.asyncio")


def _is_console(handler: logging.Handler) -> bool:
    return isinstance(handler, logging.StreamHandler) and not isinstance(handler, logging.FileHandler)


def _already_configured(root_logger: logging.Logger, service_name: Optional[str]) -> bool:
    has_console = any(_is_console(handler) for handler in root_logger.handlers)
    if not service_name:
        return has_console
    return has_console and any(isinstance(handler, logging.FileHandler) for handler in root_logger.handlers)


def _drop_root_handlers(root_logger: logging.Logger) -> None:
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        try:
            handler.close()
        except OSError as exc:
            _MODULE_LOGGER.debug("Closing log handler %r failed: %s", handler, exc)


def _console_handler(user_friendly: bool) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    if user_friendly:
        handler.setFormatter(logging.Formatter("%(message)s"))
        handler.setLevel(logging.WARNING)
    else:
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
        handler.setLevel(logging.DEBUG)
    return handler


def _service_file_handler(service_name: str, logs_dir: Path) -> logging.Handler:
    logs_dir.mkdir(parents=True, exist_ok=True)
    mode = "a" if env_bool("LOG_APPEND", or_value=False) else "w"
    handler = logging.handlers.WatchedFileHandler(logs_dir / f"{service_name}.log", mode=mode)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT, _DATE_FORMAT))
    handler.setLevel(logging.INFO)
    return handler


def setup_logging(service_name: Optional[str] = None, user_friendly: bool = False, logs_dir: Optional[Path] = None):
    """Configure root logging once; repeated calls with handlers in place are no-ops."""
    with _config_lock:
        root_logger = logging.getLogger()
        if _already_configured(root_logger, service_name):
            return

        _drop_root_handlers(root_logger)
        root_logger.addHandler(_console_handler(user_friendly))
        if service_name:
            target_dir = logs_dir or Path(env_str("LOG_DIRECTORY", or_value="logs") or "logs").expanduser()
            root_logger.addHandler(_service_file_handler(service_name, target_dir))

        root_logger.setLevel(logging.INFO)
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["setup_logging"]
