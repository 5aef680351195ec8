from __future__ import annotations

"""Redis connection settings and client construction for the suppression store."""


import logging
from dataclasses import dataclass
from typing import Any, Dict

import redis.asyncio

from .config import ConfigurationError, env_bool, env_float, env_int, env_str

logger = logging.getLogger(__name__)

DEFAULT_REDIS_HOST = "localhost"
DEFAULT_REDIS_PORT = 6379
DEFAULT_SOCKET_TIMEOUT_SECONDS = 10.0
DEFAULT_CONNECT_TIMEOUT_SECONDS = 10.0
DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS = 15.0


@dataclass(frozen=True)
class RedisSettings:
    host: str
    port: int
    db: int
    password: str | None
    ssl: bool
    socket_timeout: float
    socket_connect_timeout: float
    retry_on_timeout: bool
    health_check_interval: float


def get_redis_settings() -> RedisSettings:
    """Read Redis connection settings from ``REDIS_*`` environment variables."""
    port = env_int("REDIS_PORT", or_value=DEFAULT_REDIS_PORT)
    db = env_int("REDIS_DB", or_value=0)
    if port is None or port <= 0:
        raise ConfigurationError(f"REDIS_PORT must be positive; received {port}")
    if db is None or db < 0:
        raise ConfigurationError(f"REDIS_DB must be non-negative; received {db}")

    password = env_str("REDIS_PASSWORD", allow_blank=True)
    return RedisSettings(
        host=env_str("REDIS_HOST", or_value=DEFAULT_REDIS_HOST) or DEFAULT_REDIS_HOST,
        port=int(port),
        db=int(db),
        password=password or None,
        ssl=bool(env_bool("REDIS_SSL", or_value=False)),
        socket_timeout=float(env_float("REDIS_SOCKET_TIMEOUT", or_value=DEFAULT_SOCKET_TIMEOUT_SECONDS)),
        socket_connect_timeout=float(env_float("REDIS_SOCKET_CONNECT_TIMEOUT", or_value=DEFAULT_CONNECT_TIMEOUT_SECONDS)),
        retry_on_timeout=bool(env_bool("REDIS_RETRY_ON_TIMEOUT", or_value=True)),
        health_check_interval=float(
            env_float("REDIS_HEALTH_CHECK_INTERVAL", or_value=DEFAULT_HEALTH_CHECK_INTERVAL_SECONDS)
        ),
    )


def build_client_settings(settings: RedisSettings) -> Dict[str, Any]:
    """
    Build keyword arguments for ``redis.asyncio.Redis``.

    Args:
        settings: Connection settings

    Returns:
        Dictionary of client settings
    """
    client_settings: Dict[str, Any] = {
        "host": settings.host,
        "port": settings.port,
        "db": settings.db,
        "decode_responses": True,
        "encoding": "utf-8",
        "socket_timeout": settings.socket_timeout,
        "socket_connect_timeout": settings.socket_connect_timeout,
        "retry_on_timeout": settings.retry_on_timeout,
        "health_check_interval": settings.health_check_interval,
    }

    if settings.password:
        client_settings["password"] = settings.password

    if settings.ssl:
        client_settings["ssl"] = True

    return client_settings


def mask_sensitive_settings(client_settings: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``client_settings`` with the password masked for logging."""
    masked = dict(client_settings)
    if "password" in masked:
        masked["password"] = "***"
    return masked


def create_redis_client(settings: RedisSettings | None = None) -> redis.asyncio.Redis:
    """Create an asyncio Redis client from explicit or environment settings."""
    resolved = settings or get_redis_settings()
    client_settings = build_client_settings(resolved)
    logger.info("Creating Redis client with settings: %s", mask_sensitive_settings(client_settings))
    return redis.asyncio.Redis(**client_settings)


__all__ = [
    "RedisSettings",
    "build_client_settings",
    "create_redis_client",
    "get_redis_settings",
    "mask_sensitive_settings",
]
