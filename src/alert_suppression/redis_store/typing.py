"""Client alias for the store's redis.asyncio connection."""

from __future__ import annotations

from typing import TYPE_CHECKING, Awaitable, TypeVar, cast

from redis import asyncio as redis_asyncio

if TYPE_CHECKING:
    from redis.asyncio import Redis as RedisClient
else:  # pragma: no cover
    RedisClient = redis_asyncio.Redis

_T = TypeVar("_T")


def ensure_awaitable(result: "Awaitable[_T] | _T") -> Awaitable[_T]:
    # redis-py annotates commands as sync|async; the store only uses the asyncio client
    return cast(Awaitable[_T], result)


__all__ = ["RedisClient", "ensure_awaitable"]
