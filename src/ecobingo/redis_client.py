"""Redis connection pool shared by the event bus and readiness checks."""

import redis.asyncio as redis

_pool: redis.Redis | None = None


async def init_redis(url: str) -> redis.Redis:
    """Initialize the Redis connection pool and return the client."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
        socket_timeout=5,
    )
    return _pool


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


async def ping_redis() -> str:
    """Return "ok" when Redis answers, otherwise the error text."""
    try:
        await get_redis().ping()
    except Exception as exc:  # noqa: BLE001
        return f"error: {exc}"
    return "ok"
