"""Redis client configuration for the redis store backend."""

import redis

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client(redis_url: str) -> redis.Redis:
    """
    Get or create Redis client instance.

    Args:
        redis_url: Connection URL, e.g. ``redis://localhost:6379/0``

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=5,
            socket_keepalive=True,
            health_check_interval=30,
        )

    return _redis_client


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None
