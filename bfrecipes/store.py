from __future__ import annotations

import logging

import redis

logger = logging.getLogger("bfrecipes")


def connect(config=None, host: str = None, port: int = None) -> redis.Redis:
    """
    Connect to the shared redis store. Responses are left as bytes, since calibration solutions hold binary data.
    """
    host = host or (config.redis_host if config is not None else "redishost")
    port = port or (config.redis_port if config is not None else 6379)
    logger.debug(f"Connecting to redis at {host}:{port}")
    return redis.Redis(host=host, port=port, decode_responses=False)
