# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Redis cache for address and geocoding lookups.

Lookups against the public postal-code and geocoding services are cached
so repeated searches for the same CEP do not hit the upstream again.
Every operation fails gracefully: an unavailable cache behaves like a miss.
"""

import json
from typing import Optional, Dict, List, Any, Union
import redis
from opentelemetry import trace
import logging

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 86400


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""
    pass


class RedisService:
    """Redis cache with redis-py, disabled when no URL is configured."""

    def __init__(self, redis_url: Optional[str] = None, default_ttl: int = DEFAULT_TTL_SECONDS, client=None):
        """
        Initialize the Redis service.

        Args:
            redis_url: Redis connection URL (redis://host:port/db); empty disables caching
            default_ttl: TTL applied when callers do not pass one
            client: Pre-built client, mainly for tests
        """
        self.redis_url = redis_url
        self.default_ttl = default_ttl
        self.client = client

        if self.client is not None:
            return

        if not self.redis_url:
            logger.info("No REDIS_URL configured, lookup cache disabled")
            return

        try:
            self.client = redis.from_url(self.redis_url, decode_responses=True)
            self._test_connection()
            logger.info(f"Redis cache initialized at {self.redis_url}")
        except Exception as e:
            logger.error(f"Failed to initialize Redis cache: {str(e)}")
            self.client = None

    def _test_connection(self) -> None:
        """Test Redis connection."""
        try:
            if not self.client.ping():
                raise RedisConnectionError("Redis ping failed")
        except redis.RedisError as e:
            raise RedisConnectionError(f"Redis connection failed: {str(e)}")

    def is_available(self) -> bool:
        """Check if the cache is usable."""
        return self.client is not None

    def set(self, key: str, value: Union[str, Dict, List], ttl: Optional[int] = None) -> bool:
        """
        Store a value, JSON encoding dicts and lists.

        Returns:
            True if stored, False otherwise
        """
        if not self.client:
            return False

        with tracer.start_as_current_span("redis.set") as span:
            span.set_attributes({"redis.key": key, "redis.ttl": ttl or self.default_ttl})

            try:
                if isinstance(value, (dict, list)):
                    value = json.dumps(value)
                self.client.setex(key, ttl or self.default_ttl, value)
                span.set_attribute("redis.result", "success")
                return True
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis set failed for key {key}: {str(e)}")
                return False

    def get(self, key: str) -> Optional[Any]:
        """
        Read a value, decoding JSON when possible.

        Returns:
            Cached value, or None on miss or error
        """
        if not self.client:
            return None

        with tracer.start_as_current_span("redis.get") as span:
            span.set_attribute("redis.key", key)

            try:
                value = self.client.get(key)
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis get failed for key {key}: {str(e)}")
                return None

            if value is None:
                span.set_attribute("redis.result", "not_found")
                return None

            span.set_attribute("redis.result", "hit")
            try:
                return json.loads(value)
            except (json.JSONDecodeError, TypeError):
                return value

    def health_check(self) -> Dict[str, Any]:
        """Report cache connectivity."""
        if not self.client:
            return {"status": "disabled"}
        try:
            self.client.ping()
            return {"status": "healthy"}
        except redis.RedisError as e:
            return {"status": "unhealthy", "error": str(e)}
