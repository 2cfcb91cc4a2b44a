# app/core/cache.py
import hashlib
import json
import logging
from typing import Any

import redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


class CatalogCache:
    """
    Read-through cache for public catalog listings.

    - Constructed once at startup and stored on app.state.
    - Key scheme: <prefix><sha1 of canonical JSON of the query params>.
    - Values are JSON documents with a TTL (SETEX).
    - Any Redis error is logged and treated as a miss; the cache never
      fails a request.
    - Admin catalog mutations call invalidate(), which drops every key
      under the prefix.
    """

    def __init__(
        self,
        client: "redis.Redis",
        ttl_seconds: int = 300,
        prefix: str = "catalog:products:",
    ):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix

    @classmethod
    def from_url(cls, url: str, ttl_seconds: int) -> "CatalogCache":
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=0.5,
            socket_connect_timeout=0.5,
        )
        return cls(client, ttl_seconds=ttl_seconds)

    def key_for(self, params: dict[str, Any]) -> str:
        canonical = json.dumps(params, sort_keys=True, default=str)
        return self.prefix + hashlib.sha1(canonical.encode("utf-8")).hexdigest()

    def get(self, params: dict[str, Any]) -> Any | None:
        key = self.key_for(params)
        try:
            raw = self.client.get(key)
        except RedisError as e:
            logger.warning("Catalog cache GET failed for %s: %s", key, e)
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    def set(self, params: dict[str, Any], value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        key = self.key_for(params)
        try:
            self.client.setex(key, self.ttl_seconds, json.dumps(value, default=str))
        except RedisError as e:
            logger.warning("Catalog cache SET failed for %s: %s", key, e)

    def invalidate(self) -> None:
        try:
            keys = list(self.client.scan_iter(match=self.prefix + "*"))
            if keys:
                self.client.delete(*keys)
        except RedisError as e:
            logger.warning("Catalog cache invalidation failed: %s", e)
