"""
Valkey (Redis-compatible) client for session records.

Thin wrapper around redis-py that stores JSON documents. Fails fast:
a missing server raises at construction, never falls back.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)


class ValkeyClient:
    """
    JSON document store over Valkey.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("session:abc", {"owner_id": "user_1"}, expire_seconds=300)
        data = client.get_json("session:abc")  # None if missing
    """

    def __init__(self, url: str):
        """
        Raises:
            redis.ConnectionError: If the server is unreachable
        """
        self._client = redis.from_url(url, decode_responses=True)
        self._client.ping()
        logger.info("ValkeyClient connected")

    def get_json(self, key: str) -> dict | list | None:
        """
        Read and decode a JSON document.

        Raises:
            ValueError: If the stored value is not valid JSON
        """
        value = self._client.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}") from e

    def set_json(self, key: str, value: dict | list, expire_seconds: int | None = None) -> None:
        """Store value as JSON; expire_seconds replaces any existing TTL."""
        encoded = json.dumps(value, default=str)
        if expire_seconds is not None:
            self._client.setex(key, expire_seconds, encoded)
        else:
            self._client.set(key, encoded)

    def delete(self, key: str) -> bool:
        """Delete key. True if it existed."""
        return self._client.delete(key) > 0

    def close(self) -> None:
        self._client.close()
        logger.info("ValkeyClient closed")
