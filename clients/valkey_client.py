"""
Valkey (Redis-compatible) client for server-side sessions.

Every key is written under a namespace ("gatehouse:" by default) so the
auth data can share a Valkey instance. Values are JSON documents with a
TTL. Connection URL from Vault.
Fail-fast: raises on connection failure, never returns fallback values.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "gatehouse"


class ValkeyClient:
    """
    JSON document store over Valkey, with expiry on every write.

    Usage:
        client = ValkeyClient("redis://localhost:6379/0")
        client.set_json("session:abc", {"data": {}}, expire_seconds=3600)
        doc = client.get_json("session:abc")  # None if missing or expired
    """

    def __init__(self, url: str, namespace: str = DEFAULT_NAMESPACE):
        """
        Args:
            url: Redis-compatible connection URL (e.g., redis://localhost:6379/0)
            namespace: Prefix joined to every key with ":"

        Raises:
            redis.ConnectionError: If connection fails
        """
        if not namespace:
            raise ValueError("namespace must not be empty")
        self._namespace = namespace
        self._client = redis.from_url(url, decode_responses=True)
        # Verify connectivity immediately (fail-fast)
        self._client.ping()
        logger.info(f"ValkeyClient connected (namespace '{namespace}')")

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}"

    def ping(self) -> bool:
        """Health check. Raises redis.ConnectionError if unreachable."""
        self._client.ping()
        return True

    def set_json(self, key: str, value: dict, expire_seconds: int) -> None:
        """Store value as JSON, replacing any previous value and TTL."""
        if expire_seconds <= 0:
            raise ValueError(f"expire_seconds must be positive, got {expire_seconds}")
        self._client.setex(self._key(key), expire_seconds, json.dumps(value))

    def get_json(self, key: str) -> dict | None:
        """
        Get and deserialize a JSON document.

        Returns None if key doesn't exist.
        Raises ValueError if the stored value is not a JSON object.
        """
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in key '{key}': {e}")
        if not isinstance(value, dict):
            raise ValueError(f"Key '{key}' does not hold a JSON object")
        return value

    def expire(self, key: str, expire_seconds: int) -> bool:
        """Reset a key's TTL. Returns False if the key doesn't exist."""
        return bool(self._client.expire(self._key(key), expire_seconds))

    def delete(self, key: str) -> bool:
        """Returns True if key existed and was deleted."""
        return self._client.delete(self._key(key)) > 0

    def ttl(self, key: str) -> int:
        """
        Remaining TTL in seconds.

        Returns:
            -2 if key doesn't exist
            -1 if key has no expiration
            Positive int: remaining seconds
        """
        return self._client.ttl(self._key(key))

    def close(self) -> None:
        self._client.close()
        logger.info("ValkeyClient closed")
