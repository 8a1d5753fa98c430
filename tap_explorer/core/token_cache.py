"""Access token cache.

Tokens are keyed by environment and client configuration and kept in a
caller-supplied key-value store, so the same cache works in memory, on disk
or in any other store that implements ``KeyValueStore``.
"""

import base64
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol, runtime_checkable

from pydantic import ValidationError

from ..logging import get_logger
from .oauth import AccessToken, ClientCredentials

logger = get_logger(__name__)

CACHE_KEY_PREFIX = "tap_token_cache_"
# Tokens this close to expiry are treated as expired
EXPIRATION_BUFFER = timedelta(minutes=2)


@runtime_checkable
class KeyValueStore(Protocol):
    """Minimal string key-value store."""

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class InMemoryStore:
    """Dict-backed KeyValueStore."""

    def __init__(self):
        self._data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __len__(self) -> int:
        return len(self._data)


class TokenCache:
    """Caches access tokens per environment + client configuration.

    Example:
        cache = TokenCache(InMemoryStore())
        token = cache.get("DEV", credentials)
        if token is None:
            token = await oauth.fetch_token(credentials)
            cache.put("DEV", credentials, token)
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        clock: Callable[[], datetime] | None = None,
        buffer: timedelta = EXPIRATION_BUFFER,
    ):
        self.store = store if store is not None else InMemoryStore()
        self.clock = clock or (lambda: datetime.now(UTC))
        self.buffer = buffer

    @staticmethod
    def cache_key(environment_key: str, credentials: ClientCredentials) -> str:
        """Derive a filesystem-safe key from the environment and client config."""
        raw = f"{environment_key}:{credentials.client_id}:{credentials.token_url}:{credentials.scope}"
        encoded = base64.b64encode(raw.encode()).decode()
        return CACHE_KEY_PREFIX + encoded.replace("/", "_").replace("+", "_").replace("=", "_")

    def is_valid(self, token: AccessToken) -> bool:
        return self.clock() < token.expires_at - self.buffer

    def get(self, environment_key: str, credentials: ClientCredentials) -> AccessToken | None:
        """Return a cached, unexpired token or None (evicting stale entries)."""
        key = self.cache_key(environment_key, credentials)
        stored = self.store.get(key)
        if stored is None:
            return None

        try:
            token = AccessToken.model_validate_json(stored)
        except ValidationError:
            logger.warning("Discarding unreadable cached token for %s", environment_key)
            self.store.delete(key)
            return None

        if not self.is_valid(token):
            self.store.delete(key)
            return None

        remaining = int((token.expires_at - self.clock()).total_seconds() // 60)
        logger.debug("Using cached token for %s (expires in %d minutes)", environment_key, remaining)
        return token

    def put(self, environment_key: str, credentials: ClientCredentials, token: AccessToken) -> None:
        self.store.set(self.cache_key(environment_key, credentials), token.model_dump_json())

    def invalidate(self, environment_key: str, credentials: ClientCredentials) -> None:
        self.store.delete(self.cache_key(environment_key, credentials))
