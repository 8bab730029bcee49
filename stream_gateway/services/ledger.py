# per-identity token accounting inside a fixed monthly window
# the window starts when an identity is first seen and is never extended by later writes

from __future__ import annotations
import logging
import math

from stream_gateway.schemas.stream import CallerIdentity
from stream_gateway.services.store import KeyValueStore, StoreError

logger = logging.getLogger(__name__)


class QuotaExceededError(Exception):
    def __init__(self, identity_key: str, consumed: int, limit: int) -> None:
        super().__init__(f"{identity_key} consumed {consumed} of {limit} tokens")
        self.identity_key = identity_key
        self.consumed = consumed
        self.limit = limit


def estimate_tokens(query: str) -> int:
    # roughly four characters per token
    return math.ceil(len(query) / 4)


class UsageLedger:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        monthly_limit: int,
        window_seconds: int,
        key_prefix: str = "",
    ) -> None:
        self._store = store
        self._limit = monthly_limit
        self._window = window_seconds
        self._prefix = key_prefix

    @property
    def monthly_limit(self) -> int:
        return self._limit

    def _key(self, identity: CallerIdentity) -> str:
        return f"{self._prefix}{identity.key}"

    async def get_consumed(self, identity: CallerIdentity) -> int:
        """Tokens consumed in the current window; opens a zero record on first sight."""
        key = self._key(identity)
        try:
            # adding 0 reads the count and opens the window in one step
            return await self._store.incr(key, 0, ttl_seconds=self._window)
        except StoreError as e:
            # fail open: an unreadable ledger must not block generation
            logger.warning("usage read failed for %s, assuming 0: %s", identity.key, e)
            return 0
        except ValueError:
            logger.warning("corrupt usage value for %s, assuming 0", identity.key)
            return 0

    async def record_consumption(self, identity: CallerIdentity, tokens: int) -> None:
        if tokens < 0:
            raise ValueError("tokens must be >= 0")
        key = self._key(identity)
        try:
            # an elapsed window is replaced by a fresh one, never by a record without expiry
            await self._store.incr(key, tokens, ttl_seconds=self._window)
        except (StoreError, ValueError) as e:
            logger.warning("usage write of %d tokens for %s dropped: %s", tokens, identity.key, e)

    async def is_over_budget(self, identity: CallerIdentity) -> bool:
        return await self.get_consumed(identity) >= self._limit

    async def ensure_within_budget(self, identity: CallerIdentity) -> None:
        consumed = await self.get_consumed(identity)
        if consumed >= self._limit:
            raise QuotaExceededError(identity.key, consumed, self._limit)
