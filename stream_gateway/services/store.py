# key-value backing store for the usage ledger: string values with optional expiry

from __future__ import annotations
from typing import Callable, Dict, Optional, Protocol, Tuple
import asyncio
import time


class StoreError(Exception):
    """Raised by a backend when a read or write cannot be served."""


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    # ttl_seconds=None keeps whatever expiry the key already has
    async def put(self, key: str, value: str, *, ttl_seconds: Optional[int] = None) -> None: ...

    # atomic add to an integer value; ttl_seconds only applies when the key is missing or expired
    async def incr(self, key: str, amount: int, *, ttl_seconds: int) -> int: ...


class InMemoryStore:
    """
    Process-local store.
    - Expired keys are dropped on access and by a periodic sweep on writes
    - Writes without ttl_seconds keep the key's current expiry
    - At most max_keys entries; past that the key closest to expiry is evicted
    """
    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        max_keys: int = 100_000,
        sweep_interval: float = 60.0,
    ) -> None:
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}  # key -> (value, expires_at)
        self._lock = asyncio.Lock()
        self._clock = clock
        self._max_keys = max(1, max_keys)
        self._sweep_interval = max(0.0, sweep_interval)
        self._next_sweep = clock() + self._sweep_interval

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> Optional[str]:
        async with self._lock:
            entry = self._live(key, self._clock())
            return entry[0] if entry else None

    async def put(self, key: str, value: str, *, ttl_seconds: Optional[int] = None) -> None:
        async with self._lock:
            now = self._clock()
            if ttl_seconds is not None:
                expires_at: Optional[float] = now + max(0, ttl_seconds)
            else:
                entry = self._live(key, now)
                expires_at = entry[1] if entry else None
            self._write(key, value, expires_at, now)

    async def incr(self, key: str, amount: int, *, ttl_seconds: int) -> int:
        async with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            if entry is None:
                total, expires_at = amount, now + max(0, ttl_seconds)
            else:
                total, expires_at = int(entry[0]) + amount, entry[1]
            self._write(key, str(total), expires_at, now)
            return total

    async def ttl(self, key: str) -> Optional[float]:
        """Seconds until the key expires; None when missing or without expiry."""
        async with self._lock:
            now = self._clock()
            entry = self._live(key, now)
            if not entry or entry[1] is None:
                return None
            return entry[1] - now

    def _live(self, key: str, now: float) -> Optional[Tuple[str, Optional[float]]]:
        entry = self._data.get(key)
        if entry is None:
            return None
        expires_at = entry[1]
        if expires_at is not None and now >= expires_at:
            self._data.pop(key, None)
            return None
        return entry

    def _write(self, key: str, value: str, expires_at: Optional[float], now: float) -> None:
        self._data[key] = (value, expires_at)
        if now >= self._next_sweep or len(self._data) > self._max_keys:
            self._sweep(now)
            self._next_sweep = now + self._sweep_interval
        # still over the cap with only live keys: drop the one that would expire first
        while len(self._data) > self._max_keys:
            victim = min(
                (k for k in self._data if k != key),
                key=lambda k: self._data[k][1] if self._data[k][1] is not None else float("inf"),
            )
            self._data.pop(victim, None)

    def _sweep(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._data.items() if exp is not None and now >= exp]
        for k in expired:
            self._data.pop(k, None)
