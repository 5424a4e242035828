"""
In process cache with absolute expiration.
"""

import datetime
import logging
import threading
import time
from typing import Any, Callable

logger = logging.getLogger(__name__)


class CacheBase:
    """
    Base class for caches.
    """

    def get(self, key: str) -> Any | None:
        """
        Get a value, or None if missing or expired.
        """
        raise NotImplementedError(f"get not implemented in {self.__class__.__name__}")

    def set(self, key: str, value: Any, ttl: datetime.timedelta) -> None:
        """
        Set a value that expires `ttl` from now, no matter how often it is read.
        """
        raise NotImplementedError(f"set not implemented in {self.__class__.__name__}")

    def remove(self, key: str) -> None:
        """
        Remove a value. Missing keys are ignored.
        """
        raise NotImplementedError(
            f"remove not implemented in {self.__class__.__name__}"
        )


class MemoryCache(CacheBase):
    """
    Dict based cache, shared by all requests of the process.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self.clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} entries={len(self._entries)}>"

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self.clock() >= expires_at:
                logger.debug("Cache entry expired key=%s", key)
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: datetime.timedelta) -> None:
        with self._lock:
            self._entries[key] = (self.clock() + ttl.total_seconds(), value)

    def remove(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
