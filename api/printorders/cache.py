import time
from threading import Lock
from .config import LISTING_CACHE_TTL


class ListingCache:
    """Short-lived cache for admin listing responses, cleared on writes."""

    def __init__(self, ttl: float = LISTING_CACHE_TTL):
        self.ttl = ttl
        self._entries = {}
        self._lock = Lock()

    def get(self, key: str):
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if time.monotonic() - stored_at > self.ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value):
        if self.ttl <= 0:
            return
        with self._lock:
            self._entries[key] = (time.monotonic(), value)

    def invalidate(self, prefix: str = ""):
        with self._lock:
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]


listing_cache = ListingCache()
