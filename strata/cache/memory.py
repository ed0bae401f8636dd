# strata — block-based template inheritance and caching
# Copyright (C) 2024-2026 Dr Horst Herb
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""Thread-safe in-process cache."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass

from strata.cache.base import DEFAULT_TTL, BaseCache, checksum
from strata.errors import CacheEntryCorrupt, CacheEntryExpired, CacheEntryNotFound

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheEntry:
    """A stored payload with its expiry (epoch seconds) and checksum."""

    payload: bytes
    expires_at: float
    checksum: str

    def is_expired(self, now: float | None = None) -> bool:
        return (time.time() if now is None else now) >= self.expires_at


class MemoryCache(BaseCache):
    """Dictionary-backed cache guarded by a lock.

    Entries are replaced whole, so readers see either the old or the new
    entry, never a mixture.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
        return entry is not None and not entry.is_expired()

    def get(self, key: str) -> str:
        with self._lock:
            entry = self._entries.get(key)
            expired = entry is not None and entry.is_expired()
            if expired:
                del self._entries[key]
        if entry is None:
            raise CacheEntryNotFound(key)
        if expired:
            logger.debug("Evicted expired entry %s", key)
            raise CacheEntryExpired(key)
        if checksum(entry.payload) != entry.checksum:
            raise CacheEntryCorrupt(key)
        return entry.payload.decode("utf-8")

    def put(self, key: str, content: str, ttl: int = DEFAULT_TTL) -> None:
        payload = content.encode("utf-8")
        entry = CacheEntry(
            payload=payload,
            expires_at=time.time() + ttl,
            checksum=checksum(payload),
        )
        with self._lock:
            self._entries[key] = entry
        logger.debug("Cached %s (%d bytes, ttl=%ds)", key, len(payload), ttl)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
