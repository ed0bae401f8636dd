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

"""Abstract base class for render caches.

Backends implement :meth:`has`, :meth:`get`, :meth:`put`, :meth:`delete`
and :meth:`clear`.  A ``put`` must be visible to an immediately
following ``has``/``get`` on the same instance, and readers must never
observe a partially written entry.

``get`` fails distinctly:

* :class:`~strata.errors.CacheEntryNotFound`: no entry for the key
* :class:`~strata.errors.CacheEntryExpired`: the entry's TTL has passed
* :class:`~strata.errors.CacheEntryCorrupt`: the payload does not match
  its checksum
"""

from __future__ import annotations

import logging
import zlib
from abc import ABC, abstractmethod

from strata.errors import CacheEntryNotFound, CacheError

logger = logging.getLogger(__name__)

DEFAULT_TTL = 3600


def checksum(payload: bytes) -> str:
    """Return the fixed-width (8 hex digit) CRC-32 of *payload*."""
    return f"{zlib.crc32(payload) & 0xFFFFFFFF:08x}"


class BaseCache(ABC):
    """Key/value store with per-entry expiry and integrity checks."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return ``True`` if a live (unexpired) entry exists for *key*."""

    @abstractmethod
    def get(self, key: str) -> str:
        """Return the payload stored under *key*."""

    @abstractmethod
    def put(self, key: str, content: str, ttl: int = DEFAULT_TTL) -> None:
        """Store *content* under *key* for *ttl* seconds."""

    @abstractmethod
    def delete(self, key: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    def lookup(self, key: str) -> str | None:
        """Return the payload for *key*, or ``None`` on any read failure.

        Expired and corrupt entries are logged and treated as misses.
        """
        try:
            return self.get(key)
        except CacheEntryNotFound:
            logger.debug("Cache miss for %s", key)
        except CacheError as exc:
            logger.warning("Ignoring cache entry: %s", exc)
        return None
