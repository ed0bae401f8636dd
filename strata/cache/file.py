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

"""On-disk render cache.

Each key is stored in its own file, named by the SHA-1 of the key.  A
file holds a fixed-width header followed by the raw payload::

    <expiry: 32 chars, ISO-8601 UTC with microseconds><crc32: 8 hex chars><payload>

Writes go to a temporary file in the cache directory which is then
atomically renamed over the entry, so concurrent readers see either the
previous entry or the complete new one.

The default location follows the platform convention:

* macOS: ``~/Library/Caches/strata/render_cache``
* Linux: ``~/.cache/strata/render_cache``
* Windows: ``%LOCALAPPDATA%/strata/render_cache``
"""

from __future__ import annotations

import hashlib
import logging
import os
import platform
import tempfile
from datetime import UTC, datetime, timedelta
from pathlib import Path

from strata.cache.base import DEFAULT_TTL, BaseCache, checksum
from strata.errors import CacheEntryCorrupt, CacheEntryExpired, CacheEntryNotFound

logger = logging.getLogger(__name__)

EXPIRY_WIDTH = 32
CHECKSUM_WIDTH = 8
HEADER_WIDTH = EXPIRY_WIDTH + CHECKSUM_WIDTH


def default_cache_dir() -> Path:
    """Return a platform-appropriate default cache directory."""
    system = platform.system()
    if system == "Darwin":
        base = Path.home() / "Library" / "Caches"
    elif system == "Windows":
        local = Path.home() / "AppData" / "Local"
        base = local if local.exists() else Path.home() / ".cache"
    else:
        base = Path(os.environ.get("XDG_CACHE_HOME") or Path.home() / ".cache")
    return base / "strata" / "render_cache"


def _format_expiry(expires_at: datetime) -> bytes:
    return expires_at.astimezone(UTC).isoformat(timespec="microseconds").encode("ascii")


def _parse_expiry(raw: bytes) -> datetime | None:
    try:
        return datetime.fromisoformat(raw.decode("ascii"))
    except (UnicodeDecodeError, ValueError):
        return None


class FileCache(BaseCache):
    """One-file-per-entry cache rooted at *cache_dir*.

    Parameters
    ----------
    cache_dir:
        Directory for cache files, created if missing.  Defaults to
        :func:`default_cache_dir`.
    """

    def __init__(self, cache_dir: str | Path | None = None) -> None:
        if cache_dir is None:
            self.cache_dir = default_cache_dir()
        else:
            self.cache_dir = Path(cache_dir).expanduser()
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.cache_dir / hashlib.sha1(key.encode("utf-8")).hexdigest()

    def has(self, key: str) -> bool:
        try:
            with self._path(key).open("rb") as fh:
                raw = fh.read(EXPIRY_WIDTH)
        except FileNotFoundError:
            return False

        expires_at = _parse_expiry(raw)
        if expires_at is None:
            logger.debug("Unreadable expiry header for %s", key)
            return False
        return datetime.now(tz=UTC) < expires_at

    def get(self, key: str) -> str:
        try:
            data = self._path(key).read_bytes()
        except FileNotFoundError:
            raise CacheEntryNotFound(key) from None

        if len(data) < HEADER_WIDTH:
            raise CacheEntryCorrupt(key)
        expires_at = _parse_expiry(data[:EXPIRY_WIDTH])
        if expires_at is None:
            raise CacheEntryCorrupt(key)
        if datetime.now(tz=UTC) >= expires_at:
            raise CacheEntryExpired(key)

        stored_sum = data[EXPIRY_WIDTH:HEADER_WIDTH].decode("ascii", errors="replace")
        payload = data[HEADER_WIDTH:]
        if checksum(payload) != stored_sum:
            raise CacheEntryCorrupt(key)
        try:
            return payload.decode("utf-8")
        except UnicodeDecodeError:
            raise CacheEntryCorrupt(key) from None

    def put(self, key: str, content: str, ttl: int = DEFAULT_TTL) -> None:
        payload = content.encode("utf-8")
        expires_at = datetime.now(tz=UTC) + timedelta(seconds=ttl)
        header = _format_expiry(expires_at) + checksum(payload).encode("ascii")

        path = self._path(key)
        with tempfile.NamedTemporaryFile(
            dir=self.cache_dir, prefix=f".{path.name}.", suffix=".tmp", delete=False,
        ) as tmp:
            tmp.write(header + payload)
        try:
            os.replace(tmp.name, path)
        except OSError:
            Path(tmp.name).unlink(missing_ok=True)
            raise
        logger.debug("Cached %s to %s (%d bytes, ttl=%ds)", key, path.name, len(payload), ttl)

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove all cached entries."""
        for path in self.cache_dir.iterdir():
            if path.is_file():
                path.unlink(missing_ok=True)
        logger.info("Cleared render cache at %s", self.cache_dir)
