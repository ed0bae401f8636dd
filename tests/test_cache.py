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

"""Tests for strata.cache."""

from unittest.mock import patch

import pytest

from strata.cache import FileCache, MemoryCache
from strata.cache.base import checksum
from strata.cache.file import HEADER_WIDTH
from strata.cache.memory import CacheEntry
from strata.errors import CacheEntryCorrupt, CacheEntryExpired, CacheEntryNotFound


@pytest.fixture(params=["memory", "file"])
def cache(request, tmp_path):
    if request.param == "memory":
        return MemoryCache()
    return FileCache(cache_dir=tmp_path / "cache")


class TestContract:
    def test_put_then_get(self, cache):
        cache.put("key", "<p>hello</p>", ttl=60)
        assert cache.has("key")
        assert cache.get("key") == "<p>hello</p>"

    def test_unicode_payload(self, cache):
        cache.put("key", "Grüße ☃", ttl=60)
        assert cache.get("key") == "Grüße ☃"

    def test_put_overwrites(self, cache):
        cache.put("key", "old", ttl=60)
        cache.put("key", "new", ttl=60)
        assert cache.get("key") == "new"

    def test_missing_entry(self, cache):
        assert not cache.has("missing")
        with pytest.raises(CacheEntryNotFound):
            cache.get("missing")

    def test_zero_ttl_is_expired(self, cache):
        cache.put("key", "stale", ttl=0)
        assert not cache.has("key")
        with pytest.raises(CacheEntryExpired):
            cache.get("key")

    def test_delete(self, cache):
        cache.put("key", "value", ttl=60)
        cache.delete("key")
        assert not cache.has("key")
        cache.delete("key")

    def test_clear(self, cache):
        cache.put("a", "1", ttl=60)
        cache.put("b", "2", ttl=60)
        cache.clear()
        assert not cache.has("a")
        assert not cache.has("b")


class TestLookup:
    def test_returns_payload(self, cache):
        cache.put("key", "value", ttl=60)
        assert cache.lookup("key") == "value"

    def test_miss_returns_none(self, cache):
        assert cache.lookup("missing") is None

    def test_expired_returns_none(self, cache):
        cache.put("key", "value", ttl=0)
        assert cache.lookup("key") is None


class TestMemoryCache:
    def test_len(self):
        cache = MemoryCache()
        cache.put("a", "1")
        cache.put("b", "2")
        assert len(cache) == 2

    def test_corrupt_entry(self):
        cache = MemoryCache()
        cache.put("key", "value", ttl=60)
        entry = cache._entries["key"]
        cache._entries["key"] = CacheEntry(b"valuf", entry.expires_at, entry.checksum)
        with pytest.raises(CacheEntryCorrupt):
            cache.get("key")
        assert cache.lookup("key") is None

    def test_expired_entry_is_evicted(self):
        cache = MemoryCache()
        cache.put("old", "value", ttl=0)
        cache.put("live", "value", ttl=60)
        with pytest.raises(CacheEntryExpired):
            cache.get("old")
        assert len(cache) == 1
        with pytest.raises(CacheEntryNotFound):
            cache.get("old")

    def test_entry_expiry(self):
        entry = CacheEntry(b"x", expires_at=100.0, checksum=checksum(b"x"))
        assert not entry.is_expired(now=99.0)
        assert entry.is_expired(now=100.0)


class TestFileCache:
    def test_creates_directory(self, tmp_path):
        target = tmp_path / "nested" / "cache"
        FileCache(cache_dir=target)
        assert target.is_dir()

    def test_file_named_by_key_hash(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("key", "value", ttl=60)
        files = list(tmp_path.iterdir())
        assert len(files) == 1
        assert len(files[0].name) == 40
        assert "key" not in files[0].name

    def test_layout_is_header_then_payload(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("key", "value", ttl=60)
        data = cache._path("key").read_bytes()
        assert data[HEADER_WIDTH:] == b"value"
        assert data[HEADER_WIDTH - 8:HEADER_WIDTH] == checksum(b"value").encode("ascii")

    def test_flipped_byte_is_corrupt(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("key", "payload", ttl=60)
        path = cache._path("key")
        data = bytearray(path.read_bytes())
        data[-1] ^= 0x01
        path.write_bytes(bytes(data))

        with pytest.raises(CacheEntryCorrupt):
            cache.get("key")

    def test_truncated_file_is_corrupt(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("key", "payload", ttl=60)
        cache._path("key").write_bytes(b"short")
        with pytest.raises(CacheEntryCorrupt):
            cache.get("key")

    def test_garbage_header_is_corrupt(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache._path("key").write_bytes(b"x" * HEADER_WIDTH + b"payload")
        assert not cache.has("key")
        with pytest.raises(CacheEntryCorrupt):
            cache.get("key")

    def test_put_leaves_no_temp_files(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("a", "1", ttl=60)
        cache.put("a", "2", ttl=60)
        assert [p.name for p in tmp_path.iterdir()] == [cache._path("a").name]

    def test_failed_publish_keeps_old_entry(self, tmp_path):
        cache = FileCache(cache_dir=tmp_path)
        cache.put("key", "old", ttl=60)
        with patch("strata.cache.file.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                cache.put("key", "new", ttl=60)
        assert cache.get("key") == "old"
        assert len(list(tmp_path.iterdir())) == 1

    def test_shared_directory(self, tmp_path):
        FileCache(cache_dir=tmp_path).put("key", "value", ttl=60)
        assert FileCache(cache_dir=tmp_path).get("key") == "value"

    def test_default_dir(self, tmp_path, monkeypatch):
        monkeypatch.setattr("strata.cache.file.platform.system", lambda: "Linux")
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        cache = FileCache()
        assert cache.cache_dir == tmp_path / "strata" / "render_cache"
