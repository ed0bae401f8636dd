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

"""Render caches.

Usage::

    from strata.cache import FileCache

    cache = FileCache("~/.cache/myapp/pages")
    cache.put("key", "<p>rendered</p>", ttl=600)
    cache.get("key")
"""

from strata.cache.base import DEFAULT_TTL, BaseCache
from strata.cache.file import FileCache, default_cache_dir
from strata.cache.memory import MemoryCache

__all__ = ["DEFAULT_TTL", "BaseCache", "FileCache", "MemoryCache", "default_cache_dir"]
