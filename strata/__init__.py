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

"""Block-based template inheritance with layered caching.

Templates declare named blocks; a template that extends another one
overrides, prepends to or appends to the base template's blocks.
Rendered pages, individual blocks and included templates can be cached,
and deferred fragments keep parts of a cached page live.

Usage::

    from strata import Engine
    from strata.cache import FileCache
    from strata.plugins import CachePlugin

    engine = Engine(["templates"])
    engine.add_plugin(CachePlugin(FileCache(), ttl=600))
    html = engine.render("home.html", {"user": "alice"})
"""

from strata.config import EngineConfig
from strata.engine import Engine
from strata.errors import (
    BlockStackError,
    BlockTypeMismatch,
    CacheEntryCorrupt,
    CacheEntryExpired,
    CacheEntryNotFound,
    CacheError,
    CacheUnavailable,
    DeferredFragmentError,
    ExtendCycle,
    InvalidCacheMode,
    StrataError,
    TemplateNotFound,
    TemplateStructureError,
)
from strata.template import CacheMode, Template

__all__ = [
    "BlockStackError",
    "BlockTypeMismatch",
    "CacheEntryCorrupt",
    "CacheEntryExpired",
    "CacheEntryNotFound",
    "CacheError",
    "CacheMode",
    "CacheUnavailable",
    "DeferredFragmentError",
    "Engine",
    "EngineConfig",
    "ExtendCycle",
    "InvalidCacheMode",
    "StrataError",
    "Template",
    "TemplateNotFound",
    "TemplateStructureError",
]
