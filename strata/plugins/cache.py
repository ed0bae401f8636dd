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

"""Caching directives for templates.

Adding the plugin installs its cache on the engine and provides:

``cache(name, ttl=None)``
    Declare a block whose rendered output is cached under its block id.
``cincl(name, vars=None, ttl=None)``
    Include a template, caching its output.
``cfetch(url, ttl=None)``
    Fetch a URL and cache the response body.
``ncfetch(url)``
    Fetch a URL on every render, even when the page itself is cached.

Usage::

    engine = Engine(["templates"])
    engine.add_plugin(CachePlugin(FileCache("~/.cache/site"), ttl=600))
"""

from __future__ import annotations

import hashlib
import logging
from typing import TYPE_CHECKING, Any

import httpx

from strata.blocks.block import Block, BlockKind
from strata.cache.base import DEFAULT_TTL, BaseCache
from strata.errors import CacheUnavailable
from strata.plugins.base import BasePlugin

if TYPE_CHECKING:
    from collections.abc import Mapping

    from strata.engine import Engine
    from strata.template.template import Template

logger = logging.getLogger(__name__)

TIMEOUT = 30.0


def _require_cache(template: Template) -> BaseCache:
    cache = template.cache
    if cache is None:
        raise CacheUnavailable(template.path)
    return cache


class CachePlugin(BasePlugin):
    """Install a cache and the directives that use it."""

    def __init__(
        self,
        cache: BaseCache,
        ttl: int = DEFAULT_TTL,
        timeout: float = TIMEOUT,
    ) -> None:
        self.cache = cache
        self.ttl = ttl
        self.timeout = timeout

    def init(self, engine: Engine) -> None:
        engine.set_cache(self.cache, self.ttl)
        engine.add_directive("cache", self.cache_block)
        engine.add_directive("cincl", self.cincl)
        engine.add_directive("cfetch", self.cfetch)
        engine.add_directive("ncfetch", self.ncfetch)
        engine.deferred.register("fetch", self.fetch)

    # --- HTTP -------------------------------------------------------------------

    def _http_get(self, url: str) -> httpx.Response:
        """HTTP GET with timeout. Separated for testability."""
        with httpx.Client(timeout=self.timeout, follow_redirects=True) as client:
            return client.get(url)

    def fetch(self, url: str) -> str:
        """Return the body of *url*, raising on HTTP errors."""
        resp = self._http_get(url)
        resp.raise_for_status()
        logger.debug("Fetched %s (%d chars)", url, len(resp.text))
        return resp.text

    # --- Directives ---------------------------------------------------------------

    def cache_block(self, template: Template, name: str, ttl: int | None = None) -> None:
        _require_cache(template)
        template.add_block(Block(template, name, kind=BlockKind.CACHEABLE, ttl=ttl))

    def cincl(
        self,
        template: Template,
        name: str,
        variables: Mapping[str, Any] | None = None,
        ttl: int | None = None,
    ) -> str:
        cache = _require_cache(template)
        included = template.new_template(name, variables)

        output = cache.lookup(included.id)
        if output is None:
            output = included.render()
            cache.put(included.id, output, self.ttl if ttl is None else ttl)
        return template.track_deferred(output)

    def cfetch(self, template: Template, url: str, ttl: int | None = None) -> str:
        cache = _require_cache(template)
        key = hashlib.sha1(f"{template.id}{url}".encode("utf-8")).hexdigest()

        content = cache.lookup(key)
        if content is None:
            content = self.fetch(url)
            cache.put(key, content, self.ttl if ttl is None else ttl)
        return content

    def ncfetch(self, template: Template, url: str) -> str:
        _require_cache(template)
        tag = template.context.deferred.encode("fetch", url)
        return template.track_deferred(tag)
