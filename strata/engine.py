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

"""Rendering entry point.

Resolves a template name, renders it and applies the whole-template cache
policy.  Two cache entries exist per template identity (path plus
variables):

* the final output, written for templates in ``static`` mode;
* the compiled output with deferred fragments still encoded, written
  for templates in ``dynamic`` mode and resolved again on every render.

The cache mode is read after rendering because a template body may
change it (``opt("cachemode", ...)`` or ``defer(...)``).  A template that
emitted deferred fragments is always treated as dynamic.  Deferred tags
are only resolved for dynamic templates, so tag-like text arriving
through variables is never executed in static output.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from strata.cache.base import DEFAULT_TTL, BaseCache
from strata.deferred import DeferredRegistry
from strata.resolver import PathResolver
from strata.template.context import RenderContext
from strata.template.directives import BUILTIN_DIRECTIVES
from strata.template.executor import BaseExecutor, JinjaExecutor
from strata.template.template import CacheMode, Template

if TYPE_CHECKING:
    from strata.config import EngineConfig
    from strata.plugins.base import BasePlugin

logger = logging.getLogger(__name__)


def compiled_key(template_id: str) -> str:
    """Return the cache key of a template's compiled (deferred) output."""
    return hashlib.sha1(f"{template_id}compiled".encode("utf-8")).hexdigest()


class Engine:
    """Render templates with block inheritance and layered caching.

    Args:
        paths: Template search paths.
        executor: Runs template bodies.  Defaults to :class:`JinjaExecutor`.
        cache: Optional cache for whole templates and cacheable blocks.
        ttl: Default cache lifetime in seconds.
    """

    def __init__(
        self,
        paths: Iterable[str | Path] = (),
        *,
        executor: BaseExecutor | None = None,
        cache: BaseCache | None = None,
        ttl: int = DEFAULT_TTL,
    ) -> None:
        self.executor = executor or JinjaExecutor()
        self.cache = cache
        self.ttl = ttl
        self.deferred = DeferredRegistry()
        self._resolver = PathResolver(paths)
        self._globals: dict[str, Any] = {}
        self._directives: dict[str, Callable[..., Any]] = dict(BUILTIN_DIRECTIVES)

    @classmethod
    def from_config(cls, config: EngineConfig, **kwargs: Any) -> Engine:
        """Build an engine, with a :class:`FileCache` if caching is enabled."""
        from strata.cache.file import FileCache

        cache = FileCache(config.cache_dir) if config.cache_enabled else None
        return cls(config.paths, cache=cache, ttl=config.default_ttl, **kwargs)

    # --- Configuration --------------------------------------------------------

    def add_global(self, name: str, value: Any) -> Engine:
        """Define a variable available to every template."""
        self._globals[name] = value
        return self

    def add_namespace(self, name: str, paths: Iterable[str | Path]) -> Engine:
        """Make ``name:template`` resolve against *paths*."""
        self._resolver.add_namespace(name, paths)
        return self

    def add_directive(self, name: str, func: Callable[..., Any]) -> Engine:
        """Expose *func* to templates; it receives the template as first argument."""
        self._directives[name] = func
        return self

    def add_plugin(self, plugin: BasePlugin) -> Engine:
        plugin.init(self)
        logger.debug("Initialised plugin %s", type(plugin).__name__)
        return self

    def set_cache(self, cache: BaseCache | None, ttl: int = DEFAULT_TTL) -> Engine:
        self.cache = cache
        self.ttl = ttl
        return self

    @property
    def globals(self) -> Mapping[str, Any]:
        return MappingProxyType(self._globals)

    @property
    def directives(self) -> Mapping[str, Callable[..., Any]]:
        return MappingProxyType(self._directives)

    # --- Rendering --------------------------------------------------------------

    def resolve(self, name: str, paths: Iterable[str | Path] = ()) -> Path:
        """Return the path of template *name*.

        Raises :class:`~strata.errors.TemplateNotFound` if it does not exist.
        """
        return self._resolver.resolve(name, paths)

    def _build_context(self, paths: Iterable[str | Path]) -> RenderContext:
        resolver = self._resolver.copy()
        resolver.paths = (*resolver.paths, *(Path(p) for p in paths))
        return RenderContext(
            resolver=resolver,
            executor=self.executor,
            cache=self.cache,
            default_ttl=self.ttl,
            directives=MappingProxyType(dict(self._directives)),
            deferred=self.deferred.copy(),
        )

    def render(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
        paths: Iterable[str | Path] = (),
        use_globals: bool = True,
    ) -> str:
        """Render template *name* and return the output.

        Args:
            name: Template name, optionally ``namespace:name``.
            variables: Variables for this render.  They override globals.
            paths: Extra search paths for this render.
            use_globals: Merge engine globals into *variables*.
        """
        paths = list(paths)
        path = self.resolve(name, paths)
        scope = dict(variables or {})
        if use_globals:
            scope = {**self._globals, **scope}

        context = self._build_context(paths)
        template = Template(path, scope, context=context)
        cache = context.cache

        if cache is None:
            result = template.render()
            if self._is_dynamic(template):
                result = context.deferred.resolve(result, scope)
            return result

        key = compiled_key(template.id)
        compiled = cache.lookup(key)
        if compiled is not None:
            logger.debug("Serving %s from compiled cache", path)
            return context.deferred.resolve(compiled, scope)

        cached = cache.lookup(template.id)
        if cached is not None:
            logger.debug("Serving %s from cache", path)
            return cached

        result = template.render()
        if template.cache_mode is CacheMode.DISABLED:
            logger.debug("Caching disabled for %s", path)
        elif self._is_dynamic(template):
            cache.put(key, result, context.default_ttl)
            logger.info("Cached %s (dynamic)", path)
        else:
            cache.put(template.id, result, context.default_ttl)
            logger.info("Cached %s (static)", path)

        if self._is_dynamic(template):
            result = context.deferred.resolve(result, scope)
        return result

    @staticmethod
    def _is_dynamic(template: Template) -> bool:
        # A later opt("cachemode", "static") cannot un-record emitted fragments.
        return template.has_deferred or template.cache_mode is CacheMode.DYNAMIC
