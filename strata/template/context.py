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

"""Per-render configuration shared by every template of one render call."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from strata.cache.base import DEFAULT_TTL
from strata.deferred import DeferredRegistry

if TYPE_CHECKING:
    from strata.cache.base import BaseCache
    from strata.resolver import PathResolver
    from strata.template.executor import BaseExecutor


@dataclass(frozen=True)
class RenderContext:
    """Collaborators a template needs while rendering.

    The engine builds a fresh context for each render call, so later
    changes to the engine never affect a render in progress.
    """

    resolver: PathResolver
    executor: BaseExecutor
    cache: BaseCache | None = None
    default_ttl: int = DEFAULT_TTL
    directives: Mapping[str, Callable[..., Any]] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    deferred: DeferredRegistry = field(default_factory=DeferredRegistry)
