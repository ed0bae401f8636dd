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

"""Functions callable from template bodies.

Every directive takes the calling :class:`Template` as its first
argument; the executor binds it, so a Jinja2 template writes::

    {{ extend("layout.html") }}
    {{ begin("title") }}Home{{ end() }}
    {{ append("scripts") }}<script src="home.js"></script>{{ end() }}

Directives that return ``None`` print nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from strata.template.template import Template


def begin(template: Template, name: str) -> None:
    template.begin(name)


def prepend(template: Template, name: str) -> None:
    template.prepend(name)


def append(template: Template, name: str) -> None:
    template.append(name)


def end(template: Template) -> None:
    template.end()


def extend(template: Template, name: str) -> None:
    template.extend(name)


def incl(template: Template, name: str, variables: Mapping[str, Any] | None = None) -> str:
    """Render template *name* with the current variables plus *variables*."""
    return template.include(name, variables)


def content(template: Template, name: str) -> str:
    """Render block *name* of the current template, or ``""`` if undeclared."""
    block = template.get_block(name)
    return "" if block is None else block.render()


def parent(template: Template) -> str:
    """Return the open block's raw content as it stood before this declaration.

    Child placeholders in it are substituted, and any markup transform
    applied, when the block is finally rendered.
    """
    return template.current_block.content


def macro(template: Template, name: str) -> Callable[..., str]:
    """Return a callable that includes *name* with the variables it is given."""

    def call(variables: Mapping[str, Any] | None = None, **kwargs: Any) -> str:
        return template.include(name, {**(variables or {}), **kwargs})

    return call


def let(template: Template, name: str, value: Any) -> None:
    template.set_variable(name, value)


def opt(template: Template, option: str, value: Any) -> None:
    """Set a template option.  Only ``cachemode`` is recognised."""
    if option.lower() != "cachemode":
        raise ValueError(f"invalid option {option!r}")
    template.set_cache_mode(value)


def defer(template: Template, kind: str, *args: Any) -> str:
    """Emit a deferred fragment that is recomputed on every render."""
    tag = template.context.deferred.encode(kind, *args)
    return template.track_deferred(tag)


BUILTIN_DIRECTIVES: dict[str, Callable[..., Any]] = {
    "append": append,
    "begin": begin,
    "content": content,
    "defer": defer,
    "end": end,
    "extend": extend,
    "incl": incl,
    "let": let,
    "macro": macro,
    "opt": opt,
    "parent": parent,
    "prepend": prepend,
}
