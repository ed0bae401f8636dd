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

"""Markup transform blocks.

``markup(name, transform)`` declares a block whose own text is run through
a named transform; child blocks are spliced in afterwards, so child output
is never transformed twice.  ``transform(text, name)`` applies a
transform inline.  ``markdown(name)`` and ``md(text)`` are shorthands for
the ``md`` transform.

Built-in transforms: ``escape`` and ``striptags`` (markupsafe) and ``md``
(Python-Markdown).  Register more by passing ``transforms={"upper": str.upper}``.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

import markdown
from markupsafe import Markup, escape

from strata.blocks.block import Block, BlockKind
from strata.plugins.base import BasePlugin

if TYPE_CHECKING:
    from strata.engine import Engine
    from strata.template.template import Template


def _escape(text: str) -> str:
    return str(escape(text))


def _striptags(text: str) -> str:
    return Markup(text).striptags()


def _markdown(text: str) -> str:
    return markdown.markdown(text)


DEFAULT_TRANSFORMS: dict[str, Callable[[str], str]] = {
    "escape": _escape,
    "striptags": _striptags,
    "md": _markdown,
}


class MarkupPlugin(BasePlugin):
    """Provide the ``markup`` block kind and the ``transform`` directive."""

    def __init__(self, transforms: Mapping[str, Callable[[str], str]] | None = None) -> None:
        self.transforms = {**DEFAULT_TRANSFORMS, **(transforms or {})}

    def init(self, engine: Engine) -> None:
        engine.add_directive("markup", self.markup_block)
        engine.add_directive("transform", self.transform)
        engine.add_directive("markdown", self.markdown_block)
        engine.add_directive("md", self.md)

    def get_transform(self, name: str) -> Callable[[str], str]:
        """Return transform *name*.

        Raises :class:`ValueError` if it is not registered.
        """
        func = self.transforms.get(name)
        if func is None:
            raise ValueError(
                f"Unknown markup transform {name!r}. Available: {sorted(self.transforms)}"
            )
        return func

    def markup_block(self, template: Template, name: str, transform: str = "escape") -> None:
        block = Block(template, name, kind=BlockKind.MARKUP, transform=self.get_transform(transform))
        template.add_block(block)

    def transform(self, template: Template, text: str, name: str = "escape") -> str:
        return self.get_transform(name)(text)

    def markdown_block(self, template: Template, name: str) -> None:
        self.markup_block(template, name, "md")

    def md(self, template: Template, text: str) -> str:
        """Render Markdown *text* to HTML."""
        return self.get_transform("md")(text)
