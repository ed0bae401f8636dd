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

"""Template blocks.

A block is a named fragment of a template's output.  Blocks form a tree
rooted at the template's implicit root block; a parent's content holds
placeholder tokens where its children are spliced in at render time.

Blocks come in a closed set of kinds (:class:`BlockKind`):

* ``PLAIN`` renders its content with children substituted.
* ``CACHEABLE`` memoises its rendered output in the template's cache
  under the block id.
* ``MARKUP`` passes the text around its child placeholders through a
  transform, then substitutes children untransformed.
"""

from __future__ import annotations

import hashlib
import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING

from strata.blocks import placeholders

if TYPE_CHECKING:
    from strata.template.template import Template

logger = logging.getLogger(__name__)

ROOT_NAME = "."


class ApplyMode(Enum):
    """How newly captured content merges with a block's existing content."""

    REPLACE = "replace"
    PREPEND = "prepend"
    APPEND = "append"


class BlockKind(Enum):
    PLAIN = "plain"
    CACHEABLE = "cacheable"
    MARKUP = "markup"


def block_id(template_id: str, name: str) -> str:
    """Return the deterministic id of block *name* in template *template_id*."""
    return hashlib.sha1(f"{template_id}{name}".encode("utf-8")).hexdigest()


class Block:
    """A node in a template's block tree.

    Args:
        template: The template the block is declared in.  Used for the
            block id and, for cacheable blocks, to reach the cache.
        name: Block name, unique within the template's registry.
        parent: The structural parent, ``None`` for the root block.
        kind: The block variant.
        ttl: Cache lifetime in seconds for ``CACHEABLE`` blocks.  ``None``
            uses the render context's default TTL.
        transform: Content transform for ``MARKUP`` blocks.
    """

    def __init__(
        self,
        template: Template,
        name: str,
        parent: Block | None = None,
        *,
        kind: BlockKind = BlockKind.PLAIN,
        ttl: int | None = None,
        transform: Callable[[str], str] | None = None,
    ) -> None:
        if kind is BlockKind.MARKUP and transform is None:
            raise ValueError(f"markup block {name!r} requires a transform")
        self.template = template
        self.name = name
        self.parent = parent
        self.id = block_id(template.id, name)
        self.kind = kind
        self.ttl = ttl
        self.transform = transform
        self.content = ""
        self.children: list[Block] = []
        self.mode = ApplyMode.REPLACE
        self.extended = False

    def __repr__(self) -> str:
        return f"<Block {self.name!r} {self.kind.value} children={len(self.children)}>"

    @property
    def placeholder(self) -> str:
        return placeholders.encode(self.id)

    # --- Tree ---------------------------------------------------------------

    def add_child(self, block: Block) -> None:
        block.parent = self
        self.children.append(block)

    def create_child(self, name: str) -> Block:
        """Create, attach and return a plain child block."""
        child = Block(self.template, name, self)
        self.add_child(child)
        return child

    # --- Content ------------------------------------------------------------

    def set_content(self, text: str) -> None:
        """Merge *text* into the block according to its apply mode."""
        if self.mode is ApplyMode.PREPEND:
            self.content = text + self.content
        elif self.mode is ApplyMode.APPEND:
            self.content += text
        else:
            self.content = text

    def render(self) -> str:
        """Render the block and, recursively, its children."""
        if self.kind is BlockKind.CACHEABLE:
            return self._render_cached()
        return self._render_content()

    def _render_content(self) -> str:
        rendered = {child.id: child.render() for child in self.children}
        if self.kind is BlockKind.MARKUP:
            return self._render_markup(rendered)
        if not rendered:
            return self.content

        # Single pass: inserted child output is never re-scanned.
        return placeholders.PLACEHOLDER_RE.sub(
            lambda m: rendered.get(m.group(1), m.group(0)), self.content,
        )

    def _render_markup(self, rendered: dict[str, str]) -> str:
        # split() alternates text and captured ids: text, id, text, ...
        pieces = placeholders.PLACEHOLDER_RE.split(self.content)
        output: list[str] = []
        for index, piece in enumerate(pieces):
            if index % 2:
                output.append(rendered.get(piece, placeholders.encode(piece)))
            elif piece:
                output.append(self.transform(piece))
        return "".join(output)

    def _render_cached(self) -> str:
        cache = self.template.cache
        if cache is None:
            return self._render_content()

        cached = cache.lookup(self.id)
        if cached is not None:
            logger.debug("Block cache hit for %r", self.name)
            return cached

        contents = self._render_content()
        ttl = self.ttl if self.ttl is not None else self.template.context.default_ttl
        cache.put(self.id, contents, ttl)
        return contents
