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

"""A single template unit and its block lifecycle.

The executor runs the template body and hands every emitted chunk to
:meth:`Template.write`.  Block directives called from the body open and
close blocks on an explicit stack; output is captured into one buffer per
open block.  Closing a block stores the captured text in the block and
leaves a placeholder in the enclosing buffer, unless the block overrides
an existing one, in which case the tree already holds its splice point.

``extend`` runs the base template first and then adopts its block tree,
so the rest of the extending body only overrides blocks::

    base.html:   A{{ begin("x") }}1{{ end() }}B            -> "A1B"
    child.html:  {{ extend("base.html") }}
                 {{ append("x") }}2{{ end() }}              -> "A12B"
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Iterable, Mapping
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from strata.blocks.block import ROOT_NAME, ApplyMode, Block
from strata.deferred import OPEN as DEFERRED_OPEN
from strata.errors import BlockStackError, BlockTypeMismatch, ExtendCycle, InvalidCacheMode

if TYPE_CHECKING:
    from strata.cache.base import BaseCache
    from strata.template.context import RenderContext

logger = logging.getLogger(__name__)


class CacheMode(Enum):
    """How the engine caches a template's rendered output."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    DISABLED = "disabled"

    @classmethod
    def parse(cls, value: CacheMode | str) -> CacheMode:
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise InvalidCacheMode(value) from None


def _serialize_variables(variables: Mapping[str, Any]) -> str:
    try:
        return json.dumps(variables, sort_keys=True, default=repr)
    except TypeError:
        return repr(sorted(variables.items(), key=lambda item: item[0]))


def template_id(path: Path | str, variables: Mapping[str, Any]) -> str:
    """Return the identity of a template: same path and variables, same id."""
    raw = f"{path}{_serialize_variables(variables)}"
    return hashlib.sha1(raw.encode("utf-8")).hexdigest()


class Template:
    """One template file rendered with one set of variables.

    Args:
        path: Resolved location of the template source.
        variables: Variable bindings visible to the template body.
        context: Collaborators shared by the render call.
        extend_chain: Paths of the templates currently extending this one,
            outermost first.  Used to detect inheritance cycles.
    """

    def __init__(
        self,
        path: Path | str,
        variables: Mapping[str, Any] | None = None,
        *,
        context: RenderContext,
        extend_chain: Iterable[Path] = (),
    ) -> None:
        self.path = Path(path)
        self.variables: dict[str, Any] = dict(variables or {})
        self.context = context
        self.id = template_id(self.path, self.variables)
        self.cache_mode = CacheMode.STATIC
        self.has_deferred = False
        self.extends: str | None = None
        self._extend_chain = tuple(extend_chain)

        self.root = Block(self, ROOT_NAME)
        self._blocks: dict[str, Block] = {ROOT_NAME: self.root}
        self._stack: list[Block] = [self.root]
        self._buffers: list[list[str]] = [[]]

    def __repr__(self) -> str:
        return f"<Template {str(self.path)!r} {self.cache_mode.value}>"

    # --- Accessors ------------------------------------------------------------

    @property
    def cache(self) -> BaseCache | None:
        return self.context.cache

    @property
    def blocks(self) -> Mapping[str, Block]:
        """Read-only view of the block registry (name -> block)."""
        return MappingProxyType(self._blocks)

    def get_block(self, name: str) -> Block | None:
        return self._blocks.get(name)

    @property
    def current_block(self) -> Block:
        """The innermost open block (the root when none is open)."""
        return self._stack[-1]

    def set_variable(self, name: str, value: Any) -> None:
        self.variables[name] = value

    def set_cache_mode(self, mode: CacheMode | str) -> None:
        self.cache_mode = CacheMode.parse(mode)

    # --- Related templates ----------------------------------------------------

    def new_template(
        self,
        name: str,
        variables: Mapping[str, Any] | None = None,
    ) -> Template:
        """Return a fresh template for *name* inheriting this template's variables."""
        path = self.context.resolver.resolve(name, [self.path.parent])
        return Template(path, {**self.variables, **(variables or {})}, context=self.context)

    def include(self, name: str, variables: Mapping[str, Any] | None = None) -> str:
        """Render template *name* and return its output."""
        output = self.new_template(name, variables).render()
        return self.track_deferred(output)

    def track_deferred(self, output: str) -> str:
        """Record deferred fragments in *output* and switch to dynamic caching.

        Only fragments recorded here are resolved by the engine.
        """
        if DEFERRED_OPEN not in output:
            return output
        self.has_deferred = True
        if self.cache_mode is CacheMode.STATIC:
            logger.debug("%s embeds deferred fragments, switching to dynamic", self.path)
            self.cache_mode = CacheMode.DYNAMIC
        return output

    def extend(self, name: str) -> None:
        """Adopt the block tree of base template *name*.

        The base template is fully prepared first.  Anything this template
        emitted outside a block before the call is discarded.
        """
        chain = (*self._extend_chain, self.path)
        path = self.context.resolver.resolve(name, [self.path.parent])
        if path in chain:
            raise ExtendCycle([*chain, path])

        logger.debug("%s extends %s", self.path, path)
        base = Template(
            path, self.variables, context=self.context, extend_chain=chain,
        )
        base.cache_mode = self.cache_mode
        base.prepare()

        self.variables = {**base.variables, **self.variables}
        self.cache_mode = base.cache_mode
        self.has_deferred = self.has_deferred or base.has_deferred
        self._blocks = base._blocks
        self.root = base.root
        self._stack = [self.root]
        self._buffers = [[]]
        self.root.extended = True
        self.extends = name

    # --- Block lifecycle --------------------------------------------------------

    def begin(self, name: str) -> Block:
        return self._open(name, ApplyMode.REPLACE)

    def prepend(self, name: str) -> Block:
        return self._open(name, ApplyMode.PREPEND)

    def append(self, name: str) -> Block:
        return self._open(name, ApplyMode.APPEND)

    def _open(self, name: str, mode: ApplyMode) -> Block:
        self._check_name(name)
        block = self._blocks.get(name)
        if block is not None:
            block.extended = True
        else:
            block = self.current_block.create_child(name)
            self._blocks[name] = block
        self._push(block, mode)
        return block

    def add_block(self, block: Block, mode: ApplyMode = ApplyMode.REPLACE) -> Block:
        """Open a pre-built block, or the registered block it overrides.

        Raises :class:`~strata.errors.BlockTypeMismatch` if a block of a
        different kind is already registered under the same name.
        """
        self._check_name(block.name)
        existing = self._blocks.get(block.name)
        if existing is not None:
            if existing.kind is not block.kind:
                raise BlockTypeMismatch(self.path, block.name, existing.kind, block.kind)
            existing.extended = True
            block = existing
        else:
            self.current_block.add_child(block)
            self._blocks[block.name] = block
        self._push(block, mode)
        return block

    def end(self) -> None:
        """Close the innermost open block."""
        if len(self._stack) <= 1:
            raise BlockStackError(self.path, "end() called with no open block")
        block = self._stack.pop()
        block.set_content("".join(self._buffers.pop()))
        logger.debug("Closed block %r (%s)", block.name, block.mode.value)
        if block.extended:
            return
        self._buffers[-1].append(block.placeholder)

    def _push(self, block: Block, mode: ApplyMode) -> None:
        block.mode = mode
        self._stack.append(block)
        self._buffers.append([])
        logger.debug("Opened block %r (%s)", block.name, mode.value)

    def _check_name(self, name: str) -> None:
        if name == ROOT_NAME:
            raise ValueError(f"block name {ROOT_NAME!r} is reserved")

    # --- Rendering ----------------------------------------------------------------

    def write(self, text: str) -> None:
        """Capture *text* emitted by the template body."""
        self._buffers[-1].append(text)

    def prepare(self) -> None:
        """Execute the template body to populate the block tree.

        Produces no output.  Text emitted outside any block becomes the
        root block's content, unless the template extends another one.
        """
        self._buffers = [[]]
        self.context.executor.execute(self)

        if len(self._stack) > 1:
            names = ", ".join(repr(block.name) for block in self._stack[1:])
            raise BlockStackError(self.path, f"unclosed block(s) {names}")

        contents = "".join(self._buffers[0])
        if self.root.extended:
            return
        self.root.set_content(contents)

    def render(self) -> str:
        """Prepare the template and render its block tree."""
        self.prepare()
        return self.root.render()
