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

"""Exception hierarchy for strata.

Structural errors (missing templates, block kind conflicts, inheritance
cycles) propagate to the caller of :meth:`strata.Engine.render`.  Cache
read errors are recovered where the cache is consumed and treated as a
miss.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from strata.blocks.block import BlockKind


class StrataError(Exception):
    """Base class for all strata errors."""


class TemplateNotFound(StrataError, LookupError):
    """A template name could not be resolved to a file."""

    def __init__(self, name: str, searched: Sequence[Path | str] = ()) -> None:
        self.name = name
        self.searched = [str(p) for p in searched]
        msg = f"template not found {name!r}"
        if self.searched:
            msg += f" (searched: {', '.join(self.searched)})"
        super().__init__(msg)


class TemplateStructureError(StrataError):
    """A template declared an impossible block structure."""

    def __init__(self, path: Path | str, message: str) -> None:
        self.path = str(path)
        super().__init__(f"{message} in template '{self.path}'")


class BlockTypeMismatch(TemplateStructureError):
    """An override supplied a block of a different kind than the one registered."""

    def __init__(
        self,
        path: Path | str,
        block_name: str,
        existing: BlockKind,
        conflicting: BlockKind,
    ) -> None:
        self.block_name = block_name
        self.existing = existing
        self.conflicting = conflicting
        super().__init__(
            path,
            f"unable to extend block '{block_name}' ({existing.value}) "
            f"with a block of a different kind ({conflicting.value})",
        )


class ExtendCycle(TemplateStructureError):
    """A template (indirectly) extends itself."""

    def __init__(self, chain: Sequence[Path | str]) -> None:
        self.chain = [str(p) for p in chain]
        super().__init__(
            self.chain[0],
            "circular extend chain " + " -> ".join(self.chain),
        )


class BlockStackError(TemplateStructureError):
    """Blocks were closed out of order or left open."""


class InvalidCacheMode(StrataError, ValueError):
    """An unrecognised cache mode was requested."""

    def __init__(self, mode: object) -> None:
        self.mode = mode
        super().__init__(
            f"invalid cache mode {mode!r}; "
            "must be one of 'static', 'dynamic' or 'disabled'"
        )


class CacheError(StrataError):
    """Base class for cache read failures."""

    reason = "unavailable"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"cache entry {key!r} {self.reason}")


class CacheEntryNotFound(CacheError):
    reason = "not found"


class CacheEntryExpired(CacheError):
    reason = "expired"


class CacheEntryCorrupt(CacheError):
    reason = "failed checksum validation"


class CacheUnavailable(StrataError):
    """A cache directive was used by a template rendered without a cache."""

    def __init__(self, path: Path | str) -> None:
        self.path = str(path)
        super().__init__(f"template '{self.path}' does not have a cache instance")


class DeferredFragmentError(StrataError):
    """A deferred fragment could not be encoded or resolved."""
