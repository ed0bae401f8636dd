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

"""Deferred fragments: output regions recomputed on every render.

A template in *dynamic* cache mode is cached with its deferred fragments
still encoded as tags.  Each render of the cached text resolves the tags
again, so the fragment stays fresh while the rest of the page is served
from cache.

A tag names a registered fragment kind and carries JSON arguments::

    "\\x02defer:" + base64(json.dumps([kind, args])) + "\\x03"

Only kinds registered on the :class:`DeferredRegistry` can be invoked;
cached text can never name an arbitrary callable.

Usage::

    registry = DeferredRegistry()
    registry.register("greeting", lambda name: f"Hello {name}")
    tag = registry.encode("greeting", "World")
    registry.resolve(f"<p>{tag}</p>")   # "<p>Hello World</p>"
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from strata.errors import DeferredFragmentError

logger = logging.getLogger(__name__)

OPEN = "\x02defer:"
CLOSE = "\x03"


@dataclass(frozen=True)
class FragmentKind:
    """A named operation that deferred tags may invoke.

    When ``pass_variables`` is set, the function receives the render's
    variable bindings as its first argument.
    """

    name: str
    func: Callable[..., Any]
    pass_variables: bool = False


def _var(variables: Mapping[str, Any], name: str, default: str = "") -> str:
    return str(variables.get(name, default))


def _now(fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    return datetime.now(tz=UTC).strftime(fmt)


class DeferredRegistry:
    """Closed registry of deferred-fragment kinds with tag encode/resolve."""

    def __init__(self, *, builtins: bool = True) -> None:
        self._kinds: dict[str, FragmentKind] = {}
        if builtins:
            self.register("var", _var, pass_variables=True)
            self.register("now", _now)

    def __contains__(self, name: object) -> bool:
        return name in self._kinds

    def register(
        self,
        name: str,
        func: Callable[..., Any],
        *,
        pass_variables: bool = False,
    ) -> None:
        """Register (or replace) the fragment kind *name*."""
        self._kinds[name] = FragmentKind(name, func, pass_variables)

    def names(self) -> list[str]:
        return list(self._kinds)

    def copy(self) -> DeferredRegistry:
        clone = DeferredRegistry(builtins=False)
        clone._kinds = dict(self._kinds)
        return clone

    # --- Encoding -------------------------------------------------------------

    def encode(self, kind: str, *args: Any) -> str:
        """Return an inline tag that invokes *kind* with *args* when resolved."""
        if kind not in self._kinds:
            raise DeferredFragmentError(
                f"Unknown deferred fragment {kind!r}. Available: {sorted(self._kinds)}"
            )
        try:
            payload = json.dumps([kind, list(args)], separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            raise DeferredFragmentError(
                f"arguments for deferred fragment {kind!r} are not JSON serialisable"
            ) from exc
        encoded = base64.b64encode(payload.encode("utf-8")).decode("ascii")
        return f"{OPEN}{encoded}{CLOSE}"

    @staticmethod
    def decode(payload: str) -> tuple[str, list[Any]]:
        """Decode the text between the tag markers into ``(kind, args)``."""
        try:
            raw = base64.b64decode(payload.encode("ascii"), validate=True)
            kind, args = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError, TypeError) as exc:
            raise DeferredFragmentError(f"invalid deferred fragment tag {payload!r}") from exc
        if not isinstance(kind, str) or not isinstance(args, list):
            raise DeferredFragmentError(f"invalid deferred fragment tag {payload!r}")
        return kind, args

    # --- Resolution -----------------------------------------------------------

    def resolve(self, text: str, variables: Mapping[str, Any] | None = None) -> str:
        """Replace every deferred tag in *text* with its fragment's output.

        The scan is a single left-to-right pass; fragment output is not
        scanned again.  Text outside tags is preserved unchanged, and an
        opening marker without a closing marker is left as is.
        """
        if OPEN not in text:
            return text

        variables = variables or {}
        parts: list[str] = []
        pos = 0
        count = 0
        while True:
            start = text.find(OPEN, pos)
            if start == -1:
                break
            end = text.find(CLOSE, start + len(OPEN))
            if end == -1:
                break
            parts.append(text[pos:start])
            kind, args = self.decode(text[start + len(OPEN):end])
            parts.append(self._invoke(kind, args, variables))
            pos = end + len(CLOSE)
            count += 1
        parts.append(text[pos:])

        logger.debug("Resolved %d deferred fragment(s)", count)
        return "".join(parts)

    def _invoke(self, kind: str, args: list[Any], variables: Mapping[str, Any]) -> str:
        fragment = self._kinds.get(kind)
        if fragment is None:
            raise DeferredFragmentError(
                f"Unknown deferred fragment {kind!r}. Available: {sorted(self._kinds)}"
            )
        if fragment.pass_variables:
            result = fragment.func(variables, *args)
        else:
            result = fragment.func(*args)
        return "" if result is None else str(result)
