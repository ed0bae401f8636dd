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

"""Placeholder tokens that mark where a child block is spliced into its parent.

A token wraps a block id (40 lowercase hex digits) in STX/ETX control
characters::

    "\\x02block:" + block_id + "\\x03"

Neither control character can appear in the id alphabet, and neither
occurs in ordinary template text, so a literal collision is effectively
impossible.
"""

from __future__ import annotations

import re

OPEN = "\x02block:"
CLOSE = "\x03"

BLOCK_ID_RE = re.compile(r"[0-9a-f]{40}")
PLACEHOLDER_RE = re.compile(re.escape(OPEN) + r"([0-9a-f]{40})" + re.escape(CLOSE))


def encode(block_id: str) -> str:
    """Return the placeholder token for *block_id*.

    Raises :class:`ValueError` if *block_id* is not a valid block id.
    """
    if not BLOCK_ID_RE.fullmatch(block_id):
        raise ValueError(f"invalid block id {block_id!r}")
    return f"{OPEN}{block_id}{CLOSE}"


def decode(token: str) -> str:
    """Return the block id wrapped by *token*.

    Raises :class:`ValueError` if *token* is not exactly one placeholder.
    """
    match = PLACEHOLDER_RE.fullmatch(token)
    if match is None:
        raise ValueError(f"not a block placeholder: {token!r}")
    return match.group(1)


def find_ids(text: str) -> list[str]:
    """Return the block ids of all placeholders in *text*, in order."""
    return PLACEHOLDER_RE.findall(text)
