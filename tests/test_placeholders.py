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

"""Tests for strata.blocks.placeholders."""

import pytest

from strata.blocks import block_id, placeholders


class TestEncodeDecode:
    def test_round_trip(self):
        for name in ("x", "header", "a.b", "ünïcode"):
            bid = block_id("0" * 40, name)
            assert placeholders.decode(placeholders.encode(bid)) == bid

    def test_token_shape(self):
        bid = block_id("tpl", "x")
        token = placeholders.encode(bid)
        assert token.startswith("\x02block:")
        assert token.endswith("\x03")
        assert bid in token

    def test_encode_rejects_invalid_id(self):
        with pytest.raises(ValueError):
            placeholders.encode("not-a-hash")
        with pytest.raises(ValueError):
            placeholders.encode("A" * 40)

    def test_decode_rejects_plain_text(self):
        with pytest.raises(ValueError):
            placeholders.decode("block:" + "a" * 40)

    def test_decode_rejects_surrounding_text(self):
        token = placeholders.encode("a" * 40)
        with pytest.raises(ValueError):
            placeholders.decode(f"x{token}")


class TestFindIds:
    def test_finds_in_order(self):
        first, second = "a" * 40, "b" * 40
        text = f"A{placeholders.encode(first)}B{placeholders.encode(second)}C"
        assert placeholders.find_ids(text) == [first, second]

    def test_ignores_bare_ids(self):
        assert placeholders.find_ids("a" * 40) == []
