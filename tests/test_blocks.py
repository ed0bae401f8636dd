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

"""Tests for strata.blocks.block."""

from types import SimpleNamespace

import pytest

from strata.blocks import ApplyMode, Block, BlockKind, block_id
from strata.cache import MemoryCache


def _owner(cache=None, ttl=60):
    return SimpleNamespace(id="f" * 40, cache=cache, context=SimpleNamespace(default_ttl=ttl))


class TestBlockId:
    def test_deterministic(self):
        assert block_id("tpl", "x") == block_id("tpl", "x")

    def test_depends_on_template_and_name(self):
        assert block_id("tpl", "x") != block_id("tpl", "y")
        assert block_id("tpl", "x") != block_id("other", "x")

    def test_block_uses_owner_id(self):
        owner = _owner()
        assert Block(owner, "x").id == block_id(owner.id, "x")


class TestSetContent:
    def test_replace(self):
        block = Block(_owner(), "x")
        block.set_content("one")
        block.set_content("two")
        assert block.content == "two"

    def test_prepend(self):
        block = Block(_owner(), "x")
        block.set_content("1")
        block.mode = ApplyMode.PREPEND
        block.set_content("0")
        assert block.content == "01"

    def test_append(self):
        block = Block(_owner(), "x")
        block.set_content("1")
        block.mode = ApplyMode.APPEND
        block.set_content("2")
        assert block.content == "12"


class TestTree:
    def test_create_child_sets_parent(self):
        root = Block(_owner(), ".")
        child = root.create_child("x")
        assert child.parent is root
        assert root.children == [child]

    def test_add_child_sets_parent(self):
        owner = _owner()
        root = Block(owner, ".")
        child = Block(owner, "x")
        root.add_child(child)
        assert child.parent is root


class TestRender:
    def test_substitutes_children(self):
        root = Block(_owner(), ".")
        child = root.create_child("x")
        child.set_content("1")
        root.set_content(f"A{child.placeholder}B")
        assert root.render() == "A1B"

    def test_nested_children(self):
        root = Block(_owner(), ".")
        outer = root.create_child("outer")
        inner = outer.create_child("inner")
        inner.set_content("i")
        outer.set_content(f"<{inner.placeholder}>")
        root.set_content(f"[{outer.placeholder}]")
        assert root.render() == "[<i>]"

    def test_repeated_token_replaced_everywhere(self):
        root = Block(_owner(), ".")
        child = root.create_child("x")
        child.set_content("1")
        root.set_content(f"{child.placeholder}-{child.placeholder}")
        assert root.render() == "1-1"

    def test_unknown_token_left_verbatim(self):
        root = Block(_owner(), ".")
        root.create_child("x").set_content("1")
        stray = Block(_owner(), "stray").placeholder
        root.set_content(f"A{stray}B")
        assert root.render() == f"A{stray}B"

    def test_child_output_is_not_rescanned(self):
        root = Block(_owner(), ".")
        first = root.create_child("a")
        second = root.create_child("b")
        second.set_content("B")
        first.set_content(second.placeholder)
        root.set_content(f"X{first.placeholder}Y{second.placeholder}")
        assert root.render() == f"X{second.placeholder}YB"


class TestMarkupBlock:
    def test_requires_transform(self):
        with pytest.raises(ValueError):
            Block(_owner(), "x", kind=BlockKind.MARKUP)

    def test_transform_applies_to_own_content_only(self):
        owner = _owner()
        block = Block(owner, "x", kind=BlockKind.MARKUP, transform=str.upper)
        child = block.create_child("y")
        child.set_content("lower")
        block.set_content(f"abc {child.placeholder}")
        assert block.render() == "ABC lower"

    def test_text_on_both_sides_of_child(self):
        owner = _owner()
        block = Block(owner, "x", kind=BlockKind.MARKUP, transform=lambda s: f"[{s}]")
        child = block.create_child("y")
        child.set_content("c")
        block.set_content(f"a{child.placeholder}b")
        assert block.render() == "[a]c[b]"

    def test_unknown_token_survives_transform(self):
        owner = _owner()
        stray = Block(owner, "stray").placeholder
        block = Block(owner, "x", kind=BlockKind.MARKUP, transform=str.upper)
        block.set_content(f"a{stray}")
        assert block.render() == f"A{stray}"


class TestCacheableBlock:
    def test_without_cache_renders_normally(self):
        block = Block(_owner(), "x", kind=BlockKind.CACHEABLE)
        block.set_content("fresh")
        assert block.render() == "fresh"

    def test_memoised_under_block_id(self):
        cache = MemoryCache()
        block = Block(_owner(cache), "x", kind=BlockKind.CACHEABLE)
        block.set_content("first")
        assert block.render() == "first"
        assert cache.get(block.id) == "first"

        block.set_content("second")
        assert block.render() == "first"

    def test_uses_block_ttl(self):
        cache = MemoryCache()
        block = Block(_owner(cache, ttl=3600), "x", kind=BlockKind.CACHEABLE, ttl=0)
        block.set_content("first")
        block.render()
        assert not cache.has(block.id)
