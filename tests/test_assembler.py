"""
Tests for assembler.py - logical text assembly and redistribution.
"""

import pytest
from lxml import etree

from ooxmask.assembler import NodeArena, assemble, make_fragment, redistribute
from ooxmask.errors import RedistributionError
from ooxmask.masking import mask
from ooxmask.rules import MaskRule


def _is_text(node):
    return node.tag == "t"


def _is_sep(node):
    return node.tag in ("br", "p")


def _group(xml):
    arena = NodeArena()
    root = etree.fromstring(xml)
    return root, arena, assemble(root, arena, _is_text, _is_sep)


class TestAssemble:
    """Test assembling a group from a subtree."""

    def test_fragments_in_document_order(self):
        """Test that fragments follow document order and flatten."""
        _, arena, group = _group(b"<p><r><t>042-</t></r><br/><r><t>595-7557</t></r></p>")
        assert group.text == "042-595-7557"
        assert [f.text for f in group.fragments] == ["042-", "595-7557"]
        assert [f.length for f in group.fragments] == [4, 8]
        assert [arena[f.node_index].tag for f in group.fragments] == ["t", "t"]

    def test_separators_contribute_nothing(self):
        """Test that separators are recorded but add no characters."""
        _, arena, group = _group(b"<p><t>tokyo</t><br/><t>1-2-3</t></p>")
        assert group.text == "tokyo1-2-3"
        assert sorted(arena[i].tag for i in group.separators) == ["br", "p"]

    def test_index_map(self):
        """Test that every logical character maps to its fragment and offset."""
        _, _, group = _group(b"<p><t>ab</t><t>c</t></p>")
        assert group.index == [(0, 0), (0, 1), (1, 0)]
        assert group.length == 3

    def test_embedded_newlines_excluded(self):
        """Test that CR/LF inside a text node are not part of the logical text."""
        _, _, group = _group(b"<p><t>ab\ncd&#13;e</t></p>")
        assert group.fragments[0].text == "ab\ncd\re"
        assert group.text == "abcde"
        assert group.index == [(0, 0), (0, 1), (0, 3), (0, 4), (0, 6)]

    def test_empty_subtree(self):
        """Test that a subtree without text yields an empty group."""
        _, _, group = _group(b"<p><br/></p>")
        assert group.is_empty
        assert group.text == ""
        assert redistribute(group, "") == []

    def test_empty_text_node(self):
        """Test that an empty leaf is a zero-length fragment."""
        _, _, group = _group(b"<p><t/><t>x</t></p>")
        assert [f.length for f in group.fragments] == [0, 1]
        assert group.text == "x"

    def test_repeatable(self):
        """Test that assembling twice gives the same result."""
        xml = b"<p><t>one</t><br/><t>two</t></p>"
        first = _group(xml)[2]
        second = _group(xml)[2]
        assert first.text == second.text
        assert first.index == second.index


class TestRedistribute:
    """Test writing masked text back into fragments."""

    def test_cross_fragment_mask(self):
        """Test a match split over two fragments is fully masked."""
        _, _, group = _group(b"<p><t>042-</t><t>595-7557</t></p>")
        masked = mask(group.text, [MaskRule.literal("042-595-7557")]).text
        assert redistribute(group, masked) == ["■■■■", "■■■■■■■■"]
        assert group.changed

    def test_lengths_preserved(self):
        """Test that each fragment keeps its original length."""
        _, _, group = _group(b"<p><t>call 0</t><t>42</t><t>-595-7557 now</t></p>")
        masked = mask(group.text, [MaskRule.literal("042-595-7557")]).text
        out = redistribute(group, masked)
        assert [len(s) for s in out] == [len(f.text) for f in group.fragments]
        assert "".join(out) == "call " + "■" * 12 + " now"

    def test_newlines_kept_in_place(self):
        """Test that excluded line breaks survive redistribution."""
        _, _, group = _group(b"<p><t>ab\ncd</t></p>")
        masked = mask(group.text, [MaskRule.literal("bc")]).text
        assert masked == "a■■d"
        assert redistribute(group, masked) == ["a■\n■d"]

    def test_unchanged_fragments_flagged(self):
        """Test that untouched fragments report no change."""
        _, _, group = _group(b"<p><t>keep</t><t>secret</t></p>")
        redistribute(group, mask(group.text, [MaskRule.literal("secret")]).text)
        assert [f.changed for f in group.fragments] == [False, True]

    @pytest.mark.parametrize("masked", ["short", "far too long for this group"])
    def test_length_mismatch_fails(self, masked):
        """Test that a length mismatch is a hard error."""
        _, _, group = _group(b"<p><t>042-</t><t>5957</t></p>")
        with pytest.raises(RedistributionError):
            redistribute(group, masked)

    def test_source_nodes_untouched(self):
        """Test that redistribution does not write to the XML."""
        root, arena, group = _group(b"<p><t>secret</t></p>")
        redistribute(group, "■" * 6)
        assert root[0].text == "secret"


def test_make_fragment_positions():
    """Test fragment position bookkeeping."""
    fragment = make_fragment(3, "a\r\nb")
    assert fragment.node_index == 3
    assert fragment.positions == (0, 3)
    assert fragment.logical_text == "ab"
