"""
Logical text assembly and fragment redistribution.

A part's visible text is spread over many leaf elements (one per formatting
run). ``assemble`` walks a subtree in document order and flattens the
accepted leaves into one logical string, remembering which fragment and
offset each character came from. ``redistribute`` slices a masked copy of
that string back into per-fragment texts using the recorded lengths.

Fragments point at their element through an index into a ``NodeArena``
rather than holding the element themselves.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from .errors import RedistributionError

# Line breaks embedded in a text node are never part of the logical text.
EXCLUDED_CHARS = frozenset("\r\n")

Predicate = Callable[[object], bool]


class NodeArena:
    """Append-only list of parsed elements addressed by integer index."""

    def __init__(self):
        self._nodes: List[object] = []

    def add(self, node) -> int:
        self._nodes.append(node)
        return len(self._nodes) - 1

    def __getitem__(self, index: int):
        return self._nodes[index]

    def __len__(self) -> int:
        return len(self._nodes)


@dataclass
class TextFragment:
    node_index: int
    text: str
    # Offsets into ``text`` that contribute to the logical string.
    positions: Tuple[int, ...]
    new_text: Optional[str] = None

    @property
    def length(self) -> int:
        return len(self.positions)

    @property
    def logical_text(self) -> str:
        return "".join(self.text[i] for i in self.positions)

    @property
    def changed(self) -> bool:
        return self.new_text is not None and self.new_text != self.text


@dataclass
class Group:
    fragments: List[TextFragment] = field(default_factory=list)
    separators: List[int] = field(default_factory=list)
    # index[i] == (fragment number, offset in that fragment's text)
    index: List[Tuple[int, int]] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "".join(f.logical_text for f in self.fragments)

    @property
    def length(self) -> int:
        return len(self.index)

    @property
    def is_empty(self) -> bool:
        return not self.index

    @property
    def changed(self) -> bool:
        return any(f.changed for f in self.fragments)


def make_fragment(node_index: int, text: str) -> TextFragment:
    positions = tuple(i for i, ch in enumerate(text) if ch not in EXCLUDED_CHARS)
    return TextFragment(node_index=node_index, text=text, positions=positions)


def assemble(root, arena: NodeArena, is_text: Predicate, is_separator: Predicate) -> Group:
    """Flatten the text leaves under ``root`` into a Group.

    Separator elements are recorded but contribute nothing to the logical
    string. Elements that are neither are walked through transparently.
    """
    group = Group()
    for node in root.iter():
        if is_text(node):
            fragment = make_fragment(arena.add(node), node.text or "")
            number = len(group.fragments)
            group.fragments.append(fragment)
            group.index.extend((number, pos) for pos in fragment.positions)
        elif is_separator(node):
            group.separators.append(arena.add(node))
    return group


def redistribute(group: Group, masked_text: str) -> List[str]:
    """Write ``masked_text`` back across the group's fragments.

    Returns the new text of each fragment in order. The masked text must be
    exactly as long as the group's logical text.
    """
    if len(masked_text) != group.length:
        raise RedistributionError(
            f"Masked text has {len(masked_text)} characters but the group holds {group.length}"
        )
    cursor = 0
    out = []
    for fragment in group.fragments:
        chunk = masked_text[cursor:cursor + fragment.length]
        cursor += fragment.length
        chars = list(fragment.text)
        for pos, ch in zip(fragment.positions, chunk):
            chars[pos] = ch
        fragment.new_text = "".join(chars)
        out.append(fragment.new_text)
    if cursor != len(masked_text):
        raise RedistributionError(f"Redistribution stopped at {cursor} of {len(masked_text)} characters")
    return out
