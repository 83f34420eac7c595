"""PresentationML adapter (.pptx)."""
from __future__ import annotations

import re
from typing import Iterable, Iterator, List

from .errors import PartNotFound
from .ooxml import FormatAdapter, numbered_parts
from .xmltext import qname

SLIDE_PART_RE = re.compile(r"^ppt/slides/slide(\d+)\.xml$")
NOTES_PART_RE = re.compile(r"^ppt/notesSlides/notesSlide(\d+)\.xml$")

TEXT_TAG = qname("a", "t")
TEXT_PARENT_TAGS = frozenset((qname("a", "r"), qname("a", "fld")))
SEPARATOR_TAGS = frozenset((qname("a", "br"), qname("a", "p")))
TEXT_BODY_TAGS = (qname("p", "txBody"), qname("a", "txBody"))
PARAGRAPH_TAG = qname("a", "p")


class PresentationAdapter(FormatAdapter):
    """Groups are text bodies (shape text boxes and table cells).

    With ``presentation_grouping="paragraph"`` each a:p is its own group
    instead, so a value split over two paragraphs of one box is not found.
    Manual line breaks (a:br) never split a group.
    """

    kind = "presentation"
    extensions = (".pptx", ".pptm", ".potx", ".ppsx")

    def part_names(self, names: Iterable[str]) -> List[str]:
        names = list(names)
        parts = numbered_parts(names, SLIDE_PART_RE)
        if self.settings.presentation_include_notes:
            parts += numbered_parts(names, NOTES_PART_RE)
        return parts

    def check_required(self, names: Iterable[str]) -> None:
        if not numbered_parts(names, SLIDE_PART_RE):
            raise PartNotFound("No slides found under ppt/slides/", "ppt/slides/")

    def is_text(self, node) -> bool:
        if node.tag != TEXT_TAG:
            return False
        parent = node.getparent()
        return parent is not None and parent.tag in TEXT_PARENT_TAGS

    def is_separator(self, node) -> bool:
        return node.tag in SEPARATOR_TAGS

    def group_roots(self, part_name: str, root) -> Iterator[object]:
        if self.settings.presentation_grouping == "paragraph":
            yield from root.iter(PARAGRAPH_TAG)
        else:
            yield from root.iter(*TEXT_BODY_TAGS)
