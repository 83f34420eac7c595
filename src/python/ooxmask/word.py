"""WordprocessingML adapter (.docx)."""
from __future__ import annotations

import re
from typing import Iterable, List

from docx.oxml.ns import qn

from .errors import PartNotFound
from .ooxml import FormatAdapter, numbered_parts

DOCUMENT_PART = "word/document.xml"
FOOTNOTES_PART = "word/footnotes.xml"
ENDNOTES_PART = "word/endnotes.xml"
HEADER_PART_RE = re.compile(r"^word/header(\d+)\.xml$")
FOOTER_PART_RE = re.compile(r"^word/footer(\d+)\.xml$")

TEXT_TAG = qn("w:t")
# w:p is listed so paragraph boundaries show up with the other separators.
SEPARATOR_TAGS = frozenset(qn(t) for t in ("w:br", "w:cr", "w:tab", "w:p"))


class WordAdapter(FormatAdapter):
    """One group per part.

    Every w:t run in the part is concatenated, so a match can cross
    paragraph and table-cell boundaries. Deleted text (w:delText) and field
    codes (w:instrText) are never read.
    """

    kind = "word"
    extensions = (".docx", ".docm", ".dotx", ".dotm")

    def part_names(self, names: Iterable[str]) -> List[str]:
        names = list(names)
        parts = [DOCUMENT_PART] if DOCUMENT_PART in names else []
        if self.settings.word_include_headers_footers:
            parts += numbered_parts(names, HEADER_PART_RE)
            parts += numbered_parts(names, FOOTER_PART_RE)
        if self.settings.word_include_notes:
            parts += [p for p in (FOOTNOTES_PART, ENDNOTES_PART) if p in names]
        return parts

    def check_required(self, names: Iterable[str]) -> None:
        if DOCUMENT_PART not in set(names):
            raise PartNotFound(f"{DOCUMENT_PART} not found", DOCUMENT_PART)

    def is_text(self, node) -> bool:
        return node.tag == TEXT_TAG

    def is_separator(self, node) -> bool:
        return node.tag in SEPARATOR_TAGS
