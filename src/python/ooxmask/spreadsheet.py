"""SpreadsheetML adapter (.xlsx).

Two independent pools hold cell text: the shared string table, where each
``si`` entry is one group, and inline strings written straight into
worksheet cells (``<c t="inlineStr"><is>...``), one group per cell. Rich
text runs inside one entry stay in the same group. Phonetic guide text
(``rPh``) is left alone.
"""
from __future__ import annotations

import re
from typing import Iterable, Iterator, List

from .errors import PartNotFound
from .ooxml import FormatAdapter, numbered_parts
from .xmltext import qname

SHARED_STRINGS_PART = "xl/sharedStrings.xml"
SHEET_PART_RE = re.compile(r"^xl/worksheets/sheet(\d+)\.xml$")

TEXT_TAG = qname("s", "t")
TEXT_PARENT_TAGS = frozenset((qname("s", "si"), qname("s", "r"), qname("s", "is")))
STRING_ITEM_TAG = qname("s", "si")
CELL_TAG = qname("s", "c")
INLINE_STRING_TAG = qname("s", "is")


class SpreadsheetAdapter(FormatAdapter):
    kind = "spreadsheet"
    extensions = (".xlsx", ".xlsm", ".xltx", ".xltm")

    def part_names(self, names: Iterable[str]) -> List[str]:
        names = list(names)
        parts = [SHARED_STRINGS_PART] if SHARED_STRINGS_PART in names else []
        return parts + numbered_parts(names, SHEET_PART_RE)

    def check_required(self, names: Iterable[str]) -> None:
        # A workbook holding only numbers has no string table; that is fine
        # as long as there are sheets to look at.
        if not self.part_names(names):
            raise PartNotFound(
                f"Neither {SHARED_STRINGS_PART} nor any worksheet found", SHARED_STRINGS_PART
            )

    def is_text(self, node) -> bool:
        if node.tag != TEXT_TAG:
            return False
        parent = node.getparent()
        return parent is not None and parent.tag in TEXT_PARENT_TAGS

    def group_roots(self, part_name: str, root) -> Iterator[object]:
        if part_name == SHARED_STRINGS_PART:
            yield from root.iter(STRING_ITEM_TAG)
            return
        for cell in root.iter(CELL_TAG):
            if cell.get("t") != "inlineStr":
                continue
            inline = cell.find(INLINE_STRING_TAG)
            if inline is not None:
                yield inline
