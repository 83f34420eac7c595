"""
Shared XML helpers for OOXML parts.

Parts arrive as decoded text. lxml parses them to find the text-bearing
leaves; a rewrite then splices the new text of changed leaves back into the
original string, so every other byte of the part is kept as it was.
"""
from __future__ import annotations

import re
from typing import Dict, List, Optional, Tuple

from lxml import etree
from docx.oxml.ns import nsmap as _docx_nsmap

from .errors import XmlParseError

WORD_NS = _docx_nsmap["w"]
DRAWING_NS = _docx_nsmap["a"]
PRESENTATION_NS = "http://schemas.openxmlformats.org/presentationml/2006/main"
SHEET_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"

NAMESPACES = {
    "w": WORD_NS,
    "a": DRAWING_NS,
    "p": PRESENTATION_NS,
    "s": SHEET_NS,
}

_PROLOG_RE = re.compile(r"^\ufeff?\s*(?:<\?xml[^>]*\?>)?\s*")


def qname(prefix: str, local: str) -> str:
    """Clark-notation tag for ``prefix:local`` using the OOXML namespaces above."""
    return f"{{{NAMESPACES[prefix]}}}{local}"


def local_name(element) -> str:
    tag = element.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def split_prolog(xml_text: str) -> Tuple[str, str]:
    """Return ``(prolog, body)`` where prolog is the declaration plus leading whitespace."""
    m = _PROLOG_RE.match(xml_text)
    end = m.end() if m else 0
    return xml_text[:end], xml_text[end:]


def _safe_parser() -> etree.XMLParser:
    """Parser with entity resolution and network access disabled."""
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)


def parse_part(part_name: str, xml_text: str):
    """Parse part text into an lxml tree.

    Returns ``(prolog, tree)``. Any parse failure is raised as
    :class:`XmlParseError` naming the part.
    """
    prolog, body = split_prolog(xml_text)
    if not body.strip():
        raise XmlParseError(f"Part {part_name} is empty", part_name)
    try:
        root = etree.fromstring(body.encode("utf-8"), _safe_parser())
    except etree.XMLSyntaxError as exc:
        raise XmlParseError(f"Malformed XML in {part_name}: {exc}", part_name) from exc
    return prolog, root.getroottree()


# Markup tokens in source order. Text between tokens is not matched.
_TOKEN_RE = re.compile(
    r"<!--.*?-->"
    r"|<!\[CDATA\[.*?\]\]>"
    r"|<\?.*?\?>"
    r"|<!DOCTYPE(?:[^\[>]|\[.*?\])*>"
    r"|</[^>]*>"
    r"|<[^\s/>!?][^\"'>]*(?:(?:\"[^\"]*\"|'[^']*')[^\"'>]*)*>",
    re.S,
)


def escape_text(text: str) -> str:
    """Escape character data for a text node. CR is kept as a reference."""
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace("\r", "&#13;")
    )


def text_spans(body: str) -> List[Optional[Tuple[int, int]]]:
    """Source span of each element's leading text, in document order.

    Entry ``i`` belongs to the ``i``-th element of ``root.iter(etree.Element)``
    and covers the characters between its start tag and its first child
    markup (CDATA sections count as text). Self-closing elements get ``None``.
    """
    spans: List[Optional[Tuple[int, int]]] = []
    stack: List[int] = []
    open_text: Dict[int, int] = {}
    for m in _TOKEN_RE.finditer(body):
        token = m.group(0)
        if token.startswith("<![CDATA["):
            continue
        if stack and stack[-1] in open_text:
            number = stack[-1]
            spans[number] = (open_text.pop(number), m.start())
        if token.startswith("</"):
            stack.pop()
        elif token.startswith(("<!", "<?")):
            continue
        elif token.endswith("/>"):
            spans.append(None)
        else:
            number = len(spans)
            spans.append(None)
            stack.append(number)
            open_text[number] = m.end()
    return spans


def splice_text(part_name: str, xml_text: str, root, replacements: Dict[object, str]) -> str:
    """Write new text into ``xml_text`` for the given elements only.

    Everything outside the replaced text spans, the declaration included,
    is copied through unchanged. ``root`` must be the tree parsed from
    ``xml_text`` by :func:`parse_part`.
    """
    prolog, body = split_prolog(xml_text)
    spans = text_spans(body)
    elements = list(root.iter(etree.Element))
    if len(elements) != len(spans):
        raise XmlParseError(
            f"Cannot map {len(elements)} element(s) onto {len(spans)} start tag(s) in {part_name}",
            part_name,
        )
    edits = []
    for element, span in zip(elements, spans):
        if element not in replacements:
            continue
        if span is None:
            raise XmlParseError(f"No text span for <{local_name(element)}> in {part_name}", part_name)
        edits.append((span, escape_text(replacements[element])))

    out = []
    cursor = 0
    for (start, end), text in sorted(edits):
        out.append(body[cursor:start])
        out.append(text)
        cursor = end
    out.append(body[cursor:])
    return prolog + "".join(out)
