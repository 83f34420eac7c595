"""
Document-level redaction.

Picks the adapter for the package, walks its candidate parts in a fixed
order and swaps each rewritten part back into the container. Missing and
unparseable parts, and bad rules, end up as diagnostics on the result; only
an unreadable archive stops the run.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Type, Union

from .container import OoxmlPackage, Source
from .errors import ContainerError, Diagnostic, PartNotFound, XmlParseError
from .masking import RuleSet
from .ooxml import FormatAdapter, PartResult
from .presentation import PresentationAdapter
from .rules import MaskRule, active_rules, prioritize
from .settings import RedactionSettings
from .spreadsheet import SpreadsheetAdapter
from .word import WordAdapter

logger = logging.getLogger(__name__)

ADAPTERS: Dict[str, Type[FormatAdapter]] = {
    WordAdapter.kind: WordAdapter,
    PresentationAdapter.kind: PresentationAdapter,
    SpreadsheetAdapter.kind: SpreadsheetAdapter,
}

# Top-level folder that identifies each package kind.
_KIND_MARKERS = (
    ("word/", WordAdapter.kind),
    ("ppt/", PresentationAdapter.kind),
    ("xl/", SpreadsheetAdapter.kind),
)


@dataclass
class DocumentResult:
    kind: str
    data: bytes
    parts: List[PartResult] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return any(p.changed for p in self.parts)

    @property
    def all_diagnostics(self) -> List[Diagnostic]:
        out = list(self.diagnostics)
        for part in self.parts:
            out.extend(part.diagnostics)
        return out


def kind_from_filename(filename: Optional[str]) -> Optional[str]:
    if not filename:
        return None
    ext = os.path.splitext(str(filename))[1].lower()
    for kind, adapter in ADAPTERS.items():
        if ext in adapter.extensions:
            return kind
    return None


def detect_kind(names: Iterable[str], filename: Optional[str] = None) -> str:
    """Work out the package kind from its extension, else from its members."""
    kind = kind_from_filename(filename)
    if kind:
        return kind
    names = list(names)
    for prefix, kind in _KIND_MARKERS:
        if any(n.startswith(prefix) for n in names):
            return kind
    raise ContainerError(f"Not a recognised OOXML package: {filename or '<bytes>'}")


def adapter_for(kind: str, settings: Optional[RedactionSettings] = None) -> FormatAdapter:
    try:
        return ADAPTERS[kind](settings)
    except KeyError:
        raise ValueError(f"Unknown package kind '{kind}'. Valid kinds: {sorted(ADAPTERS)}") from None


def prepare_rules(rules: Iterable[MaskRule], settings: RedactionSettings) -> RuleSet:
    ordered = active_rules(rules)
    if settings.longest_literal_first:
        ordered = prioritize(ordered)
    return RuleSet(ordered, settings.mask_char, settings.regex_timeout)


def masked_output_path(path: str, suffix: str = "_masked") -> str:
    """``report.docx`` -> ``report_masked.docx``."""
    base, ext = os.path.splitext(path)
    return f"{base}{suffix}{ext}"


def redact_package(
    package: OoxmlPackage,
    rules: Union[RuleSet, Iterable[MaskRule]],
    settings: Optional[RedactionSettings] = None,
    kind: Optional[str] = None,
    filename: Optional[str] = None,
) -> DocumentResult:
    settings = settings or RedactionSettings()
    names = package.names()
    kind = kind or detect_kind(names, filename)
    adapter = adapter_for(kind, settings)

    rule_set = rules if isinstance(rules, RuleSet) else prepare_rules(rules, settings)
    result = DocumentResult(kind=kind, data=b"", diagnostics=list(rule_set.diagnostics))

    try:
        adapter.check_required(names)
    except PartNotFound as exc:
        logger.warning(f"{exc}")
        result.diagnostics.append(Diagnostic.from_error(exc))

    for name in adapter.part_names(names):
        logger.info(f"Processing {name}")
        try:
            part = adapter.redact_part(name, package.read_text(name), rule_set)
        except XmlParseError as exc:
            logger.warning(f"Skipping {name}: {exc}")
            result.diagnostics.append(Diagnostic.from_error(exc, name))
            continue
        if part.changed:
            package.replace(name, part.text)
        result.parts.append(part)

    result.data = package.to_bytes()
    changed = sum(1 for p in result.parts if p.changed)
    logger.info(f"{kind}: {len(result.parts)} part(s) processed, {changed} changed")
    return result


def redact_document(
    source: Source,
    rules: Union[RuleSet, Iterable[MaskRule]],
    settings: Optional[RedactionSettings] = None,
    kind: Optional[str] = None,
) -> DocumentResult:
    """Redact a package given as a path or as raw bytes."""
    filename = None if isinstance(source, (bytes, bytearray)) else os.fspath(source)
    with OoxmlPackage.open(source) as package:
        return redact_package(package, rules, settings, kind=kind, filename=filename)


def redact_xml(
    part_name: str,
    xml_text: str,
    rules: Union[RuleSet, Iterable[MaskRule]],
    kind: str = WordAdapter.kind,
    settings: Optional[RedactionSettings] = None,
) -> PartResult:
    """Redact a single part's XML text with the adapter for ``kind``."""
    return adapter_for(kind, settings).redact_part(part_name, xml_text, rules)
