"""
Format adapter base.

An adapter scans a package's member names for the parts it handles, and
rewrites one part at a time: parse it, cut it into groups, mask each group's
logical text, then splice the masked characters back into the same leaf
elements of the original text. Only grouping and the leaf/separator
predicates differ from one format to the next.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Union

from .assembler import Group, NodeArena, assemble, redistribute
from .errors import Diagnostic, PartNotFound
from .masking import RuleSet, as_rule_set
from .rules import MaskRule
from .settings import RedactionSettings
from .xmltext import parse_part, splice_text

logger = logging.getLogger(__name__)


@dataclass
class PartResult:
    part_name: str
    text: str
    changed: bool
    diagnostics: List[Diagnostic] = field(default_factory=list)
    groups: int = 0
    masked_chars: int = 0

    def to_dict(self):
        return {
            "part": self.part_name,
            "changed": self.changed,
            "groups": self.groups,
            "masked_chars": self.masked_chars,
        }


def numbered_parts(names: Iterable[str], pattern: "re.Pattern") -> List[str]:
    """Members matching ``pattern`` (one numeric group), ascending by number."""
    found = []
    for name in names:
        m = pattern.match(name)
        if m:
            found.append((int(m.group(1)), name))
    return [name for _, name in sorted(found)]


class FormatAdapter:
    kind = ""
    extensions: tuple = ()

    def __init__(self, settings: Optional[RedactionSettings] = None):
        self.settings = settings or RedactionSettings()

    # scan

    def part_names(self, names: Iterable[str]) -> List[str]:
        raise NotImplementedError

    def check_required(self, names: Iterable[str]) -> None:
        """Raise PartNotFound when the package lacks what this format needs."""
        if not self.part_names(names):
            raise PartNotFound(f"No {self.kind} content parts found in package")

    # rewrite

    def is_text(self, node) -> bool:
        raise NotImplementedError

    def is_separator(self, node) -> bool:
        return False

    def group_roots(self, part_name: str, root) -> Iterator[object]:
        yield root

    def groups(self, part_name: str, root, arena: NodeArena) -> Iterator[Group]:
        for container in self.group_roots(part_name, root):
            yield assemble(container, arena, self.is_text, self.is_separator)

    def rule_set(self, rules: Union[RuleSet, Iterable[MaskRule]]) -> RuleSet:
        return as_rule_set(rules, self.settings.mask_char, self.settings.regex_timeout)

    def redact_part(self, part_name: str, xml_text: str, rules: Union[RuleSet, Iterable[MaskRule]]) -> PartResult:
        """Mask one part's text. Raises XmlParseError if the part cannot be parsed.

        The returned text is the input unchanged (same object) when nothing
        was masked.
        """
        rule_set = self.rule_set(rules)
        diagnostics = []
        if not isinstance(rules, RuleSet):
            diagnostics.extend(d.with_part(part_name) for d in rule_set.diagnostics)

        _, tree = parse_part(part_name, xml_text)
        root = tree.getroot()
        arena = NodeArena()
        replacements = {}
        result = PartResult(part_name, xml_text, False, diagnostics)

        for group in self.groups(part_name, root, arena):
            result.groups += 1
            if group.is_empty or not rule_set:
                continue
            original = group.text
            outcome = rule_set.apply(original)
            result.diagnostics.extend(d.with_part(part_name) for d in outcome.diagnostics)
            if outcome.text == original:
                continue
            redistribute(group, outcome.text)
            for fragment in group.fragments:
                if fragment.changed:
                    replacements[arena[fragment.node_index]] = fragment.new_text
            result.masked_chars += sum(1 for a, b in zip(original, outcome.text) if a != b)
            result.changed = result.changed or group.changed

        if result.changed:
            result.text = splice_text(part_name, xml_text, root, replacements)
        logger.debug(
            f"{part_name}: {result.groups} group(s), {result.masked_chars} character(s) masked"
        )
        return result
