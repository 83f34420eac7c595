"""
Pattern masking engine.

Every match is overwritten with the mask glyph repeated to the match's own
length, so the masked text is always exactly as long as the input. Rules run
in the order supplied and each one sees the output of the previous one; a
rule can therefore match glyphs an earlier rule inserted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple, Union

import regex as re

from .errors import Diagnostic, InvalidPattern, RedistributionError
from .rules import MaskRule, RuleMode, active_rules

logger = logging.getLogger(__name__)

MASK_CHAR = "■"


@dataclass
class MaskOutcome:
    text: str
    diagnostics: List[Diagnostic] = field(default_factory=list)


def compile_rule(rule: MaskRule):
    """Compile a rule into a matcher. Raises InvalidPattern for bad regexes."""
    if rule.mode is RuleMode.LITERAL:
        return re.compile(re.escape(rule.pattern))
    try:
        return re.compile(rule.pattern)
    except (re.error, TypeError, ValueError) as exc:
        raise InvalidPattern(f"Invalid regular expression {rule.pattern!r}: {exc}", rule.pattern) from exc


def _substitute(matcher, rule: MaskRule, text: str, mask_char: str, timeout: Optional[float]) -> str:
    try:
        masked = matcher.sub(lambda m: mask_char * len(m.group(0)), text, timeout=timeout)
    except TimeoutError as exc:
        raise InvalidPattern(f"Pattern {rule.pattern!r} timed out after {timeout}s", rule.pattern) from exc
    if len(masked) != len(text):
        raise RedistributionError(f"Masking changed text length ({len(text)} -> {len(masked)})")
    return masked


def match(text: str, rule: MaskRule, mask_char: str = MASK_CHAR, timeout: Optional[float] = None) -> str:
    """Mask every non-overlapping match of one rule in ``text``."""
    return _substitute(compile_rule(rule), rule, text, mask_char, timeout)


class RuleSet:
    """Rules compiled once for a whole pass.

    Rules that fail to compile are dropped here and kept as diagnostics, so a
    bad pattern is reported once per pass rather than once per group.
    """

    def __init__(self, rules: Iterable[MaskRule], mask_char: str = MASK_CHAR, timeout: Optional[float] = None):
        if not isinstance(mask_char, str) or len(mask_char) != 1:
            raise ValueError(f"Mask glyph must be a single character, got {mask_char!r}")
        self.mask_char = mask_char
        self.timeout = timeout
        self.rules = active_rules(rules)
        self.diagnostics: List[Diagnostic] = []
        self._compiled: List[Tuple[MaskRule, object]] = []
        for rule in self.rules:
            try:
                self._compiled.append((rule, compile_rule(rule)))
            except InvalidPattern as exc:
                logger.warning(f"Skipping rule: {exc}")
                self.diagnostics.append(Diagnostic.from_error(exc))

    def __len__(self) -> int:
        return len(self._compiled)

    def __bool__(self) -> bool:
        return bool(self._compiled)

    def apply(self, text: str) -> "MaskOutcome":
        outcome = MaskOutcome(text)
        if not text:
            return outcome
        for rule, matcher in self._compiled:
            try:
                outcome.text = _substitute(matcher, rule, outcome.text, self.mask_char, self.timeout)
            except InvalidPattern as exc:
                logger.warning(f"Skipping rule: {exc}")
                outcome.diagnostics.append(Diagnostic.from_error(exc))
        return outcome


def as_rule_set(rules: Union[RuleSet, Iterable[MaskRule]], mask_char: str = MASK_CHAR,
                timeout: Optional[float] = None) -> RuleSet:
    if isinstance(rules, RuleSet):
        return rules
    return RuleSet(rules, mask_char, timeout)


def mask(
    text: str,
    rules: Union[RuleSet, Iterable[MaskRule]],
    mask_char: str = MASK_CHAR,
    timeout: Optional[float] = None,
) -> MaskOutcome:
    """Apply ``rules`` to ``text`` in order.

    Invalid or runaway regex rules are skipped and reported as diagnostics;
    the remaining rules still run.
    """
    rule_set = as_rule_set(rules, mask_char, timeout)
    outcome = rule_set.apply(text)
    if not isinstance(rules, RuleSet):
        outcome.diagnostics[:0] = rule_set.diagnostics
    return outcome


def mask_text(text: str, rules: Iterable[MaskRule], mask_char: str = MASK_CHAR) -> str:
    """Convenience wrapper returning only the masked string."""
    return mask(text, rules, mask_char).text
