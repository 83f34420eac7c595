"""
Mask rules and the persisted rule-row format.

Rule rows are stored as a JSON array of ``{"value", "enabled", "isRegex"}``
objects. Disabled rows and rows whose value is blank after trimming are
dropped when the rows are turned into :class:`MaskRule` objects.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class RuleMode(str, Enum):
    LITERAL = "literal"
    REGEX = "regex"


@dataclass(frozen=True)
class MaskRule:
    pattern: str
    mode: RuleMode = RuleMode.LITERAL
    enabled: bool = True
    priority: Optional[int] = None

    @property
    def is_regex(self) -> bool:
        return self.mode is RuleMode.REGEX

    @classmethod
    def literal(cls, pattern: str, priority: Optional[int] = None) -> "MaskRule":
        return cls(pattern, RuleMode.LITERAL, True, priority)

    @classmethod
    def regex(cls, pattern: str, priority: Optional[int] = None) -> "MaskRule":
        return cls(pattern, RuleMode.REGEX, True, priority)


# Starter rows: placeholder labels the user overwrites with real values
# (company name, postal code, address, phone, fax, email).
DEFAULT_RULE_RECORDS: List[Dict[str, Any]] = [
    {"value": "社名", "enabled": True, "isRegex": False},
    {"value": "郵便番号", "enabled": True, "isRegex": False},
    {"value": "住所", "enabled": True, "isRegex": False},
    {"value": "電話番号", "enabled": True, "isRegex": False},
    {"value": "FAX番号", "enabled": True, "isRegex": False},
    {"value": "メールアドレス", "enabled": True, "isRegex": False},
]


def default_rule_records() -> List[Dict[str, Any]]:
    return [dict(r) for r in DEFAULT_RULE_RECORDS]


def _as_bool(value: Any, field: str, position: int) -> bool:
    if isinstance(value, bool):
        return value
    raise ConfigurationError(f"Rule #{position}: '{field}' must be true or false, got {value!r}")


def rule_from_record(record: Dict[str, Any], position: int = 0) -> MaskRule:
    """Convert one persisted row into a rule. The value is trimmed."""
    if not isinstance(record, dict):
        raise ConfigurationError(f"Rule #{position} must be an object, got {type(record).__name__}")
    value = record.get("value")
    if not isinstance(value, str):
        raise ConfigurationError(f"Rule #{position}: 'value' must be a string")
    enabled = _as_bool(record.get("enabled", True), "enabled", position)
    is_regex = _as_bool(record.get("isRegex", False), "isRegex", position)
    priority = record.get("priority")
    if priority is not None and (isinstance(priority, bool) or not isinstance(priority, int)):
        raise ConfigurationError(f"Rule #{position}: 'priority' must be an integer")
    return MaskRule(
        pattern=value.strip(),
        mode=RuleMode.REGEX if is_regex else RuleMode.LITERAL,
        enabled=enabled,
        priority=priority,
    )


def rule_to_record(rule: MaskRule) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "value": rule.pattern,
        "enabled": rule.enabled,
        "isRegex": rule.is_regex,
    }
    if rule.priority is not None:
        record["priority"] = rule.priority
    return record


def active_rules(rules: Iterable[MaskRule]) -> List[MaskRule]:
    """Drop disabled and blank rules, keeping the supplied order."""
    return [r for r in rules if r.enabled and r.pattern]


def rules_from_records(records: Iterable[Dict[str, Any]]) -> List[MaskRule]:
    """Parse persisted rows into the ordered list of active rules."""
    parsed = [rule_from_record(rec, i) for i, rec in enumerate(records, start=1)]
    rules = active_rules(parsed)
    skipped = len(parsed) - len(rules)
    if skipped:
        logger.debug(f"Ignoring {skipped} disabled or blank rule row(s)")
    return rules


def load_rules(path: Union[str, Path]) -> List[MaskRule]:
    """Read a JSON rule file and return its active rules in file order."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read rule file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Rule file {path} is not valid JSON: {exc}") from exc
    if isinstance(data, dict) and "rules" in data:
        data = data["rules"]
    if not isinstance(data, list):
        raise ConfigurationError(f"Rule file {path} must contain a JSON array of rule rows")
    rules = rules_from_records(data)
    logger.info(f"Loaded {len(rules)} active rule(s) from {path}")
    return rules


def save_rule_records(path: Union[str, Path], records: List[Dict[str, Any]]) -> None:
    with open(path, "w", encoding="utf-8") as fh:
        json.dump(records, fh, ensure_ascii=False, indent=2)
        fh.write("\n")


def _literal_rank(rule: MaskRule):
    priority = rule.priority if rule.priority is not None else 0
    return (-priority, -len(rule.pattern))


def prioritize(rules: List[MaskRule]) -> List[MaskRule]:
    """Reorder literal rules so longer (or higher priority) ones run first.

    Regex rules keep their positions; literal rules are sorted among the
    slots literal rules occupied. The sort is stable, so equal-ranked
    literals stay in their supplied order.
    """
    slots = [i for i, r in enumerate(rules) if not r.is_regex]
    ranked = sorted((rules[i] for i in slots), key=_literal_rank)
    out = list(rules)
    for slot, rule in zip(slots, ranked):
        out[slot] = rule
    return out
