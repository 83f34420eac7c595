from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

PART_NOT_FOUND = "PartNotFound"
XML_PARSE_ERROR = "XmlParseError"
INVALID_PATTERN = "InvalidPattern"


class RedactionError(Exception):
    """Base class for recoverable redaction failures."""

    kind = "RedactionError"

    def __init__(self, message: str, part_name: Optional[str] = None):
        super().__init__(message)
        self.part_name = part_name


class PartNotFound(RedactionError):
    """An expected structural part is absent from the package."""

    kind = PART_NOT_FOUND


class XmlParseError(RedactionError):
    """A part's markup could not be parsed; only that part is skipped."""

    kind = XML_PARSE_ERROR


class InvalidPattern(RedactionError):
    """A regex rule failed to compile or to finish matching."""

    kind = INVALID_PATTERN

    def __init__(self, message: str, pattern: str, part_name: Optional[str] = None):
        super().__init__(message, part_name)
        self.pattern = pattern


class ContainerError(RuntimeError):
    """The archive itself is unreadable. Aborts the whole run."""


class ConfigurationError(ValueError):
    pass


class RedistributionError(RuntimeError):
    """Masked text no longer lines up with the fragments it came from."""


@dataclass(frozen=True)
class Diagnostic:
    kind: str
    detail: str
    part_name: Optional[str] = None
    pattern: Optional[str] = None

    @classmethod
    def from_error(cls, error: RedactionError, part_name: Optional[str] = None) -> "Diagnostic":
        return cls(
            kind=error.kind,
            detail=str(error),
            part_name=part_name or error.part_name,
            pattern=getattr(error, "pattern", None),
        )

    def with_part(self, part_name: str) -> "Diagnostic":
        if self.part_name:
            return self
        return Diagnostic(self.kind, self.detail, part_name, self.pattern)

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def __str__(self) -> str:
        where = f" [{self.part_name}]" if self.part_name else ""
        return f"{self.kind}{where}: {self.detail}"
