from __future__ import annotations

import json
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import ConfigurationError
from .masking import MASK_CHAR

GROUPING_MODES = ("textbox", "paragraph")

CLI_ARG_PAIRS: List[Tuple[str, str]] = [
    ("--no-headers-footers", "word_include_headers_footers"),
    ("--no-word-notes", "word_include_notes"),
    ("--no-slide-notes", "presentation_include_notes"),
]

CLI_ARG_MAP = dict(CLI_ARG_PAIRS)


@dataclass
class RedactionSettings:
    """Knobs for one redaction run. Defaults match the interactive tool."""

    mask_char: str = MASK_CHAR
    # Sort literal rules longest-first before masking.
    longest_literal_first: bool = False
    # "textbox" groups a whole text body; "paragraph" groups each a:p.
    presentation_grouping: str = "textbox"
    presentation_include_notes: bool = True
    word_include_headers_footers: bool = True
    word_include_notes: bool = True
    # Seconds a single regex rule may spend on one group; None disables.
    regex_timeout: Optional[float] = 5.0
    output_suffix: str = "_masked"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not isinstance(self.mask_char, str) or len(self.mask_char) != 1:
            raise ConfigurationError(f"mask_char must be exactly one character, got {self.mask_char!r}")
        if self.mask_char in "\r\n":
            raise ConfigurationError("mask_char cannot be a line break")
        if self.presentation_grouping not in GROUPING_MODES:
            raise ConfigurationError(
                f"presentation_grouping must be one of {GROUPING_MODES}, got {self.presentation_grouping!r}"
            )
        if self.regex_timeout is not None:
            if isinstance(self.regex_timeout, bool) or not isinstance(self.regex_timeout, (int, float)):
                raise ConfigurationError("regex_timeout must be a number of seconds or null")
            if self.regex_timeout <= 0:
                raise ConfigurationError("regex_timeout must be positive")
        if not self.output_suffix:
            raise ConfigurationError("output_suffix cannot be empty")

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "RedactionSettings":
        """Build settings from a dict, e.g. a parsed JSON config file."""
        if "ooxmask" in data and isinstance(data["ooxmask"], dict):
            data = data["ooxmask"]
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown setting(s): {', '.join(unknown)}")
        return cls(**data)

    def to_mapping(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def with_cli_args(self, args: List[str]) -> "RedactionSettings":
        """Apply ``--no-*`` switches on top of these settings."""
        changes = {CLI_ARG_MAP[a]: False for a in args if a in CLI_ARG_MAP}
        return replace(self, **changes) if changes else self


def load_settings(path: Union[str, Path, None]) -> RedactionSettings:
    if path is None:
        return RedactionSettings()
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Settings file {path} is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Settings file {path} must contain a JSON object")
    return RedactionSettings.from_mapping(data)
