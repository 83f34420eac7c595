"""Same-length text masking for DOCX, PPTX and XLSX packages."""

from .assembler import Group, NodeArena, TextFragment, assemble, redistribute
from .errors import (
    ConfigurationError,
    ContainerError,
    Diagnostic,
    InvalidPattern,
    PartNotFound,
    RedactionError,
    RedistributionError,
    XmlParseError,
)
from .masking import MASK_CHAR, MaskOutcome, RuleSet, mask, match
from .ooxml import FormatAdapter, PartResult
from .pipeline import DocumentResult, masked_output_path, redact_document, redact_xml
from .presentation import PresentationAdapter
from .rules import MaskRule, RuleMode, load_rules, prioritize, rules_from_records
from .settings import RedactionSettings
from .spreadsheet import SpreadsheetAdapter
from .word import WordAdapter

__version__ = "0.1.0"
