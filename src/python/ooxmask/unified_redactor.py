#!/usr/bin/env python3
"""
Unified Redactor Module for ooxmask

Single entry point for CLI (and embedding) redaction runs.
Provides consistent behavior, logging, and error handling across callers.
"""

import os
import sys
import logging
import traceback
from datetime import datetime
from typing import Optional, Dict, Any, List

from .container import OoxmlPackage
from .errors import ConfigurationError, ContainerError
from .pipeline import kind_from_filename, masked_output_path, redact_package
from .report import build_failure_report, build_report, write_report
from .rules import MaskRule, load_rules
from .settings import RedactionSettings


def setup_logging(debug: bool = False, log_path: Optional[str] = None) -> None:
    """Setup unified logging configuration."""
    level = logging.DEBUG if debug else logging.INFO
    format_str = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_path:
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    logging.basicConfig(level=level, format=format_str, handlers=handlers, force=True)

    logger = logging.getLogger(__name__)
    logger.debug("Unified redactor logging initialized")


def validate_parameters(input_path: str, output_path: str, report_path: Optional[str] = None) -> None:
    """Validate input parameters before processing."""
    logger = logging.getLogger(__name__)

    if not os.path.exists(input_path):
        raise ValueError(f"Input file not found: {input_path}")

    if kind_from_filename(input_path) is None:
        raise ValueError(f"Input file must be a .docx, .pptx or .xlsx package: {input_path}")

    if os.path.abspath(input_path) == os.path.abspath(output_path):
        raise ValueError("Output path must differ from the input path")

    for path in (output_path, report_path):
        if path and os.path.dirname(path):
            os.makedirs(os.path.dirname(path), exist_ok=True)

    logger.debug(f"Parameters validated: input={input_path}, output={output_path}, report={report_path}")


def run_unified_redaction(
    input_path: str,
    rules: List[MaskRule],
    output_path: Optional[str] = None,
    report_path: Optional[str] = None,
    settings: Optional[RedactionSettings] = None,
) -> Dict[str, Any]:
    """
    Unified redaction entry point.

    Args:
        input_path: Path to the input .docx/.pptx/.xlsx file
        rules: Ordered, already-parsed mask rules
        output_path: Where to write the masked copy (default: ``<name>_masked<ext>``)
        report_path: Optional JSON report path
        settings: Redaction settings; defaults apply when omitted

    Returns:
        Dictionary with processing results and metadata. Never raises for
        per-part or per-rule problems; those are listed under ``diagnostics``.
    """
    logger = logging.getLogger(__name__)
    settings = settings or RedactionSettings()
    output_path = output_path or masked_output_path(input_path, settings.output_suffix)

    operation_id = datetime.now().strftime("%Y%m%d_%H%M%S")
    logger.info(f"Starting redaction operation {operation_id}")
    logger.info(f"Input: {input_path}")
    logger.info(f"Output: {output_path}")
    logger.info(f"Rules: {len(rules)} active")
    start_time = datetime.now()

    try:
        validate_parameters(input_path, output_path, report_path)

        with OoxmlPackage.open(input_path) as package:
            result = redact_package(package, rules, settings, filename=input_path)

        with open(output_path, "wb") as fh:
            fh.write(result.data)

        diagnostics = result.all_diagnostics
        for diag in diagnostics:
            logger.warning(f"Diagnostic: {diag}")

        if report_path:
            write_report(report_path, build_report(input_path, output_path, result, len(rules), settings))

        duration = (datetime.now() - start_time).total_seconds()
        logger.info(f"Redaction completed in {duration:.2f} seconds")

        return {
            'success': True,
            'exit_code': 0,
            'duration': duration,
            'kind': result.kind,
            'changed': result.changed,
            'parts_processed': len(result.parts),
            'parts_changed': sum(1 for p in result.parts if p.changed),
            'masked_chars': sum(p.masked_chars for p in result.parts),
            'diagnostics': [str(d) for d in diagnostics],
            'input_file': input_path,
            'output_file': output_path,
            'report_file': report_path,
            'operation_id': operation_id,
        }

    except (ValueError, ContainerError, ConfigurationError, OSError) as e:
        logger.error(f"Redaction failed: {str(e)}")
        logger.debug(f"Full traceback: {traceback.format_exc()}")

        if report_path:
            try:
                write_report(report_path, build_failure_report(input_path, e))
            except OSError as report_exc:
                logger.error(f"Failed to write error report: {report_exc}")

        return {
            'success': False,
            'exit_code': 1,
            'error': str(e),
            'input_file': input_path,
            'output_file': output_path,
            'operation_id': operation_id,
            'duration': (datetime.now() - start_time).total_seconds(),
        }


def run_from_paths(
    input_path: str,
    rules_path: str,
    output_path: Optional[str] = None,
    report_path: Optional[str] = None,
    settings: Optional[RedactionSettings] = None,
) -> Dict[str, Any]:
    """Load the rule file, then run :func:`run_unified_redaction`."""
    try:
        rules = load_rules(rules_path)
    except ConfigurationError as e:
        logging.getLogger(__name__).error(f"Redaction failed: {e}")
        return {
            'success': False,
            'exit_code': 1,
            'error': str(e),
            'input_file': input_path,
        }
    return run_unified_redaction(input_path, rules, output_path, report_path, settings)
