import argparse, os, sys
from dataclasses import replace

from .errors import ConfigurationError
from .rules import default_rule_records, save_rule_records
from .settings import CLI_ARG_PAIRS, GROUPING_MODES, load_settings
from .unified_redactor import run_from_paths, setup_logging


def _parse_mask_char(value: str) -> str:
    if value is None or len(value) != 1:
        raise argparse.ArgumentTypeError(f"Mask glyph must be a single character, got '{value}'")
    return value


def _parse_grouping(value: str) -> str:
    normalized = (value or "").strip().lower()
    if normalized == "box":
        normalized = "textbox"
    if normalized not in GROUPING_MODES:
        raise argparse.ArgumentTypeError(f"Invalid grouping '{value}'. Choose from textbox or paragraph.")
    return normalized


def build():
    p = argparse.ArgumentParser(prog="ooxmask", description="ooxmask: mask text in DOCX, PPTX and XLSX files")
    sp = p.add_subparsers(dest="cmd", required=True)

    r = sp.add_parser("redact", help="Mask a document using a rule file")
    r.add_argument("--in", dest="inp", required=True)
    r.add_argument("--out", dest="out", default=None, help="Output file (default: <name>_masked<ext>)")
    r.add_argument("--rules", dest="rules", required=True, help="JSON array of {value, enabled, isRegex} rows")
    r.add_argument("--report", dest="report", default=None)
    r.add_argument("--config", dest="config", default=None, help="JSON settings file")
    r.add_argument("--mask-char", type=_parse_mask_char, default=None)
    r.add_argument("--grouping", type=_parse_grouping, default=None,
                   help="Presentation grouping: textbox (default) or paragraph")
    r.add_argument("--longest-first", action="store_true",
                   help="Apply longer literal rules before shorter ones")
    for flag, _field in CLI_ARG_PAIRS:
        r.add_argument(flag, dest="switches", action="append_const", const=flag)
    r.add_argument("--debug", action="store_true")
    r.add_argument("--log", dest="log", default=None)

    i = sp.add_parser("init-rules", help="Write a starter rule file")
    i.add_argument("--out", dest="out", required=True)
    i.add_argument("--force", action="store_true", help="Overwrite an existing file")
    return p


def _settings_from_args(a):
    settings = load_settings(a.config).with_cli_args(a.switches or [])
    changes = {}
    if a.mask_char is not None:
        changes["mask_char"] = a.mask_char
    if a.grouping is not None:
        changes["presentation_grouping"] = a.grouping
    if a.longest_first:
        changes["longest_literal_first"] = True
    return replace(settings, **changes) if changes else settings


def _init_rules(a) -> int:
    if os.path.exists(a.out) and not a.force:
        print(f"❌ {a.out} already exists (use --force to overwrite)", file=sys.stderr)
        return 1
    save_rule_records(a.out, default_rule_records())
    print(f"✅ Wrote starter rules to {a.out}")
    return 0


def _redact(a) -> int:
    setup_logging(a.debug, a.log)
    try:
        settings = _settings_from_args(a)
    except ConfigurationError as e:
        print(f"❌ Invalid settings: {e}", file=sys.stderr)
        return 1

    result = run_from_paths(a.inp, a.rules, a.out, a.report, settings)
    if not result['success']:
        print(f"❌ Redaction failed: {result['error']}", file=sys.stderr)
        return result['exit_code']

    print(f"✅ Redaction completed")
    print(f"   Output: {result['output_file']}")
    print(f"   Parts changed: {result['parts_changed']} of {result['parts_processed']}")
    print(f"   Characters masked: {result['masked_chars']}")
    if result['diagnostics']:
        print(f"   ⚠️  {len(result['diagnostics'])} diagnostic(s):")
        for line in result['diagnostics']:
            print(f"      {line}")
    return 0


def main(argv=None):
    a = build().parse_args(argv)
    try:
        if a.cmd == "init-rules":
            code = _init_rules(a)
        else:
            code = _redact(a)
    except KeyboardInterrupt:
        print("Operation cancelled by user", file=sys.stderr)
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
