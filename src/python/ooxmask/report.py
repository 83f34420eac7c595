import json, hashlib, time
from typing import Any, Dict, List, Optional


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def sha256_file(p):
    h = hashlib.sha256()
    with open(p, 'rb') as f:
        for ch in iter(lambda: f.read(8192), b''):
            h.update(ch)
    return h.hexdigest()


def _timestamp() -> str:
    return time.strftime('%Y-%m-%dT%H:%M:%SZ', time.gmtime())


def build_report(input_path: str, output_path: str, result, rule_count: int, settings=None) -> Dict[str, Any]:
    return {
        'status': 'ok',
        'created_at': _timestamp(),
        'input': input_path,
        'input_sha256': sha256_file(input_path),
        'output': output_path,
        'output_sha256': sha256_bytes(result.data),
        'kind': result.kind,
        'rules': rule_count,
        'settings': settings.to_mapping() if settings is not None else {},
        'changed': result.changed,
        'parts': [p.to_dict() for p in result.parts],
        'diagnostics': [d.to_dict() for d in result.all_diagnostics],
    }


def build_failure_report(input_path: str, error: Exception, diagnostics: Optional[List] = None) -> Dict[str, Any]:
    return {
        'status': 'error',
        'created_at': _timestamp(),
        'input': input_path,
        'error_type': type(error).__name__,
        'message': str(error),
        'diagnostics': [d.to_dict() for d in diagnostics or []],
    }


def write_report(report_path: str, data: Dict[str, Any]) -> None:
    with open(report_path, 'w', encoding='utf-8') as f:
        f.write(json.dumps(data, indent=2, ensure_ascii=False))
