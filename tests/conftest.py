"""Pytest path setup for src-layout imports, plus package builders."""

from io import BytesIO
from pathlib import Path
import sys
import zipfile

import pytest


REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PYTHON = REPO_ROOT / "src" / "python"

if str(SRC_PYTHON) not in sys.path:
    sys.path.insert(0, str(SRC_PYTHON))


W_NS = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
A_NS = "http://schemas.openxmlformats.org/drawingml/2006/main"
P_NS = "http://schemas.openxmlformats.org/presentationml/2006/main"
S_NS = "http://schemas.openxmlformats.org/spreadsheetml/2006/main"

XML_DECL = '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'


def build_zip(members):
    """Zip ``{name: str|bytes}`` in insertion order and return the bytes."""
    buf = BytesIO()
    with zipfile.ZipFile(buf, "w", zipfile.ZIP_DEFLATED) as zf:
        for name, data in members.items():
            if isinstance(data, str):
                data = data.encode("utf-8")
            info = zipfile.ZipInfo(name, date_time=(2024, 1, 1, 0, 0, 0))
            info.compress_type = zipfile.ZIP_DEFLATED
            zf.writestr(info, data)
    return buf.getvalue()


def read_member(data, name):
    with zipfile.ZipFile(BytesIO(data)) as zf:
        return zf.read(name).decode("utf-8")


@pytest.fixture
def make_package():
    return build_zip


@pytest.fixture
def member_text():
    return read_member


@pytest.fixture
def sample_docx_bytes():
    """A real .docx produced by python-docx, with a phone number split over runs."""
    from docx import Document

    doc = Document()
    p = doc.add_paragraph("call ")
    p.add_run("042-").bold = True
    p.add_run("595-7557 now")
    doc.add_paragraph("R&D <team> keeps this line")
    doc.sections[0].header.paragraphs[0].text = "Header 042-595-7557"
    buf = BytesIO()
    doc.save(buf)
    return buf.getvalue()
