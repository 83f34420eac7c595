"""
Tests for container.py - zip package access and rewrite.
"""

import zipfile
from io import BytesIO

import pytest

from conftest import W_NS
from ooxmask.container import OoxmlPackage
from ooxmask.errors import ContainerError, XmlParseError


MEMBERS = {
    "[Content_Types].xml": "<Types/>",
    "word/document.xml": "<doc>secret</doc>",
    "word/media/image1.png": b"\x89PNG\r\n\x1a\n",
}


class TestOpen:
    """Test opening packages."""

    def test_from_bytes(self, make_package):
        """Test members are listed in archive order."""
        with OoxmlPackage.open(make_package(MEMBERS)) as pkg:
            assert pkg.names() == list(MEMBERS)
            assert "word/document.xml" in pkg
            assert "word/missing.xml" not in pkg

    def test_from_path(self, tmp_path, make_package):
        """Test opening from a file path."""
        path = tmp_path / "a.docx"
        path.write_bytes(make_package(MEMBERS))
        with OoxmlPackage.open(path) as pkg:
            assert pkg.read_text("word/document.xml") == "<doc>secret</doc>"

    def test_missing_path(self, tmp_path):
        """Test a missing file raises ContainerError."""
        with pytest.raises(ContainerError):
            OoxmlPackage.open(tmp_path / "missing.docx")

    def test_not_a_zip(self):
        """Test garbage bytes raise ContainerError."""
        with pytest.raises(ContainerError):
            OoxmlPackage(b"PK but not really")

    def test_non_utf8_part(self, make_package):
        """Test an undecodable part is an XML error for that part."""
        with OoxmlPackage.open(make_package({"word/document.xml": b"\xff\xfe<d/>"})) as pkg:
            with pytest.raises(XmlParseError) as info:
                pkg.read_text("word/document.xml")
        assert info.value.part_name == "word/document.xml"


class TestRewrite:
    """Test replacing parts and rebuilding the archive."""

    def test_untouched_package_is_identical(self, make_package):
        """Test no replacements returns the original bytes."""
        data = make_package(MEMBERS)
        with OoxmlPackage.open(data) as pkg:
            assert pkg.modified is False
            assert pkg.to_bytes() is data

    def test_replace_keeps_other_members(self, make_package):
        """Test only the replaced member changes."""
        data = make_package(MEMBERS)
        with OoxmlPackage.open(data) as pkg:
            pkg.replace("word/document.xml", "<doc>■■■■■■</doc>")
            assert pkg.read_text("word/document.xml") == "<doc>■■■■■■</doc>"
            out = pkg.to_bytes()

        with zipfile.ZipFile(BytesIO(out)) as zf:
            assert zf.namelist() == list(MEMBERS)
            assert zf.read("word/document.xml").decode("utf-8") == "<doc>■■■■■■</doc>"
            assert zf.read("word/media/image1.png") == MEMBERS["word/media/image1.png"]
            info = zf.getinfo("word/document.xml")
            assert info.date_time == (2024, 1, 1, 0, 0, 0)
            assert info.compress_type == zipfile.ZIP_DEFLATED

    def test_replace_unknown_member(self, make_package):
        """Test that new members cannot be added."""
        with OoxmlPackage.open(make_package(MEMBERS)) as pkg:
            with pytest.raises(KeyError):
                pkg.replace("word/new.xml", "<x/>")

    def test_serialize_twice(self, make_package):
        """Test a rebuilt package can be rebuilt and read again."""
        with OoxmlPackage.open(make_package(MEMBERS)) as pkg:
            pkg.replace("word/document.xml", "<doc>■■■■■■</doc>")
            first = pkg.to_bytes()
            second = pkg.to_bytes()
            assert pkg.read_bytes("word/media/image1.png") == MEMBERS["word/media/image1.png"]
        assert first == second

    def test_serialize_after_pipeline(self, make_package, member_text):
        """Test the package stays usable after a whole-document pass."""
        from ooxmask.pipeline import redact_package
        from ooxmask.rules import MaskRule

        document = f'<w:document xmlns:w="{W_NS}"><w:body><w:p><w:r><w:t>secret</w:t></w:r></w:p></w:body></w:document>'
        data = make_package({"word/document.xml": document, "word/styles.xml": "<styles/>"})
        with OoxmlPackage.open(data) as pkg:
            result = redact_package(pkg, [MaskRule.literal("secret")])
            again = pkg.to_bytes()
        assert result.changed
        assert again == result.data
        assert member_text(again, "word/styles.xml") == "<styles/>"
