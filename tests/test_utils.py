"""Tests for binary detection and path helpers."""

from projectrag.utils import (
    has_null_bytes,
    is_binary_content,
    normalize_separators,
    split_parts,
    to_relative,
)


class TestBinaryDetection:
    def test_plain_text(self):
        assert not is_binary_content("def main():\n\treturn 0\r\n")

    def test_null_character(self):
        assert is_binary_content("abc\x00def")

    def test_control_characters(self):
        assert is_binary_content("\x01\x02\x03" + "a" * 20)

    def test_replacement_characters(self):
        decoded = b"\xff\xfe\xfa\xfb".decode("utf-8", errors="replace")
        assert is_binary_content(decoded)

    def test_empty(self):
        assert not is_binary_content("")

    def test_null_byte_ratio(self):
        assert has_null_bytes(b"\x00\x00ab")
        assert not has_null_bytes(b"a" * 100 + b"\x00")
        assert not has_null_bytes(b"")


class TestPaths:
    def test_normalize_separators(self):
        assert normalize_separators("src\\lib\\a.py") == "src/lib/a.py"

    def test_split_parts(self):
        assert split_parts("/src//lib\\a.py") == ["src", "lib", "a.py"]

    def test_to_relative(self):
        assert to_relative("/workspace/src/a.py", "/workspace") == "src/a.py"
        assert to_relative("/workspace/src/a.py", "/workspace/") == "src/a.py"
        assert to_relative("./src/a.py", "/workspace") == "src/a.py"
        assert to_relative("src/a.py", "/workspace") == "src/a.py"
        assert to_relative("/other/a.py", "/workspace") == "other/a.py"
