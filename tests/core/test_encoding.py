"""Tests for the script text decoding cascade."""

from rvtext.core.encoding import decode_text, encode_text, strip_bom


class TestDecodeText:
    def test_utf8_first(self):
        assert decode_text("Café".encode()) == ("Café", "utf-8")

    def test_cp1252_fallback(self):
        text, encoding = decode_text("Café".encode("cp1252"))
        assert encoding == "cp1252"
        assert text == "Café"

    def test_cp1251_when_cp1252_fails(self):
        # 0x81 is undefined in cp1252
        text, encoding = decode_text(b"\x81\xe0")
        assert encoding == "cp1251"
        assert text == "Ѓа"


class TestEncodeText:
    def test_source_encoding_kept(self):
        assert encode_text("Café", "cp1252") == "Café".encode("cp1252")

    def test_unrepresentable_falls_back_to_utf8(self):
        assert encode_text("日本", "cp1252") == "日本".encode()


class TestStripBom:
    def test_strip(self):
        assert strip_bom("﻿[1]") == "[1]"
        assert strip_bom("[1]") == "[1]"
