"""Tests for the line file format, ignore file and stat report."""

import logging

from rvtext.core.linefile import (
    LineEntry,
    append_ignore,
    append_stat,
    display_name_entry,
    dump_lines,
    load_ignore,
    map_marker,
    parse_display_name,
    parse_ignore,
    parse_int_payload,
    parse_lines,
    read_line_file,
    write_line_file,
)


class TestParseLines:
    def test_basic(self):
        entries = parse_lines("Hello<#>Bonjour\nYes<#>")
        assert entries == [LineEntry("Hello", "Bonjour"), LineEntry("Yes", "")]

    def test_escaped_newlines_restored(self):
        entries = parse_lines(r"Hello\#world<#>Bonjour\#monde")
        assert entries[0].original == "Hello\nworld"
        assert entries[0].translation == "Bonjour\nmonde"

    def test_blank_lines_ignored(self):
        assert len(parse_lines("A<#>\n\n\nB<#>\n")) == 2

    def test_crlf_line_endings(self):
        entries = parse_lines("A<#>a\r\nB<#>b\r\n")
        assert entries == [LineEntry("A", "a"), LineEntry("B", "b")]

    def test_missing_separator_dropped_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING):
            entries = parse_lines("A<#>a\nbroken line\nB<#>b", source="items.txt")
        assert [e.original for e in entries] == ["A", "B"]
        assert "items.txt:2" in caplog.text

    def test_only_first_separator_splits(self):
        entries = parse_lines("A<#>b<#>c")
        assert entries[0].translation == "b<#>c"


class TestDumpLines:
    def test_newlines_escaped(self):
        text = dump_lines([LineEntry("Hello\nworld", "")])
        assert text == r"Hello\#world<#>"

    def test_file_roundtrip(self, tmp_path):
        path = tmp_path / "sub" / "maps.txt"
        entries = [map_marker(1), LineEntry("Hello\nworld", "Bonjour\nmonde"), LineEntry("Yes")]
        write_line_file(path, entries)
        assert read_line_file(path) == entries


class TestLineEntry:
    def test_comment(self):
        assert map_marker(3).is_comment
        assert not LineEntry("Hello").is_comment

    def test_whitespace_translation_is_untranslated(self):
        assert not LineEntry("Hello", "   ").is_translated
        assert LineEntry("Hello", "Hola").is_translated


class TestHeaderEntries:
    def test_display_name_roundtrip(self):
        entry = display_name_entry("Town", "Ville")
        assert entry.original == "<!-- In-game Displayed Name: Town -->"
        assert parse_display_name(entry.original) == "Town"

    def test_parse_display_name_other_line(self):
        assert parse_display_name("Town") is None

    def test_int_payload(self):
        assert parse_int_payload(map_marker(12)) == 12

    def test_bad_int_payload(self, caplog):
        with caplog.at_level(logging.WARNING):
            assert parse_int_payload(LineEntry("<!-- Map -->", "twelve")) is None
        assert "non-numeric" in caplog.text


class TestIgnoreFile:
    def test_parse(self):
        blocks = parse_ignore("<!-- File: Map1 -->\nHello\nLine\\#two\n<!-- File: items -->\nPotion")
        assert blocks == {"Map1": ["Hello", "Line\ntwo"], "items": ["Potion"]}

    def test_entries_before_header_dropped(self):
        assert parse_ignore("stray\n<!-- File: system -->\nFight") == {"system": ["Fight"]}

    def test_append_keeps_entries_unique(self, tmp_path):
        path = tmp_path / ".rvpacker-ignore"
        append_ignore(path, "items", ["Potion", "Ether"])
        append_ignore(path, "items", ["Ether", "Elixir"])
        append_ignore(path, "Map2", ["Hi"])
        assert load_ignore(path) == {"items": ["Potion", "Ether", "Elixir"], "Map2": ["Hi"]}

    def test_missing_file(self, tmp_path):
        assert load_ignore(tmp_path / "none") == {}


class TestStat:
    def test_appends_blocks(self, tmp_path):
        path = tmp_path / "stat.txt"
        append_stat(path, "items.txt", [LineEntry("Potion", "Poción")])
        append_stat(path, "maps.txt", [LineEntry("Old\nline")])
        text = path.read_text(encoding="utf-8")
        assert text == (
            "<!-- items.txt --><#>\nPotion<#>Poción\n"
            "<!-- maps.txt --><#>\nOld\\#line<#>\n"
        )
