"""Tests for the document facade and the marshal adapter."""

import json

import pytest
from rubymarshal.classes import RubyObject, Symbol

from rvtext.core import marshal
from rvtext.core.constants import EngineType
from rvtext.core.document import (
    is_blob,
    load_document,
    load_path,
    make_blob,
    same_form,
    save_document,
    value_text,
)
from rvtext.core.errors import DocumentError


class TestJsonDocuments:
    def test_load_strips_bom(self):
        data = "﻿[null, {\"name\": \"Potion\"}]".encode()
        assert load_document(data, EngineType.new) == [None, {"name": "Potion"}]

    def test_invalid_json_raises(self):
        with pytest.raises(DocumentError, match="Invalid JSON"):
            load_document(b"{oops", EngineType.new)

    def test_save_is_compact_utf8(self):
        data = save_document({"name": "Poción", "id": 1}, EngineType.new)
        assert data == '{"name":"Poción","id":1}'.encode()

    def test_load_path_names_the_file(self, tmp_path):
        path = tmp_path / "Items.json"
        path.write_text("nope", encoding="utf-8")
        with pytest.raises(DocumentError, match="Items.json"):
            load_path(path, EngineType.new)

    def test_save_roundtrip(self):
        document = [None, {"name": "Potion", "note": "<tag>\nline"}]
        data = save_document(document, EngineType.new)
        assert json.loads(data) == document


class TestMarshalDocuments:
    def test_object_becomes_symbol_keyed_dict(self):
        obj = RubyObject("RPG::Map", attributes={"@display_name": "Town", "@width": 17})
        doc = marshal.to_document(obj)
        assert doc == {"__class__": "RPG::Map", "__symbol__display_name": "Town", "__symbol__width": 17}

    def test_hash_keys(self):
        doc = marshal.to_document({1: "a", Symbol("skills"): "b"})
        assert doc == {"__integer__1": "a", "__symbol__skills": "b"}

    def test_bytes_become_blob(self):
        doc = marshal.to_document(b"Hi")
        assert is_blob(doc)
        assert value_text(doc) == "Hi"

    def test_from_document_restores_types(self):
        obj = marshal.from_document({
            "__class__": "RPG::Event",
            "__symbol__name": "EV001",
            "__symbol__pages": [{"__integer__1": b"x"}],
        })
        assert isinstance(obj, RubyObject)
        assert obj.ruby_class_name == "RPG::Event"
        assert obj.attributes["@name"] == "EV001"
        assert obj.attributes["@pages"] == [{1: b"x"}]

    def test_blob_restored_to_bytes(self):
        assert marshal.from_document(make_blob("Hi")) == b"Hi"

    def test_invalid_stream_raises(self):
        with pytest.raises(DocumentError, match="Invalid marshal"):
            marshal.loads(b"\x00\x00garbage")

    def test_legacy_roundtrip(self):
        document = {
            "__class__": "RPG::Map",
            "__symbol__display_name": "Town",
            "__symbol__events": {
                "__integer__1": {"__class__": "RPG::Event", "__symbol__name": "EV001"},
            },
        }
        data = save_document(document, EngineType.vxace)
        assert load_document(data, EngineType.vxace) == document


class TestValues:
    def test_value_text(self):
        assert value_text("Hi") == "Hi"
        assert value_text(make_blob("Hé")) == "Hé"
        assert value_text(3) is None
        assert value_text(None) is None

    def test_same_form_keeps_blob(self):
        assert is_blob(same_form(make_blob("Hi"), "Salut"))
        assert value_text(same_form(make_blob("Hi"), "Salut")) == "Salut"

    def test_same_form_keeps_string(self):
        assert same_form("Hi", "Salut") == "Salut"
