"""End-to-end tests for directory-level read, write and purge runs."""

import json

import pytest

from rvtext.core.constants import EngineType, MapsProcessingMode, ProcessingMode
from rvtext.core.document import load_path, save_path
from rvtext.core.errors import MissingInputError
from rvtext.core.linefile import LineEntry, load_ignore, read_line_file, write_line_file
from rvtext.pipeline import (
    RunOptions,
    detect_engine,
    purge_game,
    read_game,
    resolve_paths,
    scan_file,
    write_game,
)
from rvtext.translation.extractor import parse_plugins
from rvtext.translation.purge import PurgeOptions
from tests.conftest import (
    load_json,
    make_command,
    make_game_dir,
    make_item,
    make_map,
    translate_file,
)

DISPLAY_TOWN = "<!-- In-game Displayed Name: Town -->"


def _units(result):
    return {u.unit: u.status for u in result.units}


def _originals(path):
    return [e.original for e in read_line_file(path)]


@pytest.fixture
def paths(game_dir):
    return resolve_paths(game_dir)


class TestPaths:
    def test_defaults(self, game_dir):
        paths = resolve_paths(game_dir)
        assert paths.data_dir == game_dir / "data"
        assert paths.translation_dir == game_dir / "translation"
        assert paths.output_data_dir == game_dir / "output" / "data"
        assert paths.plugins_file == game_dir / "js" / "plugins.js"

    def test_missing_game_dir(self, tmp_path):
        with pytest.raises(MissingInputError, match="not found"):
            resolve_paths(tmp_path / "nope")

    def test_missing_data_dir(self, tmp_path):
        with pytest.raises(MissingInputError, match="No data directory"):
            resolve_paths(tmp_path)

    def test_detect_engine(self, paths):
        assert detect_engine(paths.data_dir) == EngineType.new

    def test_detect_engine_without_system(self, tmp_path):
        with pytest.raises(MissingInputError):
            detect_engine(tmp_path)


class TestRead:
    def test_line_files(self, paths):
        result = read_game(paths, RunOptions())
        assert _units(result) == {
            "maps": "written", "items": "written", "system": "written", "plugins": "written",
        }
        assert result.error_count == 0

        maps = read_line_file(paths.translation_dir / "maps.txt")
        assert maps[:4] == [
            LineEntry("<!-- Map -->", "1"),
            LineEntry("<!-- Map Name: MAP001 -->", ""),
            LineEntry(DISPLAY_TOWN, ""),
            LineEntry("<!-- Order -->", "1"),
        ]
        assert [e.original for e in maps[4:]] == ["Hello\nworld", "Yes", "No", "You agreed.", "You refused."]

        assert _originals(paths.translation_dir / "items.txt") == ["Potion", "Restores 50 HP."]
        system = _originals(paths.translation_dir / "system.txt")
        assert system[0] == "Light Armor"
        assert system[-1] == "My Game"
        assert _originals(paths.translation_dir / "plugins.txt") == ["Shows a message", "Hello there"]

    def test_multiline_escaped_on_disk(self, paths):
        read_game(paths, RunOptions())
        text = (paths.translation_dir / "maps.txt").read_text(encoding="utf-8")
        assert "Hello\\#world<#>" in text

    def test_default_mode_skips_existing(self, paths):
        read_game(paths, RunOptions())
        result = read_game(paths, RunOptions())
        assert set(_units(result).values()) == {"skipped"}

    def test_force_discards_translations(self, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "items.txt", {"Potion": "Poción"})
        read_game(paths, RunOptions(processing_mode=ProcessingMode.force))
        assert read_line_file(paths.translation_dir / "items.txt")[0] == LineEntry("Potion", "")

    def test_append_keeps_translations(self, game_dir, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "items.txt", {"Potion": "Poción"})
        items = [None, make_item(1, "Potion", "Restores 50 HP."), make_item(2, "Ether")]
        (game_dir / "data" / "Items.json").write_text(json.dumps(items), encoding="utf-8")

        result = read_game(paths, RunOptions(processing_mode=ProcessingMode.append))
        assert read_line_file(paths.translation_dir / "items.txt") == [
            LineEntry("Potion", "Poción"), LineEntry("Restores 50 HP.", ""), LineEntry("Ether", ""),
        ]
        items_unit = next(u for u in result.units if u.unit == "items")
        assert items_unit.kept == 2
        assert items_unit.added == 1

    def test_append_without_file_fails_unit_only(self, paths):
        read_game(paths, RunOptions())
        (paths.translation_dir / "items.txt").unlink()
        result = read_game(paths, RunOptions(processing_mode=ProcessingMode.append))
        assert _units(result)["items"] == "error"
        assert _units(result)["maps"] == "written"
        assert result.errors[0][0] == "items"

    def test_append_keeps_title_last(self, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "system.txt", {"My Game": "Mon Jeu", "Fire": "Feu"})
        read_game(paths, RunOptions(processing_mode=ProcessingMode.append))
        system = read_line_file(paths.translation_dir / "system.txt")
        assert system[-1] == LineEntry("My Game", "Mon Jeu")
        assert LineEntry("Fire", "Feu") in system

    def test_progress_callback(self, paths):
        calls = []
        read_game(paths, RunOptions(), on_progress=lambda *args: calls.append(args))
        assert calls[-1][:3] == ("read", 4, 4)

    def test_broken_data_file_is_isolated(self, game_dir, paths):
        (game_dir / "data" / "Items.json").write_text("{broken", encoding="utf-8")
        result = read_game(paths, RunOptions())
        assert _units(result)["items"] == "error"
        assert "Items.json" in result.errors[0][1]
        assert _units(result)["system"] == "written"


class TestWrite:
    def test_round_trip(self, game_dir, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "maps.txt", {
            DISPLAY_TOWN: "Ville",
            "Hello\nworld": "Bonjour\nle\nmonde",
            "Yes": "Oui",
        })
        translate_file(paths.translation_dir / "items.txt", {"Potion": "Poción"})
        translate_file(paths.translation_dir / "system.txt", {"Fire": "Feu", "My Game": "Mon Jeu"})
        translate_file(paths.translation_dir / "plugins.txt", {"Hello there": "Salut"})

        result = write_game(paths, RunOptions())
        assert result.error_count == 0

        out = paths.output_data_dir
        map_doc = load_json(out / "Map001.json")
        commands = map_doc["events"][1]["pages"][0]["list"]
        assert map_doc["displayName"] == "Ville"
        assert commands[1]["parameters"] == ["Bonjour"]
        assert commands[2]["parameters"] == ["le\nmonde"]
        assert commands[3]["parameters"][0] == ["Oui", "No"]
        assert commands[4]["parameters"][1] == "Oui"

        assert load_json(out / "Items.json")[1]["name"] == "Poción"
        system = load_json(out / "System.json")
        assert system["elements"] == ["", "Feu"]
        assert system["gameTitle"] == "Mon Jeu"

        plugins = (game_dir / "output" / "js" / "plugins.js").read_text(encoding="utf-8")
        assert plugins.startswith("var $plugins =\n")
        assert parse_plugins(plugins)[0]["parameters"]["Text"] == "Salut"

    def test_untranslated_write_is_identity(self, game_dir, paths):
        read_game(paths, RunOptions())
        result = write_game(paths, RunOptions())
        assert _units(result)["items"] == "skipped"
        original = load_json(game_dir / "data" / "Map001.json")
        assert load_json(paths.output_data_dir / "Map001.json") == original
        assert not (paths.output_data_dir / "Items.json").exists()

    def test_missing_line_file(self, paths):
        result = write_game(paths, RunOptions())
        assert set(_units(result).values()) == {"error"}

    def test_output_is_compact_json(self, paths):
        read_game(paths, RunOptions())
        write_game(paths, RunOptions())
        text = (paths.output_data_dir / "System.json").read_text(encoding="utf-8")
        assert ", " not in text
        assert '"gameTitle":"My Game"' in text


class TestPreserveMode:
    @pytest.fixture
    def paths(self, tmp_path):
        game = make_game_dir(tmp_path / "game", maps={
            1: make_map([[make_command(401, ["Hi"]), make_command(0), make_command(401, ["Hi"])]]),
            2: make_map([[make_command(401, ["Hi"])]]),
        })
        return resolve_paths(game)

    def test_occurrences_translated_independently(self, paths):
        options = RunOptions(maps_processing_mode=MapsProcessingMode.preserve)
        read_game(paths, options)
        maps_file = paths.translation_dir / "maps.txt"
        entries = read_line_file(maps_file)
        hi = [e for e in entries if e.original == "Hi"]
        assert len(hi) == 3
        for entry, text in zip(hi, ["Salut", "Coucou", "Bonjour"]):
            entry.translation = text
        write_line_file(maps_file, entries)

        write_game(paths, options)
        first = load_json(paths.output_data_dir / "Map001.json")["events"][1]["pages"][0]["list"]
        second = load_json(paths.output_data_dir / "Map002.json")["events"][1]["pages"][0]["list"]
        assert first[0]["parameters"] == ["Salut"]
        assert first[2]["parameters"] == ["Coucou"]
        assert second[0]["parameters"] == ["Bonjour"]

    def test_separate_mode_keeps_per_map_duplicates(self, paths):
        read_game(paths, RunOptions(maps_processing_mode=MapsProcessingMode.separate))
        hi = [o for o in _originals(paths.translation_dir / "maps.txt") if o == "Hi"]
        assert len(hi) == 2


class TestPurge:
    def _remove_description(self, game_dir):
        items = [None, make_item(1, "Potion")]
        (game_dir / "data" / "Items.json").write_text(json.dumps(items), encoding="utf-8")

    def test_stale_lines_removed(self, game_dir, paths):
        read_game(paths, RunOptions())
        self._remove_description(game_dir)
        result = purge_game(paths, RunOptions(), PurgeOptions())
        assert _originals(paths.translation_dir / "items.txt") == ["Potion"]
        items_unit = next(u for u in result.units if u.unit == "items")
        assert items_unit.purged == 1

    def test_stat_reports_only(self, game_dir, paths):
        read_game(paths, RunOptions())
        self._remove_description(game_dir)
        result = purge_game(paths, RunOptions(), PurgeOptions(stat=True))
        assert _units(result)["items"] == "skipped"
        assert "Restores 50 HP." in _originals(paths.translation_dir / "items.txt")
        stat = paths.stat_file.read_text(encoding="utf-8")
        assert "<!-- items.txt --><#>" in stat
        assert "Restores 50 HP.<#>" in stat

    def test_create_ignore_then_read(self, game_dir, paths):
        read_game(paths, RunOptions())
        self._remove_description(game_dir)
        purge_game(paths, RunOptions(), PurgeOptions(create_ignore=True))
        assert load_ignore(paths.ignore_file) == {"items": ["Restores 50 HP."]}

        items = [None, make_item(1, "Potion", "Restores 50 HP.")]
        (game_dir / "data" / "Items.json").write_text(json.dumps(items), encoding="utf-8")
        read_game(paths, RunOptions(processing_mode=ProcessingMode.force, ignore=True))
        assert _originals(paths.translation_dir / "items.txt") == ["Potion"]

    def test_map_ignore_ids(self, game_dir, paths):
        read_game(paths, RunOptions())
        entries = read_line_file(paths.translation_dir / "maps.txt")
        entries.append(LineEntry("Removed line", "Ligne"))
        write_line_file(paths.translation_dir / "maps.txt", entries)
        purge_game(paths, RunOptions(), PurgeOptions(create_ignore=True))
        assert load_ignore(paths.ignore_file) == {"Map1": ["Removed line"]}

    def test_purge_empty(self, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "items.txt", {"Potion": "Poción"})
        purge_game(paths, RunOptions(), PurgeOptions(purge_empty=True))
        assert read_line_file(paths.translation_dir / "items.txt") == [LineEntry("Potion", "Poción")]

    def test_leave_filled(self, game_dir, paths):
        read_game(paths, RunOptions())
        translate_file(paths.translation_dir / "items.txt", {"Restores 50 HP.": "Cura 50 PV."})
        self._remove_description(game_dir)
        purge_game(paths, RunOptions(), PurgeOptions(leave_filled=True))
        assert "Restores 50 HP." in _originals(paths.translation_dir / "items.txt")


class TestLegacyEngine:
    def _vxace_game(self, tmp_path):
        data = tmp_path / "game" / "Data"
        data.mkdir(parents=True)
        items = [None, {
            "__class__": "RPG::Item",
            "__symbol__id": 1,
            "__symbol__name": "Potion",
            "__symbol__description": "Heals.",
            "__symbol__note": "",
        }]
        system = {
            "__class__": "RPG::System",
            "__symbol__elements": ["", "Ice"],
            "__symbol__game_title": "Old Game",
        }
        save_path(items, data / "Items.rvdata2", EngineType.vxace)
        save_path(system, data / "System.rvdata2", EngineType.vxace)

        return resolve_paths(tmp_path / "game")

    def test_vxace_read_write(self, tmp_path):
        paths = self._vxace_game(tmp_path)
        engine = detect_engine(paths.data_dir)
        assert engine == EngineType.vxace
        options = RunOptions(engine_type=engine)

        result = read_game(paths, options)
        assert _units(result) == {"items": "written", "system": "written"}
        assert _originals(paths.translation_dir / "items.txt") == ["Potion", "Heals."]
        assert _originals(paths.translation_dir / "system.txt") == ["Ice", "Old Game"]

        translate_file(paths.translation_dir / "items.txt", {"Potion": "Poción"})
        write_game(paths, options)
        written = load_path(paths.output_data_dir / "Items.rvdata2", EngineType.vxace)
        assert written[1]["__symbol__name"] == "Poción"
        assert written[1]["__class__"] == "RPG::Item"

    def test_generate_json(self, tmp_path):
        paths = self._vxace_game(tmp_path)
        result = read_game(paths, RunOptions(engine_type=EngineType.vxace, generate_json=True))
        assert _units(result)["json"] == "written"
        assert paths.json_dir == tmp_path / "game" / "json"
        items = json.loads((paths.json_dir / "Items.json").read_text(encoding="utf-8"))
        assert items[1]["__symbol__name"] == "Potion"
        system = json.loads((paths.json_dir / "System.json").read_text(encoding="utf-8"))
        assert system["__symbol__game_title"] == "Old Game"

    def test_generate_json_ignored_for_new_engine(self, paths):
        result = read_game(paths, RunOptions(generate_json=True))
        assert "json" not in _units(result)
        assert not paths.json_dir.exists()


class TestScan:
    def test_map(self, paths):
        lines = scan_file(paths.data_dir / "Map001.json")
        assert lines == ["Hello\nworld", "Yes", "No", "You agreed.", "You refused."]

    def test_system_includes_title(self, paths):
        assert scan_file(paths.data_dir / "System.json")[-1] == "My Game"

    def test_plugins(self, paths):
        assert scan_file(paths.plugins_file) == ["Shows a message", "Hello there"]

    def test_unknown_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("x", encoding="utf-8")
        with pytest.raises(MissingInputError, match="Unsupported"):
            scan_file(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(MissingInputError):
            scan_file(tmp_path / "Map001.json")
