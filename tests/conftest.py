"""Shared test fixtures for rvtext tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from rvtext.core.linefile import LineEntry, read_line_file, write_line_file


def make_command(code: int, parameters: list | None = None, indent: int = 0) -> dict:
    """Create an MV/MZ event command."""
    return {"code": code, "indent": indent, "parameters": parameters or []}


def make_dialogue(*lines: str) -> list[dict]:
    """Create a message: a 101 face header followed by one 401 per line."""
    return [make_command(101, ["", 0, 0, 2])] + [make_command(401, [line]) for line in lines]


def make_map(pages: list[list[dict]], display_name: str = "") -> dict:
    """Build a minimal MV map with one event holding *pages*.

    Every page list gets the terminating code 0 command.
    """
    event = {
        "id": 1,
        "name": "EV001",
        "pages": [{"list": commands + [make_command(0)]} for commands in pages],
    }
    return {"displayName": display_name, "events": [None, event]}


def make_map_infos(*maps: tuple[int, str, int]) -> list:
    """Build MapInfos from ``(id, name, order)`` tuples."""
    infos: list = [None] * (max((m[0] for m in maps), default=0) + 1)
    for map_id, name, order in maps:
        infos[map_id] = {"id": map_id, "name": name, "order": order, "parentId": 0}
    return infos


def make_item(item_id: int, name: str, description: str = "", note: str = "") -> dict:
    return {"id": item_id, "name": name, "description": description, "note": note, "iconIndex": 0}


def make_system(title: str = "My Game") -> dict:
    return {
        "gameTitle": title,
        "armorTypes": ["", "Light Armor"],
        "elements": ["", "Fire"],
        "skillTypes": ["", "Magic"],
        "weaponTypes": ["", "Sword"],
        "equipTypes": ["", "Weapon"],
        "terms": {
            "basic": ["Level", "Lv"],
            "commands": ["Fight", None],
            "params": ["Max HP"],
            "messages": {"actionFailure": "There was no effect on %1!"},
        },
    }


def make_plugins_js(plugins: list[dict]) -> str:
    return "var $plugins =\n" + json.dumps(plugins) + ";\n"


def make_game_dir(
    root: Path,
    maps: dict[int, dict] | None = None,
    others: dict[str, list] | None = None,
    system: dict | None = None,
    map_infos: list | None = None,
    plugins: list[dict] | None = None,
) -> Path:
    """Lay out an MV game directory (``data/`` and optional ``js/plugins.js``)."""
    data = root / "data"
    data.mkdir(parents=True, exist_ok=True)
    maps = maps or {}
    for number, document in maps.items():
        (data / f"Map{number:03d}.json").write_text(json.dumps(document), encoding="utf-8")
    if map_infos is None:
        map_infos = make_map_infos(*((n, f"MAP{n:03d}", n) for n in maps))
    (data / "MapInfos.json").write_text(json.dumps(map_infos), encoding="utf-8")
    for stem, document in (others or {}).items():
        (data / f"{stem}.json").write_text(json.dumps(document), encoding="utf-8")
    (data / "System.json").write_text(json.dumps(system or make_system()), encoding="utf-8")
    if plugins is not None:
        js = root / "js"
        js.mkdir(exist_ok=True)
        (js / "plugins.js").write_text(make_plugins_js(plugins), encoding="utf-8")
    return root


def translate_file(path: Path, translations: dict[str, str]) -> None:
    """Fill translations of a line file in place, keyed by original text."""
    entries = [
        LineEntry(e.original, translations.get(e.original, e.translation))
        for e in read_line_file(path)
    ]
    write_line_file(path, entries)


def load_json(path: Path):
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def sample_map() -> dict:
    """A map with one two-line message, a choice and a 402 branch."""
    return make_map([[
        *make_dialogue("Hello", "world"),
        make_command(102, [["Yes", "No"], 1, 0, 2, 0]),
        make_command(402, [0, "Yes"]),
        make_command(401, ["You agreed."]),
        make_command(402, [1, "No"]),
        make_command(401, ["You refused."]),
    ]], display_name="Town")


@pytest.fixture
def game_dir(tmp_path, sample_map) -> Path:
    """A small MV game: one map, one item file, System and plugins.js."""
    return make_game_dir(
        tmp_path / "game",
        maps={1: sample_map},
        others={"Items": [None, make_item(1, "Potion", "Restores 50 HP.")]},
        plugins=[{
            "name": "MessageHelper",
            "status": True,
            "description": "Shows a message",
            "parameters": {"Text": "Hello there", "Font": "Arial"},
        }],
    )
