"""Tests for building a GameSession from a synthetic Data directory."""

import os

import pytest

from conftest import build_plugin
from loot_report.engine.resolution import resolve_game
from loot_report.query.runtime import QueryRuntime
from loot_report.session.bootstrap import (
    bootstrap_session,
    read_active_plugins,
    read_load_order,
    timestamp_load_order,
)
from loot_report.session.settings import LootSettings


MASTERLIST = """
revision: r42
plugins:
  - name: Mod.esp
    req: [Missing.esm]
    dirty: [{util: FNVEdit, udr: 4}]
"""


@pytest.fixture
def data_dir(tmp_path):
    data = tmp_path / "Data"
    data.mkdir()
    (data / "Base.esm").write_bytes(build_plugin([0x100, 0x101], is_master=True))
    (data / "Mod.esp").write_bytes(
        build_plugin([0x101, 0x0100_0800], masters=["Base.esm"], description="Version: 1.2 {{BASH:Delev}}")
    )
    (data / "Other.esp").write_bytes(build_plugin([0x0200_0001]))
    (data / "Mod - Main.bsa").write_bytes(b"")
    (data / "readme.txt").write_text("not a plugin", encoding="utf-8")
    return data


def test_read_load_order(tmp_path):
    path = tmp_path / "loadorder.txt"
    path.write_text("# comment\nBase.esm\n*Mod.esp\n\nOther.esp\n", encoding="utf-8")
    assert read_load_order(path) == ["Base.esm", "Mod.esp", "Other.esp"]


def test_read_active_plugins_starred(tmp_path):
    path = tmp_path / "plugins.txt"
    path.write_text("*Base.esm\nMod.esp\n*Other.esp\n", encoding="utf-8")
    assert read_active_plugins(path) == {"base.esm", "other.esp"}


def test_read_active_plugins_plain(tmp_path):
    path = tmp_path / "plugins.txt"
    path.write_text("Base.esm\nMod.esp\n", encoding="utf-8")
    assert read_active_plugins(path) == {"base.esm", "mod.esp"}


def test_timestamp_load_order_by_mtime(data_dir):
    os.utime(data_dir / "Other.esp", (1000, 1000))
    os.utime(data_dir / "Mod.esp", (2000, 2000))
    os.utime(data_dir / "Base.esm", (3000, 3000))
    assert timestamp_load_order(data_dir) == ["Other.esp", "Mod.esp", "Base.esm"]


def test_timestamp_session_puts_master_flagged_plugins_first(data_dir):
    (data_dir / "Flagged.esp").write_bytes(build_plugin(is_master=True))
    os.utime(data_dir / "Other.esp", (1000, 1000))
    os.utime(data_dir / "Mod.esp", (2000, 2000))
    os.utime(data_dir / "Base.esm", (3000, 3000))
    os.utime(data_dir / "Flagged.esp", (4000, 4000))

    session = bootstrap_session(LootSettings(game_path=data_dir))

    assert [p.name for p in session.plugins] == ["Base.esm", "Flagged.esp", "Other.esp", "Mod.esp"]


def test_bootstrap_requires_game_path():
    with pytest.raises(ValueError):
        bootstrap_session(LootSettings())


def test_bootstrap_missing_directory(tmp_path):
    with pytest.raises(FileNotFoundError):
        bootstrap_session(LootSettings(game_path=tmp_path / "nope"))


def test_bootstrap_and_resolve(data_dir, tmp_path):
    load_order = tmp_path / "loadorder.txt"
    load_order.write_text("Base.esm\nMod.esp\nMissing.esp\nOther.esp\n", encoding="utf-8")
    plugins_txt = tmp_path / "plugins.txt"
    plugins_txt.write_text("Base.esm\nMod.esp\n", encoding="utf-8")
    masterlist = tmp_path / "masterlist.yaml"
    masterlist.write_text(MASTERLIST, encoding="utf-8")

    session = bootstrap_session(LootSettings(
        game_path=data_dir,
        load_order_path=load_order,
        active_plugins_path=plugins_txt,
        masterlist_path=masterlist,
        userlist_path=tmp_path / "userlist.yaml",
    ))

    assert [p.name for p in session.plugins] == ["Base.esm", "Mod.esp", "Other.esp"]
    assert session.plugins[0].is_master is True
    assert session.is_active("mod.esp") and not session.is_active("Other.esp")

    snapshot = resolve_game(session)
    mod = snapshot.plugins[1]
    assert snapshot.masterlist_revision == "r42"
    assert mod.version == "1.2"
    assert mod.loads_bsa is True
    assert [t.name for t in mod.tags] == ["Delev"]
    assert mod.is_dirty is True
    assert [m.severity for m in mod.messages] == ["error", "warn"]
    assert snapshot.plugins[2].loads_bsa is False


def test_bootstrap_conflicts_from_disk(data_dir):
    runtime = QueryRuntime(bootstrap_session(LootSettings(game_path=data_dir)))

    assert runtime.conflicting_plugins("Mod.esp") == ["Base.esm"]
    assert runtime.conflicting_plugins("Base.esm") == ["Mod.esp"]
    assert runtime.conflicting_plugins("Other.esp") == []
