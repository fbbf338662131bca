"""Bootstrap helpers for building a GameSession from files on disk."""

from __future__ import annotations

import logging
from pathlib import Path

from loot_report.engine.conflicts import FormIdCache
from loot_report.models.plugin import InstalledPlugin
from loot_report.parser.metadata_document import load_metadata_list
from loot_report.parser.plugin_header import PLUGIN_SUFFIXES, read_installed_plugins
from loot_report.parser.record_reader import read_form_ids
from loot_report.session.game_session import GameSession
from loot_report.session.settings import LootSettings


LOGGER = logging.getLogger("loot_report.session.bootstrap")


def _read_lines(path: Path) -> list[str]:
    lines: list[str] = []
    for raw in path.read_text(encoding="utf-8", errors="replace").splitlines():
        line = raw.strip()
        if line and not line.startswith("#"):
            lines.append(line)
    return lines


def read_load_order(path: Path) -> list[str]:
    """Read a load order file: one plugin name per line, '*' prefixes ignored."""
    return [line.lstrip("*") for line in _read_lines(path)]


def read_active_plugins(path: Path) -> set[str]:
    """Read a plugins.txt file into lower-cased active plugin names.

    If any line is '*'-prefixed only those are active; otherwise every
    listed plugin is.
    """
    lines = _read_lines(path)
    if any(line.startswith("*") for line in lines):
        return {line[1:].lower() for line in lines if line.startswith("*")}
    return {line.lower() for line in lines}


def timestamp_load_order(data_dir: Path) -> list[str]:
    """Plugin file names in modification time order.

    Masters are moved ahead of non-masters once headers have been read, see
    masters_first().
    """
    paths = [p for p in data_dir.iterdir() if p.suffix.lower() in PLUGIN_SUFFIXES and p.is_file()]
    paths.sort(key=lambda p: (p.stat().st_mtime, p.name.lower()))
    return [p.name for p in paths]


def masters_first(plugins: list[InstalledPlugin]) -> list[InstalledPlugin]:
    """Stable reorder putting master-flagged plugins first.

    The header flag decides, not the file extension, so an ESM-flagged .esp
    loads with the masters.
    """
    return sorted(plugins, key=lambda p: not p.is_master)


def form_id_loader(data_dir: Path):
    def _load(name: str) -> frozenset[int]:
        try:
            return read_form_ids((data_dir / name).read_bytes())
        except (OSError, ValueError) as exc:
            LOGGER.warning("Failed to read FormIDs from %s: %s", name, exc)
            return frozenset()

    return _load


def bootstrap_session(settings: LootSettings) -> GameSession:
    """Read installed plugins and both metadata layers into a GameSession.

    Raises:
        ValueError: If no game path is configured.
        FileNotFoundError: If the game path does not exist.
    """
    if settings.game_path is None:
        raise ValueError("No game path configured. Set game_path or LOOT_GAME_PATH.")
    data_dir = settings.game_path
    if not data_dir.is_dir():
        raise FileNotFoundError(f"Game data directory not found: {data_dir}")

    if settings.load_order_path is not None and settings.load_order_path.exists():
        load_order = read_load_order(settings.load_order_path)
    else:
        load_order = None

    plugins = read_installed_plugins(
        data_dir,
        load_order if load_order is not None else timestamp_load_order(data_dir),
        prefix_bsa_match=settings.prefix_bsa_match,
    )
    if load_order is None:
        plugins = masters_first(plugins)

    if settings.active_plugins_path is not None and settings.active_plugins_path.exists():
        active = read_active_plugins(settings.active_plugins_path)
    else:
        active = set()

    masterlist = load_metadata_list(settings.masterlist_path) if settings.masterlist_path else None
    userlist = load_metadata_list(settings.userlist_path) if settings.userlist_path else None
    LOGGER.info(
        "Loaded %d plugins (%d active) for %s",
        len(plugins),
        len(active),
        settings.game_folder,
    )

    session = GameSession(
        folder=settings.game_folder,
        plugins=plugins,
        active=active,
        language=settings.language,
        form_ids=FormIdCache(form_id_loader(data_dir)),
    )
    if masterlist is not None:
        session.masterlist = masterlist
    if userlist is not None:
        session.userlist = userlist
    return session
