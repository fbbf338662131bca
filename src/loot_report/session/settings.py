"""Settings for locating a game's plugins and metadata files.

Values come from an optional YAML settings file, then environment overrides:

    LOOT_GAME_FOLDER   folder id reported in game data (e.g. "FalloutNV")
    LOOT_GAME_PATH     the game's Data directory
    LOOT_LANGUAGE      message language code (e.g. "de")
    LOOT_MASTERLIST    masterlist YAML path
    LOOT_USERLIST      userlist YAML path
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

import yaml


_ENV_OVERRIDES = {
    "LOOT_GAME_FOLDER": "game_folder",
    "LOOT_GAME_PATH": "game_path",
    "LOOT_LANGUAGE": "language",
    "LOOT_MASTERLIST": "masterlist_path",
    "LOOT_USERLIST": "userlist_path",
}

_PATH_FIELDS = (
    "game_path",
    "masterlist_path",
    "userlist_path",
    "load_order_path",
    "active_plugins_path",
)


@dataclass(slots=True)
class LootSettings:
    game_folder: str = "FalloutNV"
    game_path: Path | None = None
    language: str | None = None
    masterlist_path: Path | None = None
    userlist_path: Path | None = None
    load_order_path: Path | None = None       # one plugin name per line
    active_plugins_path: Path | None = None   # plugins.txt
    prefix_bsa_match: bool = True


def _coerce(values: Mapping[str, object], base_dir: Path | None) -> LootSettings:
    settings = LootSettings()
    for key, raw in values.items():
        if raw is None or key not in LootSettings.__dataclass_fields__:
            continue
        if key in _PATH_FIELDS:
            path = Path(str(raw)).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            setattr(settings, key, path)
        elif key == "prefix_bsa_match":
            if not isinstance(raw, bool):
                raise ValueError(f"prefix_bsa_match must be true or false, got {raw!r}")
            settings.prefix_bsa_match = raw
        else:
            setattr(settings, key, str(raw))
    return settings


def load_settings(
    path: Path | None = None,
    *,
    environ: Mapping[str, str] | None = None,
) -> LootSettings:
    """Load settings from *path* (if given and present) plus environment overrides.

    Relative paths in the file resolve against the file's directory.

    Raises:
        ValueError: If the settings file is not a YAML mapping or a flag is not
            a boolean.
    """
    env = os.environ if environ is None else environ
    values: dict[str, object] = {}
    base_dir: Path | None = None
    if path is not None and path.exists():
        document = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(document, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        values.update(document)
        base_dir = path.parent

    settings = _coerce(values, base_dir)
    env_values = {field: env[var] for var, field in _ENV_OVERRIDES.items() if env.get(var)}
    if env_values:
        overrides = _coerce(env_values, None)
        for field in env_values:
            setattr(settings, field, getattr(overrides, field))
    return settings
