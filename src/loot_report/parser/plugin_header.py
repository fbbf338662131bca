"""Read installed plugin details from plugin files on disk.

The TES4 header gives the master flag and the description. The
description is where authors put a version string and Wrye Bash tags:

    Version: 1.2.3
    {{BASH:Delev,Relev}}
"""

from __future__ import annotations

import logging
import re
import zlib
from pathlib import Path

from loot_report.models.metadata import PluginMetadata, Tag
from loot_report.models.plugin import InstalledPlugin, PluginHeader
from loot_report.models.records import Record
from loot_report.parser.binary_reader import decode_zstring
from loot_report.parser.record_reader import read_header_record


LOGGER = logging.getLogger("loot_report.parser.plugin_header")

PLUGIN_SUFFIXES = (".esm", ".esp")

_VERSION_RE = re.compile(r"\bver(?:sion)?\b[:.]?\s*v?(\d[\w.\-]*)", re.IGNORECASE)
_BASH_TAGS_RE = re.compile(r"\{\{\s*BASH\s*:([^}]*)\}\}", re.IGNORECASE)


def parse_plugin_header(record: Record) -> PluginHeader:
    header = PluginHeader(is_master=record.header.is_master)
    for sub in record.subrecords:
        if sub.type == "SNAM":
            header.description = decode_zstring(sub.data)
    return header


def extract_version(description: str) -> str:
    """Return the first version string in a plugin description, or ''."""
    match = _VERSION_RE.search(description)
    if match is None:
        return ""
    return match.group(1).rstrip(".-")


def extract_bash_tags(description: str) -> set[Tag]:
    """Return the Bash Tags embedded in a plugin description."""
    tags: set[Tag] = set()
    for match in _BASH_TAGS_RE.finditer(description):
        for raw in match.group(1).split(","):
            name = raw.strip()
            if name:
                tags.add(Tag(name=name))
    return tags


def loads_bsa(plugin_path: Path, *, prefix_match: bool = True) -> bool:
    """True if an archive next to the plugin is loaded with it.

    Fallout 3/New Vegas and Oblivion load any BSA whose name starts with the
    plugin's basename; Skyrim needs an exact basename match.
    """
    stem = plugin_path.stem
    if (plugin_path.parent / f"{stem}.bsa").exists():
        return True
    if not prefix_match:
        return False
    stem_lower = stem.lower()
    return any(
        p.suffix.lower() == ".bsa" and p.stem.lower().startswith(stem_lower)
        for p in plugin_path.parent.iterdir()
    )


def read_installed_plugin(path: Path, *, prefix_bsa_match: bool = True) -> InstalledPlugin:
    """Read one plugin file into an InstalledPlugin.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file has no valid TES4 header.
    """
    data = path.read_bytes()
    header = parse_plugin_header(read_header_record(data))
    metadata = PluginMetadata(name=path.name, tags=extract_bash_tags(header.description))
    return InstalledPlugin(
        name=path.name,
        crc=zlib.crc32(data) & 0xFFFF_FFFF,
        version=extract_version(header.description),
        is_master=header.is_master,
        loads_bsa=loads_bsa(path, prefix_match=prefix_bsa_match),
        metadata=metadata,
    )


def read_installed_plugins(
    data_dir: Path,
    names: list[str],
    *,
    prefix_bsa_match: bool = True,
) -> list[InstalledPlugin]:
    """Read each named plugin that exists in *data_dir*, keeping order.

    Missing or unreadable plugins are skipped and logged.
    """
    plugins: list[InstalledPlugin] = []
    for name in names:
        path = data_dir / name
        if not path.is_file():
            LOGGER.debug("Plugin %s is in the load order but not installed", name)
            continue
        try:
            plugins.append(read_installed_plugin(path, prefix_bsa_match=prefix_bsa_match))
        except (OSError, ValueError) as exc:
            LOGGER.warning("Skipping unreadable plugin %s: %s", name, exc)
    return plugins
