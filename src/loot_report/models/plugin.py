"""Installed plugin data read from plugin file headers."""

from dataclasses import dataclass

from loot_report.models.metadata import PluginMetadata


@dataclass(slots=True)
class PluginHeader:
    """Fields of interest from a plugin's TES4 header record."""
    is_master: bool
    description: str = ""


@dataclass(slots=True)
class InstalledPlugin:
    """A plugin present in the game's data directory.

    metadata holds what the plugin says about itself (Bash Tags found in its
    description); layer metadata is merged onto a copy of it.
    """
    name: str
    crc: int
    version: str = ""
    is_master: bool = False
    loads_bsa: bool = False
    metadata: PluginMetadata | None = None

    def __post_init__(self) -> None:
        if self.metadata is None:
            self.metadata = PluginMetadata(name=self.name)

    @property
    def key(self) -> str:
        return self.name.lower()
