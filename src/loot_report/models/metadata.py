"""Plugin metadata data model and layered merge.

Masterlist and userlist entries are both PluginMetadata. Layers are merged
onto a base in precedence order (masterlist, then userlist): scalar fields
take the later layer's value only when it is non-default, set fields union
and messages concatenate.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Literal


Severity = Literal["say", "warn", "error"]

DEFAULT_LANGUAGE = "en"


@dataclass(frozen=True, slots=True)
class MessageContent:
    """One localisation of a message's text."""
    text: str
    language: str = DEFAULT_LANGUAGE


@dataclass(frozen=True, slots=True)
class Message:
    severity: Severity
    content: tuple[MessageContent, ...]
    condition: str = ""

    @classmethod
    def plain(cls, severity: Severity, text: str, condition: str = "") -> "Message":
        return cls(severity, (MessageContent(text),), condition)

    @property
    def text(self) -> str:
        return self.content[0].text if self.content else ""

    def choose_content(self, language: str | None) -> MessageContent | None:
        """Pick the localisation for *language*.

        A single localisation is always used. Otherwise an exact language
        match wins, then English, then the first entry.
        """
        if not self.content:
            return None
        if len(self.content) == 1 or language is None:
            return self.content[0]
        for entry in self.content:
            if entry.language == language:
                return entry
        for entry in self.content:
            if entry.language == DEFAULT_LANGUAGE:
                return entry
        return self.content[0]


@dataclass(frozen=True, slots=True)
class Tag:
    """A Bash Tag suggestion. is_addition=False suggests removing the tag."""
    name: str
    is_addition: bool = True
    condition: str = ""

    @property
    def display_name(self) -> str:
        return self.name if self.is_addition else f"-{self.name}"


@dataclass(frozen=True, slots=True)
class PluginReference:
    """Weak, by-name reference to another plugin (load after/req/inc)."""
    name: str
    display: str = ""
    condition: str = ""

    @property
    def display_name(self) -> str:
        return self.display or self.name


@dataclass(frozen=True, slots=True)
class DirtyInfo:
    """Counts of known defects in one revision of a plugin.

    crc pins the record to a specific plugin checksum; None applies to any.
    """
    cleaning_tool: str
    itm_count: int = 0
    udr_count: int = 0
    deleted_navmesh_count: int = 0
    crc: int | None = None
    condition: str = ""

    def sort_key(self) -> tuple:
        return (
            self.cleaning_tool.lower(),
            self.itm_count,
            self.udr_count,
            self.deleted_navmesh_count,
            self.crc if self.crc is not None else -1,
            self.condition,
        )


def sorted_dirty_info(records: Iterable[DirtyInfo]) -> list[DirtyInfo]:
    return sorted(records, key=DirtyInfo.sort_key)


def sorted_tags(tags: Iterable[Tag]) -> list[Tag]:
    return sorted(tags, key=lambda t: (t.name.lower(), not t.is_addition, t.condition))


def sorted_references(refs: Iterable[PluginReference]) -> list[PluginReference]:
    return sorted(refs, key=lambda r: (r.name.lower(), r.display, r.condition))


@dataclass(slots=True)
class PluginMetadata:
    """Metadata for one plugin, as found in one layer or after merging."""
    name: str
    priority: int = 0
    enabled: bool = True
    tags: set[Tag] = field(default_factory=set)
    load_after: set[PluginReference] = field(default_factory=set)
    requirements: set[PluginReference] = field(default_factory=set)
    incompatibilities: set[PluginReference] = field(default_factory=set)
    messages: list[Message] = field(default_factory=list)
    dirty_info: set[DirtyInfo] = field(default_factory=set)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PluginMetadata):
            return NotImplemented
        return (
            self.name.lower() == other.name.lower()
            and self.priority == other.priority
            and self.enabled == other.enabled
            and self.tags == other.tags
            and self.load_after == other.load_after
            and self.requirements == other.requirements
            and self.incompatibilities == other.incompatibilities
            and self.messages == other.messages
            and self.dirty_info == other.dirty_info
        )

    def has_name_only(self) -> bool:
        return (
            self.priority == 0
            and self.enabled
            and not self.tags
            and not self.load_after
            and not self.requirements
            and not self.incompatibilities
            and not self.messages
            and not self.dirty_info
        )

    def copy(self) -> "PluginMetadata":
        return PluginMetadata(
            name=self.name,
            priority=self.priority,
            enabled=self.enabled,
            tags=set(self.tags),
            load_after=set(self.load_after),
            requirements=set(self.requirements),
            incompatibilities=set(self.incompatibilities),
            messages=list(self.messages),
            dirty_info=set(self.dirty_info),
        )

    def merge_metadata(self, other: "PluginMetadata") -> None:
        """Overlay *other* onto this record in place.

        Not commutative: apply the masterlist before the userlist. Repeating
        a merge duplicates messages, since they concatenate.
        """
        if other.priority != 0:
            self.priority = other.priority
        if not other.enabled:
            self.enabled = False
        self.tags |= other.tags
        self.load_after |= other.load_after
        self.requirements |= other.requirements
        self.incompatibilities |= other.incompatibilities
        self.messages.extend(other.messages)
        self.dirty_info |= other.dirty_info


def merge_layers(base: PluginMetadata, layers: Iterable[PluginMetadata]) -> PluginMetadata:
    """Return a new record with *layers* applied to *base* in order.

    Pass layers lowest precedence first, e.g. [masterlist, userlist].
    """
    merged = base.copy()
    for layer in layers:
        merged.merge_metadata(layer)
    return merged


@dataclass(slots=True)
class MetadataList:
    """A masterlist or userlist held in memory.

    Plugin entries are keyed by lower-cased name. Global messages are not
    tied to any plugin.
    """
    plugins: dict[str, PluginMetadata] = field(default_factory=dict)
    messages: list[Message] = field(default_factory=list)
    revision: str = "Unknown"
    date: str = "Unknown"

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[PluginMetadata],
        messages: Iterable[Message] = (),
        *,
        revision: str = "Unknown",
        date: str = "Unknown",
    ) -> "MetadataList":
        metadata_list = cls(messages=list(messages), revision=revision, date=date)
        for entry in entries:
            metadata_list.add_plugin(entry)
        return metadata_list

    def add_plugin(self, metadata: PluginMetadata) -> None:
        """Add an entry, merging onto any existing entry of the same name."""
        key = metadata.name.lower()
        existing = self.plugins.get(key)
        if existing is None:
            self.plugins[key] = metadata
        else:
            existing.merge_metadata(metadata)

    def find_plugin(self, name: str) -> PluginMetadata:
        """Return a copy of the entry for *name*, or a name-only record."""
        entry = self.plugins.get(name.lower())
        if entry is None:
            return PluginMetadata(name=name)
        return entry.copy()

    def erase_plugin(self, name: str) -> bool:
        return self.plugins.pop(name.lower(), None) is not None

    def clear(self) -> None:
        self.plugins.clear()
        self.messages.clear()

    def __len__(self) -> int:
        return len(self.plugins)
