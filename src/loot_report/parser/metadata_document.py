"""Convert masterlist/userlist YAML documents to and from metadata models.

Document layout:

    globals:
      - type: say
        content: 'Text'            # or a list of {text, lang}
        condition: 'file("x.esp")'
    plugins:
      - name: 'a.esp'
        priority: 10
        enabled: false
        after: ['b.esp', {name: 'c.esp', display: 'C', condition: '...'}]
        req: [...]
        inc: [...]
        msg: [...]
        tag: ['Delev', '-Relev', {name: 'Names', condition: '...'}]
        dirty: [{crc: 0x1234ABCD, util: 'FO3Edit', itm: 2, udr: 1, nav: 0}]

Only the shape is checked here. Conditions are kept as opaque strings.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml

from loot_report.models.metadata import (
    DirtyInfo,
    Message,
    MessageContent,
    MetadataList,
    PluginMetadata,
    PluginReference,
    Tag,
    sorted_dirty_info,
    sorted_references,
    sorted_tags,
)


_SEVERITIES = ("say", "warn", "error")


class MetadataDocumentError(ValueError):
    """A masterlist or userlist document has an unexpected shape."""


def _require_mapping(node: Any, what: str) -> dict:
    if not isinstance(node, dict):
        raise MetadataDocumentError(f"{what} must be a mapping, got {type(node).__name__}")
    return node


def _list_of(node: Any, what: str) -> list:
    if node is None:
        return []
    if not isinstance(node, list):
        raise MetadataDocumentError(f"{what} must be a list, got {type(node).__name__}")
    return node


def _flag(node: Any, what: str) -> bool:
    if not isinstance(node, bool):
        raise MetadataDocumentError(f"{what} must be true or false, got {node!r}")
    return node


def parse_message(node: Any) -> Message:
    node = _require_mapping(node, "message")
    severity = str(node.get("type", "say")).lower()
    if severity not in _SEVERITIES:
        raise MetadataDocumentError(f"Unknown message type: {severity!r}")
    raw_content = node.get("content", "")
    if isinstance(raw_content, str):
        content = (MessageContent(raw_content),)
    else:
        entries = []
        for entry in _list_of(raw_content, "message content"):
            entry = _require_mapping(entry, "message content")
            entries.append(MessageContent(
                text=str(entry.get("text", entry.get("str", ""))),
                language=str(entry.get("lang", "en")),
            ))
        content = tuple(entries)
    return Message(severity, content, str(node.get("condition", "")))  # type: ignore[arg-type]


def parse_reference(node: Any) -> PluginReference:
    if isinstance(node, str):
        return PluginReference(name=node)
    node = _require_mapping(node, "file reference")
    if "name" not in node:
        raise MetadataDocumentError("file reference has no name")
    return PluginReference(
        name=str(node["name"]),
        display=str(node.get("display", "")),
        condition=str(node.get("condition", "")),
    )


def parse_tag(node: Any) -> Tag:
    condition = ""
    if isinstance(node, dict):
        if "name" not in node:
            raise MetadataDocumentError("tag has no name")
        condition = str(node.get("condition", ""))
        raw = str(node["name"])
    else:
        raw = str(node)
    if raw.startswith("-"):
        return Tag(name=raw[1:], is_addition=False, condition=condition)
    return Tag(name=raw, condition=condition)


def parse_dirty_info(node: Any) -> DirtyInfo:
    node = _require_mapping(node, "dirty info")
    if "util" not in node:
        raise MetadataDocumentError("dirty info has no cleaning utility")
    crc = node.get("crc")
    return DirtyInfo(
        cleaning_tool=str(node["util"]),
        itm_count=int(node.get("itm", 0)),
        udr_count=int(node.get("udr", 0)),
        deleted_navmesh_count=int(node.get("nav", 0)),
        crc=int(crc) if crc is not None else None,
        condition=str(node.get("condition", "")),
    )


def parse_plugin(node: Any) -> PluginMetadata:
    node = _require_mapping(node, "plugin entry")
    if "name" not in node:
        raise MetadataDocumentError("plugin entry has no name")
    return PluginMetadata(
        name=str(node["name"]),
        priority=int(node.get("priority", 0)),
        enabled=_flag(node.get("enabled", True), "enabled"),
        tags={parse_tag(n) for n in _list_of(node.get("tag"), "tag")},
        load_after={parse_reference(n) for n in _list_of(node.get("after"), "after")},
        requirements={parse_reference(n) for n in _list_of(node.get("req"), "req")},
        incompatibilities={parse_reference(n) for n in _list_of(node.get("inc"), "inc")},
        messages=[parse_message(n) for n in _list_of(node.get("msg"), "msg")],
        dirty_info={parse_dirty_info(n) for n in _list_of(node.get("dirty"), "dirty")},
    )


def parse_metadata_list(
    document: Any,
    *,
    revision: str = "Unknown",
    date: str = "Unknown",
) -> MetadataList:
    """Build a MetadataList from an already-loaded YAML document."""
    if document is None:
        return MetadataList(revision=revision, date=date)
    document = _require_mapping(document, "metadata document")
    return MetadataList.from_entries(
        (parse_plugin(n) for n in _list_of(document.get("plugins"), "plugins")),
        (parse_message(n) for n in _list_of(document.get("globals"), "globals")),
        revision=str(document.get("revision", revision)),
        date=str(document.get("date", date)),
    )


def load_metadata_list(path: Path) -> MetadataList:
    """Load a masterlist or userlist file. A missing file is an empty list."""
    if not path.exists():
        return MetadataList()
    try:
        document = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise MetadataDocumentError(f"Failed to parse {path}: {exc}") from exc
    return parse_metadata_list(document)


# Documents -----------------------------------------------------------------

def message_to_document(message: Message) -> dict[str, Any]:
    doc: dict[str, Any] = {"type": message.severity}
    if len(message.content) == 1:
        doc["content"] = message.content[0].text
    else:
        doc["content"] = [{"text": c.text, "lang": c.language} for c in message.content]
    if message.condition:
        doc["condition"] = message.condition
    return doc


def reference_to_document(ref: PluginReference) -> str | dict[str, str]:
    if not ref.display and not ref.condition:
        return ref.name
    doc = {"name": ref.name}
    if ref.display:
        doc["display"] = ref.display
    if ref.condition:
        doc["condition"] = ref.condition
    return doc


def tag_to_document(tag: Tag) -> str | dict[str, str]:
    if not tag.condition:
        return tag.display_name
    return {"name": tag.display_name, "condition": tag.condition}


def dirty_info_to_document(info: DirtyInfo) -> dict[str, Any]:
    doc: dict[str, Any] = {}
    if info.crc is not None:
        doc["crc"] = info.crc
    doc["util"] = info.cleaning_tool
    if info.itm_count:
        doc["itm"] = info.itm_count
    if info.udr_count:
        doc["udr"] = info.udr_count
    if info.deleted_navmesh_count:
        doc["nav"] = info.deleted_navmesh_count
    if info.condition:
        doc["condition"] = info.condition
    return doc


def _references(refs: Iterable[PluginReference]) -> list:
    return [reference_to_document(r) for r in sorted_references(refs)]


def plugin_to_document(metadata: PluginMetadata) -> dict[str, Any]:
    """Inverse of parse_plugin. Default-valued fields are left out."""
    doc: dict[str, Any] = {"name": metadata.name}
    if metadata.priority:
        doc["priority"] = metadata.priority
    if not metadata.enabled:
        doc["enabled"] = False
    if metadata.load_after:
        doc["after"] = _references(metadata.load_after)
    if metadata.requirements:
        doc["req"] = _references(metadata.requirements)
    if metadata.incompatibilities:
        doc["inc"] = _references(metadata.incompatibilities)
    if metadata.messages:
        doc["msg"] = [message_to_document(m) for m in metadata.messages]
    if metadata.tags:
        doc["tag"] = [tag_to_document(t) for t in sorted_tags(metadata.tags)]
    if metadata.dirty_info:
        doc["dirty"] = [dirty_info_to_document(d) for d in sorted_dirty_info(metadata.dirty_info)]
    return doc


def dump_plugin_yaml(metadata: PluginMetadata) -> str:
    """Render a plugin's metadata as YAML text for sharing."""
    return yaml.safe_dump(
        plugin_to_document(metadata),
        indent=2,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
    )
