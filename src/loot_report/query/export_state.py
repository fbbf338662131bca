"""Export resolved game data for the presentation layer."""

from __future__ import annotations

from typing import Any

from loot_report.engine.resolution import GameSnapshot, ResolvedPluginView
from loot_report.models.metadata import (
    Message,
    PluginMetadata,
    Tag,
    sorted_dirty_info,
    sorted_references,
    sorted_tags,
)
from loot_report.models.priority import encode_priority
from loot_report.parser.metadata_document import (
    dirty_info_to_document,
    message_to_document,
    reference_to_document,
    tag_to_document,
)


def _message_payload(message: Message) -> dict[str, Any]:
    return {"type": message.severity, "content": message.text}


def _tag_payload(tag: Tag) -> dict[str, Any]:
    return {"name": tag.name, "isAddition": bool(tag.is_addition)}


def _layer_payload(metadata: PluginMetadata, *, include_enabled: bool) -> dict[str, Any]:
    """Raw layer data for the metadata editor, conditions included."""
    priority = encode_priority(metadata.priority)
    payload: dict[str, Any] = {}
    if include_enabled:
        payload["enabled"] = bool(metadata.enabled)
    payload.update({
        "modPriority": int(priority.normalized),
        "isGlobalPriority": bool(priority.is_global),
        "after": [reference_to_document(r) for r in sorted_references(metadata.load_after)],
        "req": [reference_to_document(r) for r in sorted_references(metadata.requirements)],
        "inc": [reference_to_document(r) for r in sorted_references(metadata.incompatibilities)],
        "msg": [message_to_document(m) for m in metadata.messages],
        "tag": [tag_to_document(t) for t in sorted_tags(metadata.tags)],
        "dirty": [dirty_info_to_document(d) for d in sorted_dirty_info(metadata.dirty_info)],
    })
    return payload


def plugin_payload(view: ResolvedPluginView) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": view.name,
        "isActive": bool(view.is_active),
        "loadsBSA": bool(view.loads_bsa),
        "crc": f"{view.crc:08X}",
        "version": view.version,
    }
    if view.masterlist is not None:
        payload["masterlist"] = _layer_payload(view.masterlist, include_enabled=False)
    if view.userlist is not None:
        payload["userlist"] = _layer_payload(view.userlist, include_enabled=True)
    payload.update({
        "modPriority": int(view.priority.normalized),
        "isGlobalPriority": bool(view.priority.is_global),
        "messages": [_message_payload(m) for m in view.messages],
        "tags": [_tag_payload(t) for t in view.tags],
        "isDirty": bool(view.is_dirty),
    })
    return payload


def build_game_state(snapshot: GameSnapshot) -> dict[str, Any]:
    """Build the JSON-ready game document from a resolved snapshot."""
    return {
        "folder": snapshot.folder,
        "masterlist": {
            "revision": snapshot.masterlist_revision,
            "date": snapshot.masterlist_date,
        },
        "language": snapshot.language,
        "plugins": [plugin_payload(view) for view in snapshot.plugins],
        "globalMessages": [_message_payload(m) for m in snapshot.global_messages],
    }
