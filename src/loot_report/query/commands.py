"""Typed query commands and request parsing.

Requests arrive either as a bare name for commands without arguments
("getGameData", "clearAllMetadata") or as a JSON object:

    {"name": "getConflictingPlugins", "args": ["Plugin.esp"]}
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class GetGameData:
    pass


@dataclass(frozen=True, slots=True)
class GetConflictingPlugins:
    plugin_name: str


@dataclass(frozen=True, slots=True)
class CopyMetadata:
    plugin_name: str


@dataclass(frozen=True, slots=True)
class ClearPluginMetadata:
    plugin_name: str


@dataclass(frozen=True, slots=True)
class ClearAllMetadata:
    pass


Command = Union[
    GetGameData,
    GetConflictingPlugins,
    CopyMetadata,
    ClearPluginMetadata,
    ClearAllMetadata,
]

_NO_ARGS: dict[str, type] = {
    "getGameData": GetGameData,
    "clearAllMetadata": ClearAllMetadata,
}

_PLUGIN_ARG: dict[str, type] = {
    "getConflictingPlugins": GetConflictingPlugins,
    "copyMetadata": CopyMetadata,
    "clearPluginMetadata": ClearPluginMetadata,
}


class RequestError(Exception):
    """A request could not be turned into a command."""

    def __init__(self, message: str, code: int = -1) -> None:
        super().__init__(message)
        self.code = code


def command_from_payload(payload: object) -> Command:
    if not isinstance(payload, dict):
        raise RequestError("Request must be a JSON object")
    name = payload.get("name")
    if not isinstance(name, str):
        raise RequestError("Request has no name")
    args = payload.get("args", [])
    if not isinstance(args, list):
        raise RequestError(f"Arguments for {name!r} must be a list")

    if name in _NO_ARGS:
        return _NO_ARGS[name]()
    if name in _PLUGIN_ARG:
        if not args or not isinstance(args[0], str):
            raise RequestError(f"{name!r} needs a plugin name argument")
        return _PLUGIN_ARG[name](args[0])
    raise RequestError(f"Unknown request: {name!r}")


def parse_request(raw: str) -> Command:
    """Parse a raw request string into a command.

    Raises:
        RequestError: If the request is malformed or names no known command.
    """
    text = raw.strip()
    if text in _NO_ARGS:
        return _NO_ARGS[text]()
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise RequestError(f"Failed to parse request {raw!r}: {exc}") from exc
    return command_from_payload(payload)
