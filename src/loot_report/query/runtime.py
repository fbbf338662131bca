"""Command dispatch over a live game session."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from loot_report.engine.conflicts import find_conflicts
from loot_report.engine.resolution import resolve_game
from loot_report.models.metadata import merge_layers
from loot_report.parser.metadata_document import dump_plugin_yaml
from loot_report.query.commands import (
    ClearAllMetadata,
    ClearPluginMetadata,
    Command,
    CopyMetadata,
    GetConflictingPlugins,
    GetGameData,
    RequestError,
    command_from_payload,
    parse_request,
)
from loot_report.query.export_state import build_game_state
from loot_report.session.game_session import GameSession


LOGGER = logging.getLogger("loot_report.query.runtime")


@dataclass(slots=True)
class QueryResult:
    ok: bool
    payload: Any = None
    code: int = 0
    message: str | None = None

    @classmethod
    def failure(cls, message: str, code: int = -1) -> "QueryResult":
        return cls(ok=False, code=code, message=message)


class QueryRuntime:
    """Runs commands against one GameSession, one at a time."""

    def __init__(
        self,
        session: GameSession,
        *,
        clipboard: Callable[[str], None] | None = None,
    ) -> None:
        self.session = session
        self._clipboard = clipboard
        self._lock = threading.RLock()

    def handle(self, raw: str) -> QueryResult:
        """Parse and run a raw request string."""
        try:
            command = parse_request(raw)
        except RequestError as exc:
            LOGGER.error("Failed to parse query request %r: %s", raw, exc)
            return QueryResult.failure(str(exc), exc.code)
        return self.apply(command)

    def handle_payload(self, payload: object) -> QueryResult:
        try:
            command = command_from_payload(payload)
        except RequestError as exc:
            return QueryResult.failure(str(exc), exc.code)
        return self.apply(command)

    def apply(self, command: Command) -> QueryResult:
        try:
            return self._dispatch(command)
        except Exception as exc:
            LOGGER.exception("Query %r failed", command)
            return QueryResult.failure(str(exc) or type(exc).__name__)

    def _dispatch(self, command: Command) -> QueryResult:
        with self._lock:
            if isinstance(command, GetGameData):
                return QueryResult(ok=True, payload=self.game_data())
            if isinstance(command, GetConflictingPlugins):
                return QueryResult(ok=True, payload=self.conflicting_plugins(command.plugin_name))
            if isinstance(command, CopyMetadata):
                return self._copy_metadata(command.plugin_name)
            if isinstance(command, ClearPluginMetadata):
                self.clear_plugin_metadata(command.plugin_name)
                return QueryResult(ok=True)
            if isinstance(command, ClearAllMetadata):
                self.clear_all_metadata()
                return QueryResult(ok=True)
            return QueryResult.failure(f"Unsupported command: {command!r}")

    def game_data(self) -> dict:
        with self._lock:
            return build_game_state(resolve_game(self.session))

    def conflicting_plugins(self, plugin_name: str) -> list[str]:
        LOGGER.debug("Searching for plugins that conflict with %s", plugin_name)
        session = self.session
        target = session.find_installed(plugin_name)
        if target is None:
            return []
        session.form_ids.ensure_loaded(p.name for p in session.plugins)
        candidates = [
            (p.name, session.form_ids.get(p.name))
            for p in session.plugins
            if p.key != target.key
        ]
        return find_conflicts(session.form_ids.get(target.name), candidates)

    def metadata_text(self, plugin_name: str) -> str:
        """Masterlist + userlist metadata for a plugin, unevaluated, as text."""
        session = self.session
        merged = merge_layers(
            session.masterlist.find_plugin(plugin_name),
            [session.userlist.find_plugin(plugin_name)],
        )
        if merged.has_name_only():
            return f"name: {merged.name}"
        return dump_plugin_yaml(merged)

    def _copy_metadata(self, plugin_name: str) -> QueryResult:
        LOGGER.debug("Copying metadata for plugin %s", plugin_name)
        text = self.metadata_text(plugin_name)
        if self._clipboard is not None:
            try:
                self._clipboard(text)
            except OSError as exc:
                LOGGER.error("Failed to copy metadata to the clipboard: %s", exc)
                return QueryResult.failure(f"Failed to copy metadata to the clipboard: {exc}")
        LOGGER.info('Exported metadata text for "%s": %s', plugin_name, text)
        return QueryResult(ok=True, payload=text)

    def clear_plugin_metadata(self, plugin_name: str) -> None:
        LOGGER.debug("Clearing user metadata for plugin %s", plugin_name)
        with self._lock:
            self.session.userlist.erase_plugin(plugin_name)

    def clear_all_metadata(self) -> None:
        LOGGER.info("Clearing all user metadata")
        with self._lock:
            self.session.userlist.clear()
