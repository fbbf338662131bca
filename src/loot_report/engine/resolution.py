"""Resolve installed plugins against the masterlist and userlist.

For each installed plugin, in load order:
  1. merge the masterlist entry onto a copy of the plugin's own metadata,
  2. evaluate its conditions,
  3. check requirements/incompatibilities,
  4. merge the userlist entry onto a copy with the plugin's own tags cleared,
     and evaluate its conditions,
  5. merge the userlist result onto the masterlist result,
  6. turn dirty info into warnings,
  7. emit a ResolvedPluginView.

Condition failures never abort the pass. Each becomes an error message in
the snapshot's global messages and the governed entry stays visible.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from loot_report.engine.conditions import (
    ConditionEvaluator,
    InstallState,
    RuleEvaluationFailure,
    evaluate_all_conditions,
    evaluate_messages,
)
from loot_report.engine.dirtiness import dirty_messages
from loot_report.engine.validity import check_install_validity
from loot_report.models.metadata import (
    Message,
    MetadataList,
    PluginMetadata,
    Tag,
    merge_layers,
    sorted_tags,
)
from loot_report.models.plugin import InstalledPlugin
from loot_report.models.priority import PriorityEncoding, encode_priority

if TYPE_CHECKING:
    from loot_report.session.game_session import GameSession


LOGGER = logging.getLogger("loot_report.engine.resolution")


@dataclass(slots=True)
class ResolvedPluginView:
    """Display-ready result for one plugin. Built per request."""

    name: str
    is_active: bool
    loads_bsa: bool
    crc: int
    version: str
    masterlist: PluginMetadata | None   # raw layer data, None if name-only
    userlist: PluginMetadata | None
    priority: PriorityEncoding
    messages: list[Message]
    tags: list[Tag]
    is_dirty: bool


@dataclass(slots=True)
class GameSnapshot:
    folder: str
    masterlist_revision: str
    masterlist_date: str
    language: str | None
    plugins: list[ResolvedPluginView] = field(default_factory=list)
    global_messages: list[Message] = field(default_factory=list)
    failures: list[RuleEvaluationFailure] = field(default_factory=list)


def failure_message(failure: RuleEvaluationFailure) -> Message:
    if failure.plugin_name is None:
        text = (
            "A global message contains a condition that could not be evaluated. "
            f"Details: {failure.detail}"
        )
    else:
        text = (
            f'"{failure.plugin_name}" contains a condition that could not be evaluated. '
            f"Details: {failure.detail}"
        )
    return Message.plain("error", text)


def resolve_plugin(
    plugin: InstalledPlugin,
    *,
    masterlist: MetadataList,
    userlist: MetadataList,
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
    is_active: bool,
) -> tuple[ResolvedPluginView, list[RuleEvaluationFailure]]:
    own = plugin.metadata if plugin.metadata is not None else PluginMetadata(name=plugin.name)
    LOGGER.debug("Getting masterlist metadata for: %s", plugin.name)
    mlist_raw = merge_layers(own, [masterlist.find_plugin(plugin.name)])
    mlist, failures = evaluate_all_conditions(mlist_raw, state, evaluator, language)
    check_install_validity(mlist, state)

    LOGGER.debug("Getting userlist metadata for: %s", plugin.name)
    # The plugin's own Bash Tags are already in the masterlist result.
    ulist_base = own.copy()
    ulist_base.tags = set()
    ulist_raw = merge_layers(ulist_base, [userlist.find_plugin(plugin.name)])
    ulist, ulist_failures = evaluate_all_conditions(ulist_raw, state, evaluator, language)
    failures.extend(ulist_failures)

    merged = merge_layers(mlist, [ulist])
    messages = list(merged.messages)
    messages.extend(dirty_messages(merged.dirty_info))

    view = ResolvedPluginView(
        name=plugin.name,
        is_active=is_active,
        loads_bsa=plugin.loads_bsa,
        crc=plugin.crc,
        version=plugin.version,
        masterlist=None if mlist_raw.has_name_only() else mlist_raw,
        userlist=None if ulist_raw.has_name_only() else ulist_raw,
        priority=encode_priority(merged.priority),
        messages=messages,
        tags=sorted_tags(merged.tags),
        is_dirty=len(merged.dirty_info) > 0,
    )
    LOGGER.debug(
        "%s: %d messages, %d tags", plugin.name, len(view.messages), len(view.tags)
    )
    return view, failures


def resolve_global_messages(
    messages: list[Message],
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
) -> tuple[list[Message], list[RuleEvaluationFailure]]:
    kept, failures = evaluate_messages(messages, state, evaluator, language)
    for failure in failures:
        LOGGER.error(
            "A global message contains a condition that could not be evaluated. Details: %s",
            failure.detail,
        )
    return kept, failures


def resolve_game(session: GameSession) -> GameSnapshot:
    """Run the full resolution pass. Always returns a complete snapshot."""
    LOGGER.info("Getting data specific to the active game: %s", session.folder)
    state = session.install_state()
    snapshot = GameSnapshot(
        folder=session.folder,
        masterlist_revision=session.masterlist.revision,
        masterlist_date=session.masterlist.date,
        language=session.language,
    )

    plugin_failures: list[RuleEvaluationFailure] = []
    for plugin in session.plugins:
        view, failures = resolve_plugin(
            plugin,
            masterlist=session.masterlist,
            userlist=session.userlist,
            state=state,
            evaluator=session.evaluator,
            language=session.language,
            is_active=session.is_active(plugin.name),
        )
        snapshot.plugins.append(view)
        plugin_failures.extend(failures)

    LOGGER.info("Using message language: %s", session.language or "any")
    LOGGER.debug("Evaluating global message conditions.")
    global_messages, global_failures = resolve_global_messages(
        session.masterlist.messages + session.userlist.messages,
        state,
        session.evaluator,
        session.language,
    )
    snapshot.global_messages = global_messages
    snapshot.global_messages.extend(failure_message(f) for f in plugin_failures)
    snapshot.global_messages.extend(failure_message(f) for f in global_failures)
    snapshot.failures = plugin_failures + global_failures
    return snapshot
