"""Condition evaluation over plugin metadata.

Messages, tags, file references and dirty info can carry a condition string.
Evaluating a record keeps entries whose condition holds and drops the rest.
An entry whose condition cannot be evaluated is kept and reported as a
RuleEvaluationFailure, so one bad rule never hides unrelated metadata.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Protocol, TypeVar

from loot_report.models.metadata import DirtyInfo, Message, PluginMetadata, PluginReference, Tag


LOGGER = logging.getLogger("loot_report.engine.conditions")

T = TypeVar("T", Tag, PluginReference, DirtyInfo)


class ConditionError(Exception):
    """A condition string could not be evaluated."""


@dataclass(frozen=True, slots=True)
class InstallState:
    """What is installed and active, keyed by lower-cased plugin name."""
    installed: Mapping[str, int] = field(default_factory=dict)   # name -> CRC-32
    active: frozenset[str] = frozenset()

    def is_installed(self, name: str) -> bool:
        return name.lower() in self.installed

    def is_active(self, name: str) -> bool:
        return name.lower() in self.active

    def crc_for(self, name: str) -> int | None:
        return self.installed.get(name.lower())


class ConditionEvaluator(Protocol):
    def evaluate(self, condition: str, state: InstallState, language: str | None) -> bool:
        """Return the truth of *condition*, raising ConditionError on failure."""
        ...


@dataclass(frozen=True, slots=True)
class RuleEvaluationFailure:
    """A condition that could not be evaluated. plugin_name None = global."""
    plugin_name: str | None
    condition: str
    detail: str


_CALL_RE = re.compile(
    r"""^(?P<negate>not\s+)?(?P<func>file|active|checksum)\(\s*"(?P<path>[^"]+)"\s*(?:,\s*(?P<crc>[0-9A-Fa-f]+)\s*)?\)$"""
)


class FileStateEvaluator:
    """Evaluates single-function conditions against an InstallState.

    Supported forms, each optionally prefixed with "not":
      file("x.esp"), active("x.esp"), checksum("x.esp", DEADBEEF)
    Anything else raises ConditionError.
    """

    def evaluate(self, condition: str, state: InstallState, language: str | None) -> bool:
        match = _CALL_RE.match(condition.strip())
        if match is None:
            raise ConditionError(f"Unsupported condition: {condition!r}")
        func = match.group("func")
        path = match.group("path")
        crc_text = match.group("crc")
        if func == "checksum":
            if crc_text is None:
                raise ConditionError(f"checksum() needs a CRC: {condition!r}")
            result = state.crc_for(path) == int(crc_text, 16)
        elif crc_text is not None:
            raise ConditionError(f"{func}() takes one argument: {condition!r}")
        elif func == "file":
            result = state.is_installed(path)
        else:
            result = state.is_active(path)
        return not result if match.group("negate") else result


def _holds(
    condition: str,
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
    owner: str | None,
    failures: list[RuleEvaluationFailure],
) -> bool:
    if not condition:
        return True
    try:
        return evaluator.evaluate(condition, state, language)
    except Exception as exc:  # any evaluator failure is fail-open
        failures.append(RuleEvaluationFailure(owner, condition, str(exc)))
        return True


def evaluate_messages(
    messages: Iterable[Message],
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
    *,
    owner: str | None = None,
) -> tuple[list[Message], list[RuleEvaluationFailure]]:
    """Filter messages by condition and narrow each to one localisation."""
    failures: list[RuleEvaluationFailure] = []
    kept: list[Message] = []
    for message in messages:
        if not _holds(message.condition, state, evaluator, language, owner, failures):
            continue
        content = message.choose_content(language)
        kept.append(Message(message.severity, (content,) if content else (), message.condition))
    return kept, failures


def _filter(
    entries: Iterable[T],
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
    owner: str,
    failures: list[RuleEvaluationFailure],
) -> set[T]:
    return {
        entry for entry in entries
        if _holds(entry.condition, state, evaluator, language, owner, failures)
    }


def evaluate_all_conditions(
    metadata: PluginMetadata,
    state: InstallState,
    evaluator: ConditionEvaluator,
    language: str | None,
) -> tuple[PluginMetadata, list[RuleEvaluationFailure]]:
    """Return a copy of *metadata* with false-condition entries removed.

    Dirty info pinned to a CRC other than the installed plugin's is also
    removed. The input record is not modified.
    """
    owner = metadata.name
    result = metadata.copy()
    result.messages, failures = evaluate_messages(
        metadata.messages, state, evaluator, language, owner=owner
    )
    result.tags = _filter(metadata.tags, state, evaluator, language, owner, failures)
    result.load_after = _filter(metadata.load_after, state, evaluator, language, owner, failures)
    result.requirements = _filter(metadata.requirements, state, evaluator, language, owner, failures)
    result.incompatibilities = _filter(
        metadata.incompatibilities, state, evaluator, language, owner, failures
    )

    installed_crc = state.crc_for(owner)
    dirty = {
        info for info in metadata.dirty_info
        if info.crc is None or installed_crc is None or info.crc == installed_crc
    }
    result.dirty_info = _filter(dirty, state, evaluator, language, owner, failures)

    for failure in failures:
        LOGGER.error(
            '"%s" contains a condition that could not be evaluated. Details: %s',
            owner,
            failure.detail,
        )
    return result, failures
