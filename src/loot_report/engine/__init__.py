"""Metadata resolution interfaces."""

from loot_report.engine.conditions import (
    ConditionError,
    ConditionEvaluator,
    FileStateEvaluator,
    InstallState,
    RuleEvaluationFailure,
)
from loot_report.engine.conflicts import FormIdCache, find_conflicts
from loot_report.engine.resolution import GameSnapshot, ResolvedPluginView, resolve_game

__all__ = [
    "ConditionError",
    "ConditionEvaluator",
    "FileStateEvaluator",
    "FormIdCache",
    "GameSnapshot",
    "InstallState",
    "ResolvedPluginView",
    "RuleEvaluationFailure",
    "find_conflicts",
    "resolve_game",
]
