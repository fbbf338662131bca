"""The explicitly owned state a resolution pass works over."""

from __future__ import annotations

from dataclasses import dataclass, field

from loot_report.engine.conditions import ConditionEvaluator, FileStateEvaluator, InstallState
from loot_report.engine.conflicts import FormIdCache
from loot_report.models.metadata import MetadataList
from loot_report.models.plugin import InstalledPlugin


def _no_form_ids(name: str) -> frozenset[int]:
    return frozenset()


@dataclass(slots=True)
class GameSession:
    """Installed plugins plus both metadata layers for one game.

    plugins is in load order. Shared and mutable: one command at a time.
    """

    folder: str
    plugins: list[InstalledPlugin] = field(default_factory=list)
    active: set[str] = field(default_factory=set)
    masterlist: MetadataList = field(default_factory=MetadataList)
    userlist: MetadataList = field(default_factory=MetadataList)
    language: str | None = None
    evaluator: ConditionEvaluator = field(default_factory=FileStateEvaluator)
    form_ids: FormIdCache = field(default_factory=lambda: FormIdCache(_no_form_ids))

    def __post_init__(self) -> None:
        self.active = {name.lower() for name in self.active}

    def find_installed(self, name: str) -> InstalledPlugin | None:
        key = name.lower()
        for plugin in self.plugins:
            if plugin.key == key:
                return plugin
        return None

    def is_active(self, name: str) -> bool:
        return name.lower() in self.active

    def install_state(self) -> InstallState:
        return InstallState(
            installed={p.key: p.crc for p in self.plugins},
            active=frozenset(self.active),
        )
