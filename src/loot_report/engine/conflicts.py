"""FormID overlap detection between installed plugins."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

LOGGER = logging.getLogger("loot_report.engine.conflicts")


class FormIdCache:
    """FormID sets for every installed plugin, filled in one bulk load.

    The loaded flag is explicit, so a plugin that legitimately contains no
    records is not mistaken for an unloaded cache. Not thread-safe: callers
    serialize access.
    """

    def __init__(self, loader: Callable[[str], frozenset[int]]) -> None:
        self._loader = loader
        self._form_ids: dict[str, frozenset[int]] = {}
        self._loaded = False

    @property
    def loaded(self) -> bool:
        return self._loaded

    def ensure_loaded(self, plugin_names: Iterable[str]) -> None:
        """Load FormIDs for all *plugin_names* unless already loaded."""
        if self._loaded:
            return
        form_ids: dict[str, frozenset[int]] = {}
        for name in plugin_names:
            form_ids[name.lower()] = self._loader(name)
        LOGGER.info("Loaded FormIDs for %d plugins", len(form_ids))
        self._form_ids = form_ids
        self._loaded = True

    def invalidate(self) -> None:
        self._form_ids = {}
        self._loaded = False

    def get(self, name: str) -> frozenset[int]:
        return self._form_ids.get(name.lower(), frozenset())


def find_conflicts(
    target: frozenset[int],
    candidates: Iterable[tuple[str, frozenset[int]]],
) -> list[str]:
    """Names of candidates sharing at least one FormID with *target*, in order."""
    conflicting: list[str] = []
    for name, form_ids in candidates:
        if not target.isdisjoint(form_ids):
            LOGGER.debug("Found conflicting plugin: %s", name)
            conflicting.append(name)
    return conflicting
