"""Plugin priority encoding.

A raw priority packs two things into one signed integer: the position value
shown to the user and whether the priority is global (compared against every
plugin rather than only against overlapping ones). Magnitudes at or above
MAX_PRIORITY mark a global priority.
"""

from dataclasses import dataclass


MAX_PRIORITY = 100_000


@dataclass(frozen=True, slots=True)
class PriorityEncoding:
    normalized: int      # always in [0, MAX_PRIORITY)
    is_global: bool


def encode_priority(raw: int) -> PriorityEncoding:
    """Split a raw priority into its displayed value and global flag.

    Python's % is floored, so raw=-1 gives MAX_PRIORITY - 1.
    """
    return PriorityEncoding(
        normalized=raw % MAX_PRIORITY,
        is_global=abs(raw) >= MAX_PRIORITY,
    )
