"""Generic ESM/ESP record data classes."""

from dataclasses import dataclass


@dataclass(slots=True)
class Subrecord:
    """A single subrecord within a record (e.g. MAST, SNAM, HEDR)."""
    type: str        # 4-char ASCII signature
    data: bytes


@dataclass(slots=True)
class RecordHeader:
    """24-byte record header preceding the record data."""
    type: str        # 4-char signature (e.g. "TES4", "NPC_")
    data_size: int   # size of the record data (after header)
    flags: int
    form_id: int

    @property
    def is_master(self) -> bool:
        return bool(self.flags & 0x0000_0001)


@dataclass(slots=True)
class Record:
    """A parsed record: header + list of subrecords."""
    header: RecordHeader
    subrecords: list[Subrecord]
