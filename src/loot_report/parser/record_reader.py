"""Plugin record walker.

Navigates the plugin file structure:
  TES4 header → GRUP → Records (→ nested GRUPs)

Only the TES4 header is parsed into subrecords. For every other record the
reader takes the FormID from the header and skips the payload, so collecting
the FormIDs of a large master never materialises its records.
"""

from collections.abc import Generator

from loot_report.models.records import Record, RecordHeader, Subrecord
from loot_report.parser.binary_reader import BinaryReader


_GROUP_HEADER_SIZE = 24


def _read_record_header(reader: BinaryReader, sig: str) -> RecordHeader:
    """Read the rest of a 24-byte record header after its signature."""
    data_size = reader.uint32()
    flags = reader.uint32()
    form_id = reader.uint32()
    reader.skip(8)  # revision(4) + version(2) + unknown(2)
    return RecordHeader(type=sig, data_size=data_size, flags=flags, form_id=form_id)


def _parse_subrecords(reader: BinaryReader) -> list[Subrecord]:
    """Parse all subrecords from a bounded reader covering one record's data."""
    subrecords: list[Subrecord] = []
    while reader.remaining > 0:
        sig = reader.signature()
        size = reader.uint16()
        subrecords.append(Subrecord(type=sig, data=reader.bytes(size)))
    return subrecords


def read_header_record(data: bytes) -> Record:
    """Parse the leading TES4 record of a plugin.

    Raises:
        ValueError: If the data does not start with a TES4 record.
    """
    reader = BinaryReader(data)
    sig = reader.signature()
    if sig != "TES4":
        raise ValueError(f"Expected TES4 header, got {sig!r}")
    header = _read_record_header(reader, sig)
    subrecords = _parse_subrecords(reader.slice(header.data_size))
    return Record(header=header, subrecords=subrecords)


def iter_form_ids(data: bytes) -> Generator[int, None, None]:
    """Yield the FormID of every record after the TES4 header."""
    reader = BinaryReader(data)
    sig = reader.signature()
    if sig != "TES4":
        raise ValueError(f"Expected TES4 header, got {sig!r}")
    tes4 = _read_record_header(reader, sig)
    reader.skip(tes4.data_size)

    def _iter_scope(scope: BinaryReader) -> Generator[int, None, None]:
        while scope.remaining > 0:
            sig = scope.signature()
            if sig == "GRUP":
                group_size = scope.uint32()
                if group_size < _GROUP_HEADER_SIZE:
                    raise ValueError(
                        f"GRUP size {group_size} is smaller than its "
                        f"{_GROUP_HEADER_SIZE}-byte header"
                    )
                scope.skip(16)  # label + group_type + stamp + unknown
                yield from _iter_scope(scope.slice(group_size - _GROUP_HEADER_SIZE))
                continue
            header = _read_record_header(scope, sig)
            scope.skip(header.data_size)
            yield header.form_id

    yield from _iter_scope(reader)


def read_form_ids(data: bytes) -> frozenset[int]:
    return frozenset(iter_form_ids(data))
