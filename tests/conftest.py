"""Synthetic plugin file builders shared across tests."""

import struct

import pytest


def build_subrecord(sig: str, payload: bytes) -> bytes:
    return struct.pack("<4sH", sig.encode("ascii"), len(payload)) + payload


def build_record(sig: str, form_id: int, subrecords: list[tuple[str, bytes]] = (),
                 flags: int = 0) -> bytes:
    data = b"".join(build_subrecord(s, p) for s, p in subrecords)
    header = struct.pack(
        "<4sIIIIHH",
        sig.encode("ascii"),
        len(data),
        flags,
        form_id,
        0,  # revision
        0,  # version
        0,  # unknown
    )
    return header + data


def build_grup(label: str, records: list[bytes]) -> bytes:
    body = b"".join(records)
    header = struct.pack("<4sI4sIII", b"GRUP", 24 + len(body), label.encode("ascii"), 0, 0, 0)
    return header + body


def build_tes4(*, masters: list[str] = (), description: str = "", is_master: bool = False,
               record_count: int = 0) -> bytes:
    subs = [("HEDR", struct.pack("<fII", 1.34, record_count, 0x800))]
    for master in masters:
        subs.append(("MAST", master.encode("cp1252") + b"\x00"))
        subs.append(("DATA", b"\x00" * 8))
    if description:
        subs.append(("SNAM", description.encode("cp1252") + b"\x00"))
    return build_record("TES4", 0, subs, flags=0x1 if is_master else 0)


def build_plugin(form_ids: list[int] = (), **tes4_kwargs) -> bytes:
    records = [build_record("MISC", fid, [("EDID", f"Rec{fid:X}\x00".encode())]) for fid in form_ids]
    data = build_tes4(record_count=len(records), **tes4_kwargs)
    if records:
        data += build_grup("MISC", records)
    return data


@pytest.fixture
def plugin_bytes():
    return build_plugin
