"""Human-readable text for plugin dirty info."""

from collections.abc import Iterable

from loot_report.models.metadata import DirtyInfo, Message, sorted_dirty_info


def format_dirty_info(info: DirtyInfo) -> str:
    itm = info.itm_count
    udr = info.udr_count
    nav = info.deleted_navmesh_count
    tool = info.cleaning_tool

    if itm > 0 and udr > 0 and nav > 0:
        found = f"{itm} ITM records, {udr} UDR records and {nav} deleted navmeshes"
    elif itm > 0 and udr > 0:
        found = f"{itm} ITM records and {udr} UDR records"
    elif itm > 0 and nav > 0:
        found = f"{itm} ITM records and {nav} deleted navmeshes"
    elif udr > 0 and nav > 0:
        found = f"{udr} UDR records and {nav} deleted navmeshes"
    elif itm > 0:
        found = f"{itm} ITM records"
    elif udr > 0:
        found = f"{udr} UDR records"
    elif nav > 0:
        found = f"{nav} deleted navmeshes"
    else:
        return f"Clean with {tool}."
    return f"Contains {found}. Clean with {tool}."


def dirty_messages(records: Iterable[DirtyInfo]) -> list[Message]:
    """One warning per record, in stable display order."""
    return [Message.plain("warn", format_dirty_info(info)) for info in sorted_dirty_info(records)]
