"""Resolve plugin metadata for a game and print the game data document.

Usage:
    python -m scripts.dump_game_data [--settings PATH] [--game-path DIR]
        [--masterlist PATH] [--userlist PATH] [--conflicts PLUGIN]
        [--copy PLUGIN] [--output PATH] [-v]
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from loot_report.query.commands import CopyMetadata, GetConflictingPlugins, GetGameData
from loot_report.query.runtime import QueryRuntime
from loot_report.session.bootstrap import bootstrap_session
from loot_report.session.settings import load_settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dump resolved plugin metadata")
    parser.add_argument("--settings", type=Path, help="YAML settings file")
    parser.add_argument("--game-path", type=Path, help="Game Data directory")
    parser.add_argument("--masterlist", type=Path)
    parser.add_argument("--userlist", type=Path)
    parser.add_argument("--load-order", type=Path, help="Load order file, one plugin per line")
    parser.add_argument("--plugins-txt", type=Path, help="Active plugins file")
    parser.add_argument("--language")
    parser.add_argument("--conflicts", metavar="PLUGIN", help="List plugins sharing FormIDs with PLUGIN")
    parser.add_argument("--copy", metavar="PLUGIN", help="Print PLUGIN's merged metadata text")
    parser.add_argument("--output", type=Path, help="Write JSON here instead of stdout")
    parser.add_argument("-v", "--verbose", action="store_true")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args.settings)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    if args.game_path:
        settings.game_path = args.game_path
    if args.masterlist:
        settings.masterlist_path = args.masterlist
    if args.userlist:
        settings.userlist_path = args.userlist
    if args.load_order:
        settings.load_order_path = args.load_order
    if args.plugins_txt:
        settings.active_plugins_path = args.plugins_txt
    if args.language:
        settings.language = args.language

    try:
        session = bootstrap_session(settings)
    except (ValueError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    runtime = QueryRuntime(session)
    if args.copy:
        print(runtime.apply(CopyMetadata(args.copy)).payload)
        return 0
    if args.conflicts:
        result = runtime.apply(GetConflictingPlugins(args.conflicts))
    else:
        result = runtime.apply(GetGameData())

    text = json.dumps(result.payload, indent=2)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        print(f"Game data written: {args.output}")
    else:
        print(text)
    return 0


if __name__ == "__main__":
    sys.exit(main())
