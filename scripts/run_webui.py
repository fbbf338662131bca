"""Serve the local game data API with a live query runtime."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from loot_report.query.runtime import QueryRuntime
from loot_report.query.server import serve, write_state
from loot_report.session.bootstrap import bootstrap_session
from loot_report.session.settings import load_settings


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the game data API")
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=4173)
    parser.add_argument("--settings", type=Path, help="YAML settings file")
    parser.add_argument("--static-dir", type=Path, help="Also serve static files from here")
    parser.add_argument("--state", type=Path, help="Also write a game data snapshot here")
    parser.add_argument("--open", action="store_true", help="Open a browser tab")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    runtime = QueryRuntime(bootstrap_session(load_settings(args.settings)))
    if args.state:
        write_state(args.state, runtime)
    serve(
        runtime,
        host=args.host,
        port=args.port,
        directory=args.static_dir,
        open_browser=args.open,
    )


if __name__ == "__main__":
    main()
