"""Local JSON API over a live query runtime."""

from __future__ import annotations

import json
import logging
import webbrowser
from functools import partial
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import urlparse

from loot_report.query.commands import GetGameData
from loot_report.query.runtime import QueryRuntime


LOGGER = logging.getLogger("loot_report.query.server")


class QueryRequestHandler(SimpleHTTPRequestHandler):
    """JSON API routes, plus static files when a directory is given."""

    def __init__(self, *args, runtime: QueryRuntime, directory: str | None, **kwargs):
        self._runtime = runtime
        self._serves_files = directory is not None
        super().__init__(*args, directory=directory, **kwargs)

    def _send_json(self, payload: object, status: int = HTTPStatus.OK) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("Cache-Control", "no-store")
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format: str, *args) -> None:  # noqa: A002
        LOGGER.debug("%s - %s", self.address_string(), format % args)

    def do_GET(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path == "/api/game-data":
            result = self._runtime.apply(GetGameData())
            if result.ok:
                self._send_json(result.payload)
            else:
                self._send_json(
                    {"ok": False, "code": int(result.code), "message": result.message},
                    status=HTTPStatus.INTERNAL_SERVER_ERROR,
                )
            return
        if not self._serves_files:
            self._send_json({"ok": False, "message": "Unknown endpoint"}, status=HTTPStatus.NOT_FOUND)
            return
        super().do_GET()

    def do_POST(self) -> None:  # noqa: N802
        path = urlparse(self.path).path
        if path != "/api/query":
            self._send_json({"ok": False, "message": "Unknown endpoint"}, status=HTTPStatus.NOT_FOUND)
            return

        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            length = 0

        raw = self.rfile.read(length) if length > 0 else b""
        result = self._runtime.handle(raw.decode("utf-8", errors="replace"))
        response = {
            "ok": bool(result.ok),
            "code": int(result.code),
            "message": result.message,
            "payload": result.payload,
        }
        status = HTTPStatus.OK if result.ok else HTTPStatus.BAD_REQUEST
        self._send_json(response, status=status)


def write_state(path: Path, runtime: QueryRuntime) -> dict:
    """Write a one-shot game data snapshot for offline inspection."""
    path.parent.mkdir(parents=True, exist_ok=True)
    state = runtime.game_data()
    path.write_text(json.dumps(state, indent=2), encoding="utf-8")
    return state


def make_server(
    host: str,
    port: int,
    runtime: QueryRuntime,
    directory: Path | None = None,
) -> ThreadingHTTPServer:
    static_dir = str(directory) if directory is not None else None
    handler = partial(QueryRequestHandler, directory=static_dir, runtime=runtime)
    server = ThreadingHTTPServer((host, port), handler)
    server.query_runtime = runtime  # type: ignore[attr-defined]
    return server


def serve(
    runtime: QueryRuntime,
    *,
    host: str = "127.0.0.1",
    port: int = 4173,
    directory: Path | None = None,
    open_browser: bool = False,
) -> None:
    server = make_server(host, port, runtime, directory)
    url = f"http://{host}:{port}/"
    LOGGER.info("Serving game data API at %s", url)

    if open_browser:
        webbrowser.open(url)

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
