"""
pcbcore — entry point.

Usage:
    python -m pcbcore serve                 # start web server on :8000
    python -m pcbcore serve --port 3000
    python -m pcbcore route request.json    # print autoroute events as JSON lines
    python -m pcbcore drc request.json      # print the violation list as JSON
"""

import json
import logging
import sys
from pathlib import Path

USAGE = "Usage: python -m pcbcore serve [--port PORT] [--host HOST] | route FILE | drc FILE"


def _load_request(args: list[str]) -> dict:
    if len(args) < 2:
        print(USAGE)
        sys.exit(1)
    return json.loads(Path(args[1]).read_text(encoding="utf-8"))


def _run_task(kind: str, data: dict) -> int:
    from pcbcore.pipeline.board import DocumentError
    from pcbcore.tasks import (
        ErrorEvent, event_to_dict,
        parse_autoroute_request, parse_drc_request,
        run_autoroute, run_drc,
    )

    failed = False

    def emit(event):
        nonlocal failed
        failed = failed or isinstance(event, ErrorEvent)
        print(json.dumps(event_to_dict(event)), flush=True)

    try:
        if kind == "route":
            run_autoroute(parse_autoroute_request(data), emit)
        else:
            run_drc(parse_drc_request(data), emit)
    except DocumentError as e:
        print(f"Invalid request: {e}", file=sys.stderr)
        return 2
    return 1 if failed else 0


def main():
    args = sys.argv[1:]
    cmd = args[0] if args else "serve"

    if cmd == "serve":
        port = 8000
        host = "127.0.0.1"
        for i, a in enumerate(args):
            if a == "--port" and i + 1 < len(args):
                port = int(args[i + 1])
            elif a == "--host" and i + 1 < len(args):
                host = args[i + 1]

        from pcbcore.web.server import main as serve
        serve(host=host, port=port)
    elif cmd in ("route", "drc"):
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
            stream=sys.stderr,
        )
        sys.exit(_run_task(cmd, _load_request(args)))
    else:
        print(f"Unknown command: {cmd}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
