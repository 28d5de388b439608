"""
FastAPI web server — streaming autoroute endpoint and DRC endpoint.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from pydantic import BaseModel

from pcbcore.pipeline.board import DocumentError
from pcbcore.tasks import (
    ErrorEvent,
    event_to_dict,
    parse_autoroute_request, parse_drc_request,
    start_autoroute, start_drc,
)


log = logging.getLogger(__name__)

DRC_TIMEOUT_S = 300.0

# ── App ────────────────────────────────────────────────────────────

app = FastAPI(title="pcbcore")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Models ─────────────────────────────────────────────────────────

class AutorouteBody(BaseModel):
    document: dict[str, Any]
    rules: dict[str, Any] = {}
    config: dict[str, Any] = {}


class DRCBody(BaseModel):
    document: dict[str, Any]
    rules: dict[str, Any] = {}
    config: dict[str, Any] = {}


# ── Routes ─────────────────────────────────────────────────────────

@app.get("/api/health")
def health():
    return {"status": "ok"}


@app.post("/api/autoroute/stream")
async def autoroute_stream(req: AutorouteBody):
    """
    Streaming endpoint.  Routes on a background thread and pushes each
    event (progress..., then complete / cancelled / error) as SSE.
    Closing the connection cancels the run.
    """
    try:
        request = parse_autoroute_request(req.model_dump())
    except DocumentError as e:
        raise HTTPException(400, str(e))

    handle = start_autoroute(request)

    async def event_generator():
        _last_data = time.monotonic()
        try:
            while not handle.done:
                item = handle.poll()
                if item is None:
                    # Send keepalive comment every 15 s to prevent connection drop
                    if time.monotonic() - _last_data > 15:
                        yield ": keepalive\n\n"
                        _last_data = time.monotonic()
                    await asyncio.sleep(0.05)
                    continue

                yield f"data: {json.dumps(event_to_dict(item))}\n\n"
                _last_data = time.monotonic()
        finally:
            if not handle.done:
                log.info("Autoroute stream closed early — cancelling run")
                handle.cancel()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@app.post("/api/drc")
def drc(req: DRCBody):
    """Run the design rule check and return ``{"violations": [...]}``.

    After DRC_TIMEOUT_S the request fails with 504.  The check itself
    cannot be interrupted: its daemon thread runs to completion and the
    result is dropped.
    """
    try:
        request = parse_drc_request(req.model_dump())
    except DocumentError as e:
        raise HTTPException(400, str(e))

    try:
        event = start_drc(request).result(timeout=DRC_TIMEOUT_S)
    except TimeoutError:
        log.warning("DRC: no result after %.0fs, check thread left to finish in the background",
                    DRC_TIMEOUT_S)
        raise HTTPException(504, f"DRC did not finish within {DRC_TIMEOUT_S:.0f}s")

    if isinstance(event, ErrorEvent):
        return JSONResponse(event_to_dict(event), status_code=500)
    return event_to_dict(event)


# ── Entry point ────────────────────────────────────────────────────

def main(host: str = "127.0.0.1", port: int = 8000):
    import uvicorn
    uvicorn.run("pcbcore.web.server:app", host=host, port=port, reload=False)


if __name__ == "__main__":
    main()
