"""Task runner — one request in, a sequence of events out.

A run works on a deep copy of its request and reports only through the
events it emits, so nothing is shared with the caller while it runs.

  run_autoroute / run_drc      synchronous; events go to an ``emit`` callback
  start_autoroute / start_drc  same work on a background thread; events
                               are read from a :class:`TaskHandle`
"""

from __future__ import annotations

import copy
import logging
import threading
import traceback
from queue import Queue, Empty
from typing import Callable, Iterator

from pcbcore.pipeline.drc import check as _run_checks
from pcbcore.pipeline.router import RoutingCancelled, RoutingError, build_connections, route_board

from .messages import (
    AutorouteRequest, DRCRequest,
    ProgressEvent, CompleteEvent, CancelledEvent, ErrorEvent, ViolationsEvent,
    is_terminal,
)


log = logging.getLogger(__name__)

EmitFn = Callable[[object], None]


# ── Synchronous runs ───────────────────────────────────────────────


def run_autoroute(
    request: AutorouteRequest,
    emit: EmitFn,
    cancel: threading.Event | None = None,
) -> None:
    """Route *request*, emitting progress events then exactly one terminal event."""
    total = len(build_connections(
        request.board.footprints,
        apply_rotation=request.config.apply_footprint_rotation,
    ))
    counts = {"routed": 0, "failed": 0}

    def on_progress(progress: float, routed: int, failed: int) -> None:
        counts["routed"] = routed
        counts["failed"] = failed
        emit(ProgressEvent(progress=progress, routed=routed, failed=failed))

    try:
        result = route_board(
            request.board, request.rules,
            config=request.config,
            on_progress=on_progress,
            cancel=cancel,
        )
    except RoutingCancelled:
        log.info("Autoroute task cancelled")
        emit(CancelledEvent(
            routed=counts["routed"], failed=counts["failed"],
            total=total,
        ))
    except RoutingError as e:
        log.error("Autoroute task failed: %s", e)
        emit(ErrorEvent(message=str(e)))
    except Exception as e:
        log.error("Autoroute task crashed:\n%s", traceback.format_exc())
        emit(ErrorEvent(message=f"internal error: {e}"))
    else:
        emit(CompleteEvent(result=result))


def run_drc(request: DRCRequest, emit: EmitFn) -> None:
    """Check *request*, emitting exactly one terminal event."""
    board = request.board
    try:
        violations = _run_checks(
            board.tracks, board.vias, board.footprints, request.rules,
            config=request.config,
        )
    except Exception as e:
        log.error("DRC task crashed:\n%s", traceback.format_exc())
        emit(ErrorEvent(message=f"internal error: {e}"))
    else:
        emit(ViolationsEvent(violations=violations))


# ── Background runs ────────────────────────────────────────────────


class TaskHandle:
    """A run on a background thread, read as a stream of events."""

    def __init__(self, name: str) -> None:
        self.name = name
        self.cancel_event = threading.Event()
        self._queue: Queue = Queue()
        self._thread: threading.Thread | None = None
        self._done = False

    def _start(self, target: Callable[[EmitFn, threading.Event], None]) -> None:
        def run_in_thread():
            try:
                target(self._queue.put, self.cancel_event)
            except Exception as e:
                log.error("Task %s crashed:\n%s", self.name, traceback.format_exc())
                self._queue.put(ErrorEvent(message=f"internal error: {e}"))

        self._thread = threading.Thread(target=run_in_thread, name=self.name, daemon=True)
        self._thread.start()

    def cancel(self) -> None:
        """Ask the run to stop.  It ends with a CancelledEvent."""
        self.cancel_event.set()

    def events(self, timeout: float | None = None) -> Iterator[object]:
        """Yield events until (and including) the terminal one.

        Raises TimeoutError when no event arrives within *timeout* seconds.
        """
        while not self._done:
            try:
                event = self._queue.get(timeout=timeout)
            except Empty:
                raise TimeoutError(f"task {self.name}: no event within {timeout}s") from None
            if is_terminal(event):
                self._done = True
            yield event

    def poll(self, timeout: float = 0.0):
        """Next event, or None if none arrived within *timeout* seconds."""
        if self._done:
            return None
        try:
            event = self._queue.get(timeout=timeout) if timeout > 0 else self._queue.get_nowait()
        except Empty:
            return None
        if is_terminal(event):
            self._done = True
        return event

    @property
    def done(self) -> bool:
        return self._done

    def result(self, timeout: float | None = None):
        """Drain the stream and return the terminal event."""
        last = None
        for event in self.events(timeout=timeout):
            last = event
        return last

    def join(self, timeout: float | None = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)


def start_autoroute(request: AutorouteRequest) -> TaskHandle:
    """Route a snapshot of *request* on a background thread."""
    snapshot = copy.deepcopy(request)
    handle = TaskHandle("autoroute")
    handle._start(lambda emit, cancel: run_autoroute(snapshot, emit, cancel))
    return handle


def start_drc(request: DRCRequest) -> TaskHandle:
    """Check a snapshot of *request* on a background thread."""
    snapshot = copy.deepcopy(request)
    handle = TaskHandle("drc")
    handle._start(lambda emit, cancel: run_drc(snapshot, emit))
    return handle
