"""Autorouter — routes every ratsnest connection on one shared grid.

Algorithm overview:
  1. Build the routing grid over the board outline bounds.
  2. Extract connections: each net's pads chained in encounter order.
  3. For each connection, in that order:
       - unblock its two endpoint cells for the duration of the search,
       - Lee-route between them,
       - on success emit a track and block a clearance halo around
         every cell of the path so later connections keep away from it.
  4. Report progress after every connection.

Single pass, first come first served: a failed connection is counted
and skipped, never retried, and nothing already routed is ripped up.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from pcbcore.pipeline.board.models import Board, Track
from pcbcore.pipeline.config import DesignRules, DEFAULT_RULES

from .connectivity import build_connections
from .grid import RoutingGrid
from .models import Connection, RouterConfig, RoutingCancelled, RoutingResult
from .pathfinder import lee_search, simplify_path


log = logging.getLogger(__name__)

# (progress in [0, 1], routed, failed)
ProgressFn = Callable[[float, int, int], None]


# ── Main entry point ───────────────────────────────────────────────


def route_board(
    board: Board,
    rules: DesignRules = DEFAULT_RULES,
    *,
    config: RouterConfig | None = None,
    on_progress: ProgressFn | None = None,
    cancel: threading.Event | None = None,
) -> RoutingResult:
    """Route all pad-to-pad connections on *board*.

    Parameters
    ----------
    board : Board
        Needs ``outline`` and ``footprints``; existing tracks are ignored.
    rules : DesignRules
        Track width for new tracks and the clearance halo radius.
    config : RouterConfig | None
        Tuneable parameters.  Uses defaults when *None*.
    on_progress : ProgressFn | None
        Called once after every connection.
    cancel : threading.Event | None
        Set it to stop the run; raises RoutingCancelled.

    Returns
    -------
    RoutingResult
        New tracks (world coordinates) and routed / failed / total counts.

    Raises
    ------
    GridConfigError, GridTooLargeError
        Before any connection is attempted.
    """
    if config is None:
        config = RouterConfig()

    outline = board.outline.points if board.outline is not None else []
    grid = RoutingGrid(outline, config.grid_resolution, max_cells=config.max_grid_cells)
    connections = build_connections(
        board.footprints, apply_rotation=config.apply_footprint_rotation,
    )

    log.info("Router: starting — %d connections, grid %dx%d at %.3f, layer=%s",
             len(connections), grid.cols, grid.rows, grid.resolution,
             config.preferred_layer)

    router = Autorouter(grid, rules, config)
    result = router.route_all(connections, on_progress=on_progress, cancel=cancel)

    log.info("Router: complete — %d routed, %d failed of %d",
             result.routed, result.failed, result.total)
    return result


# ── Orchestrator ───────────────────────────────────────────────────


class Autorouter:
    """Routes connections one at a time on a grid it mutates in place."""

    def __init__(self, grid: RoutingGrid, rules: DesignRules, config: RouterConfig) -> None:
        self.grid = grid
        self.rules = rules
        self.config = config
        self.clearance_cells = rules.clearance_cells(grid.resolution)

    def route_all(
        self,
        connections: list[Connection],
        *,
        on_progress: ProgressFn | None = None,
        cancel: threading.Event | None = None,
    ) -> RoutingResult:
        total = len(connections)
        result = RoutingResult(total=total)
        deadline = None
        if self.config.time_budget_s is not None:
            deadline = time.monotonic() + self.config.time_budget_s
        out_of_time = False

        for i, conn in enumerate(connections):
            if cancel is not None and cancel.is_set():
                log.info("Router: cancelled after %d/%d connections", i, total)
                raise RoutingCancelled()

            if not out_of_time and deadline is not None and time.monotonic() > deadline:
                log.info("Router: time budget exhausted after %d/%d connections", i, total)
                out_of_time = True

            track = None if out_of_time else self.route_connection(i, conn, cancel=cancel)
            if track is not None:
                result.tracks.append(track)
                result.routed += 1
            else:
                result.failed += 1

            if on_progress is not None:
                on_progress((i + 1) / total, result.routed, result.failed)

        return result

    def route_connection(
        self,
        index: int,
        conn: Connection,
        *,
        cancel: threading.Event | None = None,
    ) -> Track | None:
        """Route one connection; on success block its clearance halo.

        Returns the new track, or None if the connection could not be
        routed (the grid is then left exactly as it was).
        """
        grid = self.grid
        start = grid.snap(*conn.start)
        end = grid.snap(*conn.end)

        if start is None or end is None:
            log.debug("  [%d] %-16s FAIL — endpoint %s -> %s off the grid",
                      index, conn.net, conn.start, conn.end)
            return None
        if start == end:
            log.debug("  [%d] %-16s FAIL — zero-length connection at %s", index, conn.net, start)
            return None

        with grid.endpoints_unblocked(start, end):
            path = lee_search(
                grid, start, end,
                max_expansions=self.config.max_expansions,
                cancel=cancel,
                cancel_check_interval=self.config.cancel_check_interval,
            )
            if path is None:
                log.debug("  [%d] %-16s FAIL — no path %s -> %s", index, conn.net, start, end)
                return None

            waypoints = simplify_path(path)
            track = Track(
                id=f"autotrack-{index}",
                net=conn.net,
                layer=self.config.preferred_layer,
                width=self.rules.track_width,
                points=[grid.grid_to_world(gx, gy) for gx, gy in waypoints],
            )
            grid.block_around(path, self.clearance_cells)

        log.debug("  [%d] %-16s OK — %d cells, %d waypoints",
                  index, conn.net, len(path), len(waypoints))
        return track
