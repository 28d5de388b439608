"""Lee (wave-expansion) pathfinder on the routing grid.

Breadth-first search over 4-connected unblocked cells.  BFS processes
cells in level order, so the first time the end cell is dequeued its
cost is the shortest step count from the start.

Supports:
  - Raw cell path (lee_search) and simplified waypoints (find_path)
  - An expansion cap bounding the cost of one search
  - Cooperative cancellation polled every N expansions
"""

from __future__ import annotations

import logging
import threading
from collections import deque

from .grid import RoutingGrid, Cell, NO_PARENT
from .models import CANCEL_CHECK_INTERVAL, RoutingCancelled


log = logging.getLogger(__name__)


# Neighbour order (dx, dy): up, down, left, right.  Fixed order is the
# tie-break between equal-length paths.
DIRS = ((0, -1), (0, 1), (-1, 0), (1, 0))


def lee_search(
    grid: RoutingGrid,
    start: Cell,
    end: Cell,
    *,
    max_expansions: int | None = None,
    cancel: threading.Event | None = None,
    cancel_check_interval: int = CANCEL_CHECK_INTERVAL,
) -> list[Cell] | None:
    """Shortest 4-connected cell path from *start* to *end*.

    Returns the full list of cells (start and end included), or None if
    an endpoint is out of bounds, the end is unreachable, or the search
    dequeues more than *max_expansions* cells.

    Raises RoutingCancelled when *cancel* is set.
    """
    grid.reset_search_state()

    sx, sy = start
    tx, ty = end
    if not (grid.in_bounds(sx, sy) and grid.in_bounds(tx, ty)):
        return None

    # Cache grid internals as locals for the inner loop.
    W = grid.cols
    H = grid.rows
    blocked = grid._blocked
    visited = grid._visited
    cost = grid._cost
    parent = grid._parent

    start_key = sy * W + sx
    end_key = ty * W + tx
    cost[start_key] = 0
    visited[start_key] = 1
    queue: deque[int] = deque([start_key])

    expansions = 0
    found = False
    while queue:
        key = queue.popleft()
        if key == end_key:
            found = True
            break

        expansions += 1
        if max_expansions is not None and expansions > max_expansions:
            log.debug("Lee search %s -> %s: expansion cap %d reached", start, end, max_expansions)
            return None
        if cancel is not None and expansions % cancel_check_interval == 0 and cancel.is_set():
            raise RoutingCancelled()

        cx = key % W
        cy = key // W
        next_cost = cost[key] + 1
        for dx, dy in DIRS:
            nx, ny = cx + dx, cy + dy
            if not (0 <= nx < W and 0 <= ny < H):
                continue
            nkey = ny * W + nx
            if visited[nkey] or blocked[nkey]:
                continue
            visited[nkey] = 1
            cost[nkey] = next_cost
            parent[nkey] = key
            queue.append(nkey)

    if not found:
        return None

    # Back-trace
    path: list[Cell] = []
    k = end_key
    while k != NO_PARENT:
        path.append((k % W, k // W))
        k = parent[k]
    path.reverse()
    return path


def simplify_path(path: list[Cell]) -> list[Cell]:
    """Collapse collinear runs, keeping the endpoints and turning points."""
    if len(path) <= 2:
        return list(path)

    simplified = [path[0]]
    for i in range(1, len(path) - 1):
        px, py = path[i - 1]
        cx, cy = path[i]
        nx, ny = path[i + 1]
        if (cx - px, cy - py) != (nx - cx, ny - cy):
            simplified.append(path[i])
    simplified.append(path[-1])
    return simplified


def find_path(
    grid: RoutingGrid,
    start: Cell,
    end: Cell,
    **search_kwargs,
) -> list[Cell] | None:
    """Lee route from *start* to *end*, returned as simplified waypoints.

    Waypoints are grid cells; convert with ``grid.grid_to_world``.
    Keyword arguments are passed through to :func:`lee_search`.
    """
    path = lee_search(grid, start, end, **search_kwargs)
    if path is None:
        return None
    return simplify_path(path)
