"""Discretized routing grid — uniform square cells over the board bounds.

The grid covers the axis-aligned bounding box of the board outline.
Cells carry a persistent *blocked* flag (obstacles and clearance halos
of already-routed tracks) plus per-search wave state (*visited*,
*cost*, *parent*) that the pathfinder resets before every search.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Sequence

from shapely.geometry import MultiPoint

from pcbcore.geometry import Point

from .models import GRID_RESOLUTION, MAX_GRID_CELLS, GridConfigError, GridTooLargeError


Cell = tuple[int, int]      # (gx, gy) = (column, row)

NO_PARENT = -1


@dataclass(frozen=True)
class GridCell:
    """Read-only view of one cell's state."""

    blocked: bool
    cost: float
    visited: bool
    parent: Cell | None


class RoutingGrid:
    """A 2-D grid for Lee routing over the board bounding box.

    World coordinates map to cells by ``round((world - origin) / res)``
    and back by ``origin + cell * res``; cell (0, 0) sits exactly on the
    lower-left corner of the outline bounds.
    """

    def __init__(
        self,
        outline_points: Sequence[Point],
        resolution: float = GRID_RESOLUTION,
        *,
        max_cells: int = MAX_GRID_CELLS,
    ) -> None:
        try:
            resolution = float(resolution)
        except (TypeError, ValueError):
            raise GridConfigError(f"grid resolution must be a number, got {resolution!r}") from None
        if not math.isfinite(resolution) or resolution <= 0:
            raise GridConfigError(f"grid resolution must be finite and > 0, got {resolution!r}")
        if not outline_points:
            raise GridConfigError("board outline has no points")

        xmin, ymin, xmax, ymax = MultiPoint([tuple(p) for p in outline_points]).bounds
        if not all(math.isfinite(v) for v in (xmin, ymin, xmax, ymax)):
            raise GridConfigError("board outline has non-finite coordinates")

        span_x = (xmax - xmin) / resolution
        span_y = (ymax - ymin) / resolution
        if not (math.isfinite(span_x) and math.isfinite(span_y)):
            raise GridTooLargeError(
                f"outline of {xmax - xmin:g}x{ymax - ymin:g} at resolution {resolution:g} "
                f"cannot be gridded"
            )

        self.resolution = resolution
        self.origin_x = xmin
        self.origin_y = ymin
        self.cols = int(math.ceil(span_x)) + 1
        self.rows = int(math.ceil(span_y)) + 1

        n_cells = self.rows * self.cols
        if n_cells > max_cells:
            raise GridTooLargeError(
                f"grid of {self.rows}x{self.cols} cells exceeds the limit of {max_cells}"
            )

        self._blocked = bytearray(n_cells)

        # Wave state, reset by reset_search_state()
        self._visited = bytearray(n_cells)
        self._cost: list[float] = [math.inf] * n_cells
        self._parent: list[int] = [NO_PARENT] * n_cells

    # ── Coordinate conversion ──────────────────────────────────────

    def world_to_grid(self, wx: float, wy: float) -> Cell:
        """Convert world coordinates to a cell (NOT clamped; may be out of bounds).

        Halves round up, so 0.25 / 0.5 lands on cell 1 rather than
        Python's round-half-to-even 0.
        """
        cell = self.snap(wx, wy)
        if cell is None:
            raise ValueError(f"point ({wx}, {wy}) has no grid cell")
        return cell

    def snap(self, wx: float, wy: float) -> Cell | None:
        """:meth:`world_to_grid`, or None when the point is too far out
        (or not finite) to have a cell index at all.
        """
        fx = (wx - self.origin_x) / self.resolution + 0.5
        fy = (wy - self.origin_y) / self.resolution + 0.5
        if not (math.isfinite(fx) and math.isfinite(fy)):
            return None
        return (int(math.floor(fx)), int(math.floor(fy)))

    def grid_to_world(self, gx: int, gy: int) -> Point:
        return (
            self.origin_x + gx * self.resolution,
            self.origin_y + gy * self.resolution,
        )

    # ── Cell queries ───────────────────────────────────────────────

    @property
    def size(self) -> int:
        return self.rows * self.cols

    def in_bounds(self, gx: int, gy: int) -> bool:
        return 0 <= gx < self.cols and 0 <= gy < self.rows

    def index(self, gx: int, gy: int) -> int:
        return gy * self.cols + gx

    def is_blocked(self, gx: int, gy: int) -> bool:
        if not self.in_bounds(gx, gy):
            return True
        return self._blocked[gy * self.cols + gx] != 0

    def cell(self, gx: int, gy: int) -> GridCell:
        """Snapshot of a cell's blocked flag and wave state."""
        if not self.in_bounds(gx, gy):
            raise IndexError(f"cell ({gx}, {gy}) outside {self.cols}x{self.rows} grid")
        i = gy * self.cols + gx
        p = self._parent[i]
        return GridCell(
            blocked=self._blocked[i] != 0,
            cost=self._cost[i],
            visited=self._visited[i] != 0,
            parent=None if p == NO_PARENT else (p % self.cols, p // self.cols),
        )

    # ── Cell mutation ──────────────────────────────────────────────

    def set_blocked(self, gx: int, gy: int, blocked: bool) -> None:
        if self.in_bounds(gx, gy):
            self._blocked[gy * self.cols + gx] = 1 if blocked else 0

    def block_cell(self, gx: int, gy: int) -> None:
        self.set_blocked(gx, gy, True)

    def free_cell(self, gx: int, gy: int) -> None:
        self.set_blocked(gx, gy, False)

    def reset_search_state(self) -> None:
        """Clear visited / cost / parent on every cell."""
        n = self.size
        self._visited = bytearray(n)
        self._cost = [math.inf] * n
        self._parent = [NO_PARENT] * n

    # ── Area blocking ──────────────────────────────────────────────

    def block_around(self, path: Sequence[Cell], radius: int) -> None:
        """Block every cell within Chebyshev distance *radius* of each path cell."""
        cols = self.cols
        blocked = self._blocked
        for gx, gy in path:
            x0 = max(0, gx - radius)
            x1 = min(cols - 1, gx + radius)
            if x0 > x1:
                continue
            run = b"\x01" * (x1 - x0 + 1)
            for ny in range(max(0, gy - radius), min(self.rows - 1, gy + radius) + 1):
                row = ny * cols
                blocked[row + x0:row + x1 + 1] = run

    # ── Scoped mutation ────────────────────────────────────────────

    @contextmanager
    def endpoints_unblocked(self, *cells: Cell) -> Iterator[None]:
        """Unblock *cells* for the duration of the block.

        On exit, however it happens, each in-bounds cell gets back the
        blocked flag it had on entry, even if the body blocked it
        meanwhile.  Out-of-bounds cells are ignored.
        """
        saved: dict[int, int] = {}
        for gx, gy in cells:
            if self.in_bounds(gx, gy):
                i = gy * self.cols + gx
                if i not in saved:
                    saved[i] = self._blocked[i]
        try:
            for i in saved:
                self._blocked[i] = 0
            yield
        finally:
            for i, value in saved.items():
                self._blocked[i] = value

    # ── Snapshot / restore ─────────────────────────────────────────

    def snapshot(self) -> bytearray:
        """Return a copy of the blocked flags for later restore."""
        return bytearray(self._blocked)

    def restore(self, snap: bytearray) -> None:
        """Restore blocked flags from a snapshot."""
        self._blocked[:] = snap
