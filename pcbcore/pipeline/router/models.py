"""Router dataclasses, configuration constants and exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field

from pcbcore.geometry import Point
from pcbcore.pipeline.board.models import Track


# ── Exceptions ─────────────────────────────────────────────────────


class RoutingError(Exception):
    """Fatal router failure — reported instead of a partial result."""


class GridConfigError(RoutingError):
    """Grid cannot be built (bad resolution or empty outline)."""


class GridTooLargeError(RoutingError):
    """Grid would exceed ``RouterConfig.max_grid_cells``."""


class RoutingCancelled(BaseException):
    """Raised when a routing run is cancelled by the caller.

    Inherits from BaseException so it won't be caught by generic
    ``except Exception`` handlers between the search loop and the task
    boundary.
    """
    pass


# ── Data structures ────────────────────────────────────────────────


@dataclass(frozen=True)
class Connection:
    """One ratsnest edge: two pads of the same net, in world mm."""

    net: str
    start: Point
    end: Point


@dataclass
class RoutingResult:
    """Complete autorouter output."""

    tracks: list[Track] = field(default_factory=list)
    routed: int = 0
    failed: int = 0
    total: int = 0

    @property
    def ok(self) -> bool:
        return self.failed == 0


# ── Router configuration ──────────────────────────────────────────
#
# Physical rules (track width, clearance) come from DesignRules
# (pcbcore.pipeline.config).  Router-only knobs live here.


@dataclass
class RouterConfig:
    """All tuneable router parameters in one place."""

    grid_resolution: float = 0.5         # board units per cell
    preferred_layer: str = "F.Cu"        # layer for every routed track
    apply_footprint_rotation: bool = False

    # ── Resource caps ──────────────────────────────────────────
    max_grid_cells: int = 4_000_000      # larger grids are a fatal config error
    max_expansions: int | None = None    # per search; None = unbounded
    time_budget_s: float | None = None   # per run; None = unbounded
    cancel_check_interval: int = 4096    # BFS expansions between cancel checks


# Module-level defaults (used when no RouterConfig is passed)
_DEFAULT_CFG = RouterConfig()

GRID_RESOLUTION = _DEFAULT_CFG.grid_resolution
PREFERRED_LAYER = _DEFAULT_CFG.preferred_layer
MAX_GRID_CELLS = _DEFAULT_CFG.max_grid_cells
CANCEL_CHECK_INTERVAL = _DEFAULT_CFG.cancel_check_interval
