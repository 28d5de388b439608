"""DRC output dataclasses and checker configuration."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum

from pcbcore.geometry import Point


class ViolationType(str, Enum):
    CLEARANCE = "clearance"
    MIN_TRACK_WIDTH = "min-track-width"
    MIN_DRILL = "min-drill"
    UNCONNECTED = "unconnected"
    OVERLAP = "overlap"
    MIN_VIA_DIAMETER = "min-via-diameter"
    HOLE_TO_HOLE = "hole-to-hole"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


def new_violation_id() -> str:
    return f"drc-{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class DRCViolation:
    """One rule violation.  Never mutated after creation."""

    type: ViolationType
    severity: Severity
    message: str
    position: Point
    object_ids: tuple[str, ...]
    id: str = field(default_factory=new_violation_id)

    def key(self) -> tuple:
        """Identity ignoring the generated id (for set comparisons)."""
        return (self.type, self.severity, self.message, self.position, self.object_ids)


# ── Checker configuration ─────────────────────────────────────────


@dataclass
class DRCConfig:
    """Checker switches.  The defaults run exactly the four core checks
    (track width, via drill, track clearance, pad clearance) brute-force.
    """

    use_spatial_index: bool = False         # STRtree broad phase; same results
    parallel: bool = False                  # run checks on a thread pool
    exact_segment_distance: bool = False    # report crossing tracks at distance 0
    apply_footprint_rotation: bool = False

    min_drill_tolerance: float = 0.9        # drill < tolerance * rules.via_drill

    # ── Optional checks ───────────────────────────────────────
    check_via_diameter: bool = False
    check_hole_to_hole: bool = False
    check_unconnected: bool = False
    check_courtyard_overlap: bool = False
    min_hole_to_hole: float = 0.25          # edge-to-edge, board units
    snap_tolerance: float = 0.01            # point merge distance for connectivity


@dataclass(frozen=True)
class PlacedPad:
    """A pad with its absolute position, as the checks see it."""

    id: str
    net: str
    position: Point
    extent: float           # max(w, h)
    footprint: str          # footprint reference, for messages
    drill: float | None = None
    through_hole: bool = False
