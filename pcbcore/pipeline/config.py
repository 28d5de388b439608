"""Shared design rules for the router and the design rule checker.

The **router** derives its track width and clearance halo from these
values and the **DRC** checks finished copper against them.  Both
stages read the same :class:`DesignRules` so routed output passes the
check it will be verified with.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class DesignRules:
    """Manufacturing rules for copper features.

    All distances are in board units (millimetres in practice).
    """

    clearance: float = 0.2
    """Minimum edge-to-edge gap between copper of different nets."""

    track_width: float = 0.25
    """Width given to tracks laid down by the autorouter."""

    via_diameter: float = 0.8
    """Nominal via pad diameter."""

    via_drill: float = 0.4
    """Nominal via drill diameter."""

    min_track_width: float = 0.2
    """Narrowest track the fab accepts."""

    # ── Derived helpers ────────────────────────────────────────────

    def clearance_cells(self, resolution: float) -> int:
        """Clearance halo radius in grid cells (Chebyshev distance)."""
        return int(math.ceil(self.clearance / resolution))

    def track_clearance(self, width_a: float, width_b: float) -> float:
        """Required centreline distance between two tracks."""
        return self.clearance + (width_a + width_b) / 2


# Module-level singleton — importable everywhere.
DEFAULT_RULES = DesignRules()
