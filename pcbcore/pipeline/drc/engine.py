"""Design rule check — run every enabled check over one board snapshot.

The four core checks always run, in this order, and their results are
concatenated without de-duplication:

  1. minimum track width
  2. minimum via drill
  3. track-to-track clearance (same layer, different nets)
  4. pad-to-pad clearance (different nets)

Via diameter, hole-to-hole, unconnected-net and courtyard overlap
checks follow when enabled in :class:`DRCConfig`.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from typing import Callable

from pcbcore.pipeline.board.models import Board, Footprint, Track, Via
from pcbcore.pipeline.config import DesignRules, DEFAULT_RULES

from .checks import (
    placed_pads,
    check_min_track_width, check_min_drill,
    check_track_clearance, check_pad_clearance,
    check_min_via_diameter, check_hole_to_hole, check_unconnected, check_courtyard_overlap,
)
from .models import DRCConfig, DRCViolation
from .spatial import pair_strategy


log = logging.getLogger(__name__)

CheckFn = Callable[[], list[DRCViolation]]


def check(
    tracks: list[Track],
    vias: list[Via],
    footprints: list[Footprint],
    rules: DesignRules = DEFAULT_RULES,
    *,
    config: DRCConfig | None = None,
) -> list[DRCViolation]:
    """Check tracks, vias and pads against *rules*.

    Returns the violations of all enabled checks, concatenated in check
    order.  Same input, same violations (ids aside).
    """
    if config is None:
        config = DRCConfig()

    pads = placed_pads(footprints, apply_rotation=config.apply_footprint_rotation)
    pairs = pair_strategy(config.use_spatial_index)

    checks: list[tuple[str, CheckFn]] = [
        ("min-track-width", partial(check_min_track_width, tracks, rules)),
        ("min-drill", partial(check_min_drill, vias, rules,
                              tolerance=config.min_drill_tolerance)),
        ("track-clearance", partial(check_track_clearance, tracks, rules,
                                    pairs=pairs, exact=config.exact_segment_distance)),
        ("pad-clearance", partial(check_pad_clearance, pads, rules, pairs=pairs)),
    ]
    if config.check_via_diameter:
        checks.append(("min-via-diameter", partial(
            check_min_via_diameter, vias, rules, tolerance=config.min_drill_tolerance)))
    if config.check_hole_to_hole:
        checks.append(("hole-to-hole", partial(
            check_hole_to_hole, vias, pads, min_hole_to_hole=config.min_hole_to_hole)))
    if config.check_unconnected:
        checks.append(("unconnected", partial(
            check_unconnected, pads, tracks, vias, snap_tolerance=config.snap_tolerance)))
    if config.check_courtyard_overlap:
        checks.append(("courtyard-overlap", partial(
            check_courtyard_overlap, footprints,
            apply_rotation=config.apply_footprint_rotation)))

    log.info("DRC: starting — %d tracks, %d vias, %d pads, %d checks%s",
             len(tracks), len(vias), len(pads), len(checks),
             " (parallel)" if config.parallel else "")

    if config.parallel:
        with ThreadPoolExecutor(max_workers=len(checks), thread_name_prefix="drc") as pool:
            futures = [(name, pool.submit(fn)) for name, fn in checks]
            results = [(name, f.result()) for name, f in futures]
    else:
        results = [(name, fn()) for name, fn in checks]

    violations: list[DRCViolation] = []
    for name, found in results:
        log.debug("  [%s] %d violation(s)", name, len(found))
        violations.extend(found)

    log.info("DRC: complete — %d violation(s) found", len(violations))
    return violations


def check_board(
    board: Board,
    rules: DesignRules = DEFAULT_RULES,
    *,
    config: DRCConfig | None = None,
) -> list[DRCViolation]:
    """:func:`check` over a whole :class:`Board`."""
    return check(board.tracks, board.vias, board.footprints, rules, config=config)
