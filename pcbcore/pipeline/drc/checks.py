"""Individual design rule checks.

Every check is a pure function of its inputs and returns a fresh list
of violations, so checks can run in any order or concurrently.
"""

from __future__ import annotations

import logging

from shapely.geometry import Polygon, box

from pcbcore.geometry import (
    distance, midpoint,
    segment_to_segment_distance, segment_to_segment_distance_exact,
)
from pcbcore.pipeline.board.models import Footprint, Track, Via
from pcbcore.pipeline.config import DesignRules

from .models import DRCViolation, PlacedPad, Severity, ViolationType
from .spatial import BruteForcePairs, PairStrategy


log = logging.getLogger(__name__)


def placed_pads(footprints: list[Footprint], *, apply_rotation: bool = False) -> list[PlacedPad]:
    """Flatten all footprints' pads with absolute positions."""
    pads: list[PlacedPad] = []
    for fp in footprints:
        for pad in fp.pads:
            pads.append(PlacedPad(
                id=pad.id,
                net=pad.net,
                position=fp.pad_world_xy(pad, apply_rotation=apply_rotation),
                extent=pad.max_extent,
                footprint=fp.label,
                drill=pad.drill,
                through_hole=pad.mount == "through_hole",
            ))
    return pads


# ── Core checks ────────────────────────────────────────────────────


def check_min_track_width(tracks: list[Track], rules: DesignRules) -> list[DRCViolation]:
    violations = []
    for t in tracks:
        if t.width < rules.min_track_width:
            violations.append(DRCViolation(
                type=ViolationType.MIN_TRACK_WIDTH,
                severity=Severity.ERROR,
                message=f"Track {t.id} width {t.width}mm is below minimum {rules.min_track_width}mm",
                position=t.anchor,
                object_ids=(t.id,),
            ))
    return violations


def check_min_drill(
    vias: list[Via],
    rules: DesignRules,
    *,
    tolerance: float = 0.9,
) -> list[DRCViolation]:
    """Vias drilled below ``tolerance * rules.via_drill``.  No drill, no check."""
    violations = []
    limit = rules.via_drill * tolerance
    for v in vias:
        if v.drill is None:
            continue
        if v.drill < limit:
            violations.append(DRCViolation(
                type=ViolationType.MIN_DRILL,
                severity=Severity.ERROR,
                message=f"Via {v.id} drill {v.drill}mm is below minimum {rules.via_drill}mm",
                position=v.position,
                object_ids=(v.id,),
            ))
    return violations


def check_track_clearance(
    tracks: list[Track],
    rules: DesignRules,
    *,
    pairs: PairStrategy | None = None,
    exact: bool = False,
) -> list[DRCViolation]:
    """Segment-pair clearance between same-layer tracks of different nets.

    Required centreline distance is ``clearance + (w_a + w_b) / 2``;
    only a strictly smaller distance violates.
    """
    if pairs is None:
        pairs = BruteForcePairs()
    seg_dist = segment_to_segment_distance_exact if exact else segment_to_segment_distance

    violations = []
    for i, j, sa, sb in pairs.segment_pairs(tracks, rules.clearance):
        ta, tb = tracks[i], tracks[j]
        a1, a2 = ta.points[sa], ta.points[sa + 1]
        dist = seg_dist(a1, a2, tb.points[sb], tb.points[sb + 1])
        required = rules.track_clearance(ta.width, tb.width)
        if dist < required:
            violations.append(DRCViolation(
                type=ViolationType.CLEARANCE,
                severity=Severity.ERROR,
                message=(
                    f"Clearance violation between track {ta.id} (net: {ta.net}) and "
                    f"track {tb.id} (net: {tb.net}): {dist:.3f}mm < {required:.3f}mm"
                ),
                position=midpoint(a1, a2),
                object_ids=(ta.id, tb.id),
            ))
    return violations


def check_pad_clearance(
    pads: list[PlacedPad],
    rules: DesignRules,
    *,
    pairs: PairStrategy | None = None,
) -> list[DRCViolation]:
    """Centre distance between pads of different nets.

    Required distance is ``clearance + min(extent_a, extent_b)`` where
    extent is the larger pad dimension.  Pads without a net are skipped.
    """
    if pairs is None:
        pairs = BruteForcePairs()

    violations = []
    for i, j in pairs.pad_pairs(pads, rules.clearance):
        a, b = pads[i], pads[j]
        dist = distance(a.position, b.position)
        required = rules.clearance + min(a.extent, b.extent)
        if dist < required:
            violations.append(DRCViolation(
                type=ViolationType.CLEARANCE,
                severity=Severity.ERROR,
                message=(
                    f"Pad clearance violation between {a.footprint}.{a.id} (net: {a.net}) "
                    f"and {b.footprint}.{b.id} (net: {b.net})"
                ),
                position=a.position,
                object_ids=(a.id, b.id),
            ))
    return violations


# ── Optional checks ────────────────────────────────────────────────


def check_min_via_diameter(
    vias: list[Via],
    rules: DesignRules,
    *,
    tolerance: float = 0.9,
) -> list[DRCViolation]:
    violations = []
    limit = rules.via_diameter * tolerance
    for v in vias:
        if v.diameter < limit:
            violations.append(DRCViolation(
                type=ViolationType.MIN_VIA_DIAMETER,
                severity=Severity.ERROR,
                message=f"Via {v.id} diameter {v.diameter}mm is below minimum {rules.via_diameter}mm",
                position=v.position,
                object_ids=(v.id,),
            ))
    return violations


def check_hole_to_hole(
    vias: list[Via],
    pads: list[PlacedPad],
    *,
    min_hole_to_hole: float,
) -> list[DRCViolation]:
    """Edge-to-edge spacing between drilled holes (vias and through-hole pads)."""
    holes = [(v.id, v.position, v.drill) for v in vias if v.drill]
    holes += [(p.id, p.position, p.drill) for p in pads if p.through_hole and p.drill]

    violations = []
    for i in range(len(holes)):
        for j in range(i + 1, len(holes)):
            id_a, pos_a, drill_a = holes[i]
            id_b, pos_b, drill_b = holes[j]
            edge = distance(pos_a, pos_b) - drill_a / 2 - drill_b / 2
            if edge < min_hole_to_hole:
                violations.append(DRCViolation(
                    type=ViolationType.HOLE_TO_HOLE,
                    severity=Severity.ERROR,
                    message=f"Hole-to-hole distance {edge:.3f}mm < minimum {min_hole_to_hole}mm",
                    position=midpoint(pos_a, pos_b),
                    object_ids=(id_a, id_b),
                ))
    return violations


class _UnionFind:
    def __init__(self) -> None:
        self.parent: list[int] = []

    def add(self) -> int:
        self.parent.append(len(self.parent))
        return len(self.parent) - 1

    def find(self, x: int) -> int:
        parent = self.parent
        while parent[x] != x:
            parent[x] = parent[parent[x]]
            x = parent[x]
        return x

    def union(self, a: int, b: int) -> None:
        ra, rb = self.find(a), self.find(b)
        if ra != rb:
            self.parent[rb] = ra


def check_unconnected(
    pads: list[PlacedPad],
    tracks: list[Track],
    vias: list[Via],
    *,
    snap_tolerance: float = 0.01,
) -> list[DRCViolation]:
    """Pads of a net not joined to the net's first pad by copper.

    Consecutive track points are joined; track points and vias join
    whatever lies within *snap_tolerance*; a pad joins any copper point
    within its half extent.
    """
    net_pads: dict[str, list[PlacedPad]] = {}
    for pad in pads:
        if pad.net:
            net_pads.setdefault(pad.net, []).append(pad)

    violations = []
    for net, members in net_pads.items():
        if len(members) < 2:
            continue

        uf = _UnionFind()
        points: list[tuple[tuple[float, float], int]] = []

        def register(p, reach):
            idx = uf.add()
            for q, other in points:
                if distance(p, q) <= reach:
                    uf.union(other, idx)
            points.append((p, idx))
            return idx

        for track in tracks:
            if track.net != net:
                continue
            prev = None
            for p in track.points:
                idx = register(p, snap_tolerance)
                if prev is not None:
                    uf.union(prev, idx)
                prev = idx
        for via in vias:
            if via.net == net:
                register(via.position, snap_tolerance)

        pad_nodes = [register(pad.position, max(pad.extent / 2, snap_tolerance))
                     for pad in members]

        root = uf.find(pad_nodes[0])
        for pad, idx in zip(members[1:], pad_nodes[1:]):
            if uf.find(idx) != root:
                violations.append(DRCViolation(
                    type=ViolationType.UNCONNECTED,
                    severity=Severity.ERROR,
                    message=f'Unrouted connection on net "{net}"',
                    position=pad.position,
                    object_ids=(members[0].id, pad.id),
                ))
        log.debug("Unconnected check: net %s, %d pads, %d copper points",
                  net, len(members), len(points) - len(members))
    return violations


COURTYARD_MARGIN = 0.25     # added around pad extents when no courtyard is drawn


def footprint_courtyard(fp: Footprint, *, apply_rotation: bool = False) -> Polygon | None:
    """Axis-aligned courtyard box of *fp* in world coordinates.

    Uses the drawn courtyard outline when there is one, otherwise the
    pad extents grown by :data:`COURTYARD_MARGIN`.  None for a footprint
    with neither.
    """
    if fp.courtyard:
        xs, ys = zip(*(fp.world_xy(p, apply_rotation=apply_rotation) for p in fp.courtyard))
        return box(min(xs), min(ys), max(xs), max(ys))
    if not fp.pads:
        return None

    boxes = []
    for pad in fp.pads:
        x, y = fp.pad_world_xy(pad, apply_rotation=apply_rotation)
        hw, hh = pad.size[0] / 2, pad.size[1] / 2
        boxes.append((x - hw, y - hh, x + hw, y + hh))
    return box(
        min(b[0] for b in boxes) - COURTYARD_MARGIN,
        min(b[1] for b in boxes) - COURTYARD_MARGIN,
        max(b[2] for b in boxes) + COURTYARD_MARGIN,
        max(b[3] for b in boxes) + COURTYARD_MARGIN,
    )


def check_courtyard_overlap(
    footprints: list[Footprint],
    *,
    apply_rotation: bool = False,
) -> list[DRCViolation]:
    """Footprints whose courtyard boxes overlap or touch (warning)."""
    courtyards = []
    for fp in footprints:
        court = footprint_courtyard(fp, apply_rotation=apply_rotation)
        if court is not None:
            courtyards.append((fp, court))
    # sorted by min-x, so the inner loop stops at the first box starting past max_x
    courtyards.sort(key=lambda item: item[1].bounds[0])

    violations = []
    for i, (fa, ca) in enumerate(courtyards):
        max_x = ca.bounds[2]
        for fb, cb in courtyards[i + 1:]:
            if cb.bounds[0] > max_x:
                break
            if ca.intersects(cb):
                violations.append(DRCViolation(
                    type=ViolationType.OVERLAP,
                    severity=Severity.WARNING,
                    message=f"Courtyard overlap between footprints {fa.label} and {fb.label}",
                    position=midpoint(fa.position, fb.position),
                    object_ids=(fa.id, fb.id),
                ))
    return violations
