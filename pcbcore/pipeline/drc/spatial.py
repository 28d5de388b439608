"""Candidate-pair generation for the clearance checks.

The clearance checks only ask "which pairs might be too close?"; the
exact distance test stays in :mod:`.checks`.  Two interchangeable
strategies answer that question:

  BruteForcePairs  every same-layer / different-net pair, O(n²)
  STRtreePairs     shapely STRtree over clearance-inflated bounding boxes

A pair closer than its required clearance always has overlapping
inflated boxes, so both strategies feed the checks the same violating
pairs, and both return them in the same (i, j, ...) order.
"""

from __future__ import annotations

from typing import Protocol

from shapely import STRtree, box

from pcbcore.pipeline.board.models import Track

from .models import PlacedPad


# Pad (i, j) or segment (track_i, track_j, seg_a, seg_b) indices.
PadPair = tuple[int, int]
SegmentPair = tuple[int, int, int, int]

# Box inflation slack so pairs at exactly the required distance still
# reach the exact test.
_EPS = 1e-9


class PairStrategy(Protocol):
    def segment_pairs(self, tracks: list[Track], clearance: float) -> list[SegmentPair]: ...

    def pad_pairs(self, pads: list[PlacedPad], clearance: float) -> list[PadPair]: ...


def _tracks_may_conflict(a: Track, b: Track) -> bool:
    return a.net != b.net and a.layer == b.layer


def _pads_may_conflict(a: PlacedPad, b: PlacedPad) -> bool:
    return bool(a.net) and bool(b.net) and a.net != b.net


class BruteForcePairs:
    """Every candidate pair, in nested-loop order."""

    def segment_pairs(self, tracks: list[Track], clearance: float) -> list[SegmentPair]:
        pairs: list[SegmentPair] = []
        for i in range(len(tracks)):
            for j in range(i + 1, len(tracks)):
                ta, tb = tracks[i], tracks[j]
                if not _tracks_may_conflict(ta, tb):
                    continue
                for sa in range(len(ta.points) - 1):
                    for sb in range(len(tb.points) - 1):
                        pairs.append((i, j, sa, sb))
        return pairs

    def pad_pairs(self, pads: list[PlacedPad], clearance: float) -> list[PadPair]:
        pairs: list[PadPair] = []
        for i in range(len(pads)):
            for j in range(i + 1, len(pads)):
                if _pads_may_conflict(pads[i], pads[j]):
                    pairs.append((i, j))
        return pairs


class STRtreePairs:
    """Broad phase on a shapely STRtree.

    Each object's bounding box is inflated by half of its share of the
    required clearance, so two boxes overlap whenever the objects are
    closer than ``clearance + (size_a + size_b) / 2``.
    """

    def segment_pairs(self, tracks: list[Track], clearance: float) -> list[SegmentPair]:
        owners: list[tuple[int, int]] = []
        boxes = []
        for ti, track in enumerate(tracks):
            margin = (clearance + track.width) / 2 + _EPS
            for si, (p, q) in enumerate(track.segments()):
                owners.append((ti, si))
                boxes.append(box(
                    min(p[0], q[0]) - margin, min(p[1], q[1]) - margin,
                    max(p[0], q[0]) + margin, max(p[1], q[1]) + margin,
                ))
        if not boxes:
            return []

        tree = STRtree(boxes)
        hits = tree.query(boxes, predicate="intersects")
        pairs: set[SegmentPair] = set()
        for a, b in zip(hits[0], hits[1]):
            ti, sa = owners[int(a)]
            tj, sb = owners[int(b)]
            if ti >= tj:
                continue
            if _tracks_may_conflict(tracks[ti], tracks[tj]):
                pairs.add((ti, tj, sa, sb))
        return sorted(pairs)

    def pad_pairs(self, pads: list[PlacedPad], clearance: float) -> list[PadPair]:
        if not pads:
            return []
        boxes = []
        for pad in pads:
            margin = (clearance + pad.extent) / 2 + _EPS
            x, y = pad.position
            boxes.append(box(x - margin, y - margin, x + margin, y + margin))

        tree = STRtree(boxes)
        hits = tree.query(boxes, predicate="intersects")
        pairs: set[PadPair] = set()
        for a, b in zip(hits[0], hits[1]):
            i, j = int(a), int(b)
            if i < j and _pads_may_conflict(pads[i], pads[j]):
                pairs.add((i, j))
        return sorted(pairs)


def pair_strategy(use_spatial_index: bool) -> PairStrategy:
    return STRtreePairs() if use_spatial_index else BruteForcePairs()
