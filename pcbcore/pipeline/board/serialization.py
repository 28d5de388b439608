"""Board serialization — dataclasses to JSON-safe dicts (camelCase wire keys)."""

from __future__ import annotations

from pcbcore.geometry import Point
from pcbcore.pipeline.config import DesignRules

from .models import Track, Via


def point_to_dict(p: Point) -> dict:
    return {"x": p[0], "y": p[1]}


def track_to_dict(track: Track) -> dict:
    return {
        "id": track.id,
        "net": track.net,
        "layer": track.layer,
        "width": track.width,
        "points": [point_to_dict(p) for p in track.points],
    }


def via_to_dict(via: Via) -> dict:
    return {
        "id": via.id,
        "net": via.net,
        "position": point_to_dict(via.position),
        "diameter": via.diameter,
        "drill": via.drill,
    }


def rules_to_dict(rules: DesignRules) -> dict:
    return {
        "clearance": rules.clearance,
        "trackWidth": rules.track_width,
        "viaDiameter": rules.via_diameter,
        "viaDrill": rules.via_drill,
        "minTrackWidth": rules.min_track_width,
    }
