"""Routing serialization — JSON conversion."""

from __future__ import annotations

from pcbcore.pipeline.board.parsing import parse_track
from pcbcore.pipeline.board.serialization import track_to_dict

from .models import RoutingResult


def routing_to_dict(result: RoutingResult) -> dict:
    """Serialize a RoutingResult to a JSON-safe dict."""
    return {
        "tracks": [track_to_dict(t) for t in result.tracks],
        "routed": result.routed,
        "failed": result.failed,
        "total": result.total,
    }


def parse_routing(data: dict) -> RoutingResult:
    """Parse a routing result dict back into a RoutingResult."""
    return RoutingResult(
        tracks=[parse_track(t) for t in data.get("tracks", [])],
        routed=int(data.get("routed", 0)),
        failed=int(data.get("failed", 0)),
        total=int(data.get("total", 0)),
    )
