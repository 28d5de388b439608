"""Board parsing — convert raw request dicts/JSON into board dataclasses.

Request documents come from the editor in camelCase
(``boardOutline``, ``designRules``, ``minTrackWidth``); snake_case keys
are accepted too.  Points may be ``{"x": .., "y": ..}`` objects or
``[x, y]`` pairs.
"""

from __future__ import annotations

import logging

from pcbcore.geometry import Point
from pcbcore.pipeline.config import DesignRules, DEFAULT_RULES

from .models import Board, BoardOutline, Footprint, Pad, Track, Via


log = logging.getLogger(__name__)


class DocumentError(ValueError):
    """Raised when a request document cannot be turned into a board."""


def _get(data: dict, *keys, default=None):
    """First present key among *keys* (camelCase / snake_case aliases)."""
    for k in keys:
        if k in data:
            return data[k]
    return default


def parse_point(value) -> Point:
    if isinstance(value, dict):
        try:
            return (float(value["x"]), float(value["y"]))
        except KeyError as exc:
            raise DocumentError(f"point is missing {exc.args[0]!r}: {value!r}") from None
    try:
        x, y = value
    except (TypeError, ValueError):
        raise DocumentError(f"not a point: {value!r}") from None
    return (float(x), float(y))


def _parse_size(value) -> tuple[float, float]:
    if isinstance(value, dict):
        w = _get(value, "x", "w", "width")
        h = _get(value, "y", "h", "height")
        if w is None or h is None:
            raise DocumentError(f"not a size: {value!r}")
        return (float(w), float(h))
    return parse_point(value)


def _optional_float(value) -> float | None:
    if value is None:
        return None
    return float(value)


def _normalise_mount(value: str | None) -> str:
    if not value:
        return "smd"
    v = str(value).lower().replace("-", "_")
    if v in ("through_hole", "thru_hole", "tht", "th"):
        return "through_hole"
    return v


# ── Objects ────────────────────────────────────────────────────────


def parse_pad(data: dict) -> Pad:
    return Pad(
        id=str(data["id"]),
        net=str(_get(data, "net", "net_id", "netId", default="") or ""),
        position=parse_point(_get(data, "position", default=(0.0, 0.0))),
        size=_parse_size(_get(data, "size", default=(0.0, 0.0))),
        shape=str(data.get("shape", "rect")),
        mount=_normalise_mount(_get(data, "mount", "type")),
        drill=_optional_float(data.get("drill")),
    )


def parse_footprint(data: dict) -> Footprint:
    return Footprint(
        id=str(data["id"]),
        position=parse_point(_get(data, "position", default=(0.0, 0.0))),
        rotation=float(data.get("rotation", 0.0) or 0.0),
        layer=str(data.get("layer", "F.Cu")),
        pads=[parse_pad(p) for p in data.get("pads", [])],
        reference=str(data.get("reference", "") or ""),
        courtyard=[parse_point(p) for p in data.get("courtyard") or []],
    )


def parse_track(data: dict) -> Track:
    return Track(
        id=str(data["id"]),
        net=str(_get(data, "net", "net_id", "netId", default="") or ""),
        layer=str(data.get("layer", "F.Cu")),
        width=float(data["width"]),
        points=[parse_point(p) for p in _get(data, "points", "path", default=[])],
    )


def parse_via(data: dict) -> Via:
    return Via(
        id=str(data["id"]),
        net=str(_get(data, "net", "net_id", "netId", default="") or ""),
        position=parse_point(data["position"]),
        diameter=float(data.get("diameter", 0.0) or 0.0),
        drill=_optional_float(data.get("drill")),
    )


def _parse_outline(data) -> BoardOutline | None:
    """Outline as ``{"points": [...]}`` or a bare list of points."""
    if data is None:
        return None
    if isinstance(data, dict):
        data = data.get("points", [])
    return BoardOutline(points=[parse_point(p) for p in data])


# ── Documents ──────────────────────────────────────────────────────


def parse_board(data: dict) -> Board:
    """Parse a request ``document`` dict into a :class:`Board`."""
    if not isinstance(data, dict):
        raise DocumentError(f"document must be an object, got {type(data).__name__}")
    try:
        board = Board(
            outline=_parse_outline(_get(data, "boardOutline", "board_outline", "outline")),
            footprints=[parse_footprint(f) for f in data.get("footprints", [])],
            tracks=[parse_track(t) for t in data.get("tracks", [])],
            vias=[parse_via(v) for v in data.get("vias", [])],
            layers=[str(layer) for layer in data.get("layers", [])],
        )
    except DocumentError:
        raise
    except KeyError as exc:
        raise DocumentError(f"document object is missing required key {exc.args[0]!r}") from None
    except (TypeError, ValueError) as exc:
        raise DocumentError(f"malformed document: {exc}") from None

    log.debug("Parsed board: %d footprints, %d tracks, %d vias",
              len(board.footprints), len(board.tracks), len(board.vias))
    return board


def parse_rules(data: dict | None, fallback: DesignRules = DEFAULT_RULES) -> DesignRules:
    """Parse design rules; missing keys take the value from *fallback*."""
    if not data:
        return fallback
    try:
        return DesignRules(
            clearance=float(_get(data, "clearance", default=fallback.clearance)),
            track_width=float(_get(data, "trackWidth", "track_width", default=fallback.track_width)),
            via_diameter=float(_get(data, "viaDiameter", "via_diameter", default=fallback.via_diameter)),
            via_drill=float(_get(data, "viaDrill", "via_drill", default=fallback.via_drill)),
            min_track_width=float(_get(data, "minTrackWidth", "min_track_width",
                                       default=fallback.min_track_width)),
        )
    except (TypeError, ValueError) as exc:
        raise DocumentError(f"malformed design rules: {exc}") from None
