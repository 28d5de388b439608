"""Task messages — requests in, events out.

Every message kind is its own frozen dataclass and the event unions
are closed, so consumers dispatch with ``match`` on the class:

    match event:
        case ProgressEvent(progress=p): ...
        case CompleteEvent(result=r): ...
        case CancelledEvent() | ErrorEvent(): ...

Wire format (``event_to_dict``) keeps the editor's camelCase JSON.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

from pcbcore.pipeline.board import Board, DocumentError, parse_board, parse_rules
from pcbcore.pipeline.config import DesignRules
from pcbcore.pipeline.drc import DRCConfig, DRCViolation, violations_to_dict
from pcbcore.pipeline.router import RouterConfig, RoutingResult, routing_to_dict


# ── Requests ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class AutorouteRequest:
    board: Board
    rules: DesignRules
    config: RouterConfig = field(default_factory=RouterConfig)


@dataclass(frozen=True)
class DRCRequest:
    board: Board
    rules: DesignRules
    config: DRCConfig = field(default_factory=DRCConfig)


# ── Events ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class ProgressEvent:
    type: ClassVar[str] = "progress"
    progress: float
    routed: int
    failed: int


@dataclass(frozen=True)
class CompleteEvent:
    type: ClassVar[str] = "complete"
    result: RoutingResult


@dataclass(frozen=True)
class CancelledEvent:
    type: ClassVar[str] = "cancelled"
    routed: int
    failed: int
    total: int


@dataclass(frozen=True)
class ErrorEvent:
    """Fatal failure (bad configuration, oversized grid, malformed request).

    Carries no partial result.
    """
    type: ClassVar[str] = "error"
    message: str


@dataclass(frozen=True)
class ViolationsEvent:
    type: ClassVar[str] = "violations"
    violations: list[DRCViolation]


AutorouteEvent = Union[ProgressEvent, CompleteEvent, CancelledEvent, ErrorEvent]
DRCEvent = Union[ViolationsEvent, ErrorEvent]

TERMINAL_EVENTS = (CompleteEvent, CancelledEvent, ErrorEvent, ViolationsEvent)


def is_terminal(event) -> bool:
    return isinstance(event, TERMINAL_EVENTS)


def event_to_dict(event: AutorouteEvent | DRCEvent) -> dict:
    """Serialize an event to its JSON wire shape."""
    match event:
        case ProgressEvent(progress=progress, routed=routed, failed=failed):
            return {"type": "progress", "progress": progress, "routed": routed, "failed": failed}
        case CompleteEvent(result=result):
            return {"type": "complete", "result": routing_to_dict(result)}
        case CancelledEvent(routed=routed, failed=failed, total=total):
            return {"type": "cancelled", "routed": routed, "failed": failed, "total": total}
        case ErrorEvent(message=message):
            return {"type": "error", "message": message}
        case ViolationsEvent(violations=violations):
            return violations_to_dict(violations)
    raise TypeError(f"not a task event: {event!r}")


# ── Request parsing ────────────────────────────────────────────────


def _optional(value, convert):
    return None if value is None else convert(value)


def _router_config(data: dict | None) -> RouterConfig:
    data = data or {}
    cfg = RouterConfig()
    resolution = data.get("gridResolution", data.get("grid_resolution", cfg.grid_resolution))
    layer = data.get("preferredLayer", data.get("preferred_layer")) or cfg.preferred_layer
    interval = int(data.get("cancelCheckInterval", cfg.cancel_check_interval))
    if interval < 1:
        raise ValueError(f"cancelCheckInterval must be >= 1, got {interval}")
    return RouterConfig(
        grid_resolution=resolution,
        preferred_layer=str(layer),
        apply_footprint_rotation=bool(data.get("applyFootprintRotation",
                                               cfg.apply_footprint_rotation)),
        max_grid_cells=int(data.get("maxGridCells", cfg.max_grid_cells)),
        max_expansions=_optional(data.get("maxExpansions", cfg.max_expansions), int),
        time_budget_s=_optional(data.get("timeBudgetS", cfg.time_budget_s), float),
        cancel_check_interval=interval,
    )


def _drc_config(data: dict | None) -> DRCConfig:
    data = data or {}
    cfg = DRCConfig()
    return DRCConfig(
        use_spatial_index=bool(data.get("useSpatialIndex", cfg.use_spatial_index)),
        parallel=bool(data.get("parallel", cfg.parallel)),
        exact_segment_distance=bool(data.get("exactSegmentDistance", cfg.exact_segment_distance)),
        apply_footprint_rotation=bool(data.get("applyFootprintRotation",
                                               cfg.apply_footprint_rotation)),
        min_drill_tolerance=float(data.get("minDrillTolerance", cfg.min_drill_tolerance)),
        check_via_diameter=bool(data.get("checkViaDiameter", cfg.check_via_diameter)),
        check_hole_to_hole=bool(data.get("checkHoleToHole", cfg.check_hole_to_hole)),
        check_unconnected=bool(data.get("checkUnconnected", cfg.check_unconnected)),
        check_courtyard_overlap=bool(data.get("checkCourtyardOverlap",
                                              cfg.check_courtyard_overlap)),
        min_hole_to_hole=float(data.get("minHoleToHole", cfg.min_hole_to_hole)),
        snap_tolerance=float(data.get("snapTolerance", cfg.snap_tolerance)),
    )


def parse_autoroute_request(data: dict) -> AutorouteRequest:
    """``{document: {boardOutline, footprints}, rules, config}`` → request."""
    if not isinstance(data, dict) or "document" not in data:
        raise DocumentError("autoroute request needs a 'document'")
    try:
        config = _router_config(data.get("config"))
    except (TypeError, ValueError) as exc:
        raise DocumentError(f"malformed router config: {exc}") from None
    return AutorouteRequest(
        board=parse_board(data["document"]),
        rules=parse_rules(data.get("rules")),
        config=config,
    )


def parse_drc_request(data: dict) -> DRCRequest:
    """``{document: {footprints, tracks, vias, designRules, layers}, rules}`` → request.

    ``rules`` falls back to ``document.designRules``.
    """
    if not isinstance(data, dict) or "document" not in data:
        raise DocumentError("DRC request needs a 'document'")
    document = data["document"]
    board = parse_board(document)
    rules = parse_rules(document.get("designRules", document.get("design_rules")))
    rules = parse_rules(data.get("rules"), fallback=rules)
    try:
        config = _drc_config(data.get("config"))
    except (TypeError, ValueError) as exc:
        raise DocumentError(f"malformed DRC config: {exc}") from None
    return DRCRequest(board=board, rules=rules, config=config)
