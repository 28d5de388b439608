"""DRC serialization — JSON conversion."""

from __future__ import annotations

from pcbcore.pipeline.board.parsing import parse_point
from pcbcore.pipeline.board.serialization import point_to_dict

from .models import DRCViolation, Severity, ViolationType


def violation_to_dict(v: DRCViolation) -> dict:
    return {
        "id": v.id,
        "type": v.type.value,
        "severity": v.severity.value,
        "message": v.message,
        "position": point_to_dict(v.position),
        "objectIds": list(v.object_ids),
    }


def violations_to_dict(violations: list[DRCViolation]) -> dict:
    """Serialize a check result to the ``{"violations": [...]}`` payload."""
    return {"violations": [violation_to_dict(v) for v in violations]}


def parse_violations(data: dict) -> list[DRCViolation]:
    """Parse a ``{"violations": [...]}`` payload back into violations."""
    return [
        DRCViolation(
            id=v["id"],
            type=ViolationType(v["type"]),
            severity=Severity(v["severity"]),
            message=v["message"],
            position=parse_point(v["position"]),
            object_ids=tuple(v.get("objectIds", v.get("object_ids", []))),
        )
        for v in data.get("violations", [])
    ]
