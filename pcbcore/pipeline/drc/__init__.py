"""DRC — design rule verification of tracks, vias and pads.

Submodules:
  models        Violation dataclass, enums, DRCConfig.
  spatial       Candidate-pair strategies (brute force / shapely STRtree).
  checks        The individual rule checks.
  engine        check / check_board: run and concatenate checks.
  serialization JSON conversion (violations_to_dict, parse_violations).
"""

from .models import DRCConfig, DRCViolation, Severity, ViolationType
from .engine import check, check_board
from .serialization import violations_to_dict, parse_violations

__all__ = [
    # Models
    "DRCConfig", "DRCViolation", "Severity", "ViolationType",
    # Engine
    "check", "check_board",
    # Serialization
    "violations_to_dict", "parse_violations",
]
