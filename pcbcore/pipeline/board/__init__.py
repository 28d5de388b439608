"""Board document — the read-only PCB snapshot both stages consume.

Submodules:
  models         Footprint / Pad / Track / Via / Board dataclasses.
  parsing        Request dict → dataclasses (parse_board, parse_rules).
  serialization  Dataclasses → JSON-safe dicts.
"""

from .models import Board, BoardOutline, Footprint, Pad, Track, Via
from .parsing import DocumentError, parse_board, parse_rules
from .serialization import track_to_dict, via_to_dict, rules_to_dict

__all__ = [
    # Models
    "Board", "BoardOutline", "Footprint", "Pad", "Track", "Via",
    # Parsing
    "DocumentError", "parse_board", "parse_rules",
    # Serialization
    "track_to_dict", "via_to_dict", "rules_to_dict",
]
