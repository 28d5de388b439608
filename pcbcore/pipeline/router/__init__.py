"""Router — Lee wave-expansion autorouting between same-net pads.

Submodules:
  models        Dataclasses, configuration constants, exceptions.
  connectivity  Ratsnest extraction (pads chained per net).
  grid          Discretized routing grid (blocked flags + wave state).
  pathfinder    Lee BFS search and path simplification.
  engine        Orchestrator: route every connection on one grid.
  serialization JSON conversion (routing_to_dict, parse_routing).
"""

from .models import (
    Connection, RoutingResult, RouterConfig,
    RoutingError, GridConfigError, GridTooLargeError, RoutingCancelled,
)
from .connectivity import build_connections
from .grid import RoutingGrid
from .pathfinder import find_path, lee_search, simplify_path
from .engine import Autorouter, route_board
from .serialization import routing_to_dict, parse_routing

__all__ = [
    # Models
    "Connection", "RoutingResult", "RouterConfig",
    "RoutingError", "GridConfigError", "GridTooLargeError", "RoutingCancelled",
    # Algorithm
    "build_connections", "RoutingGrid", "find_path", "lee_search", "simplify_path",
    # Engine
    "Autorouter", "route_board",
    # Serialization
    "routing_to_dict", "parse_routing",
]
