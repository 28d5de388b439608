"""Task boundary — run the router or the DRC off the caller's thread.

Submodules:
  messages  Request / event dataclasses, request parsing, wire encoding.
  runner    Synchronous runs and background TaskHandles.
"""

from .messages import (
    AutorouteRequest, DRCRequest,
    ProgressEvent, CompleteEvent, CancelledEvent, ErrorEvent, ViolationsEvent,
    AutorouteEvent, DRCEvent,
    event_to_dict, is_terminal,
    parse_autoroute_request, parse_drc_request,
)
from .runner import TaskHandle, run_autoroute, run_drc, start_autoroute, start_drc

__all__ = [
    # Messages
    "AutorouteRequest", "DRCRequest",
    "ProgressEvent", "CompleteEvent", "CancelledEvent", "ErrorEvent", "ViolationsEvent",
    "AutorouteEvent", "DRCEvent",
    "event_to_dict", "is_terminal",
    "parse_autoroute_request", "parse_drc_request",
    # Runner
    "TaskHandle", "run_autoroute", "run_drc", "start_autoroute", "start_drc",
]
