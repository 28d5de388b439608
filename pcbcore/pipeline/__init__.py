"""Pipeline stages — board model, router, design rule check.

The router and the DRC share only the board document shape; neither
stage calls the other:

  board   — footprints, pads, tracks, vias (parsed from request dicts)
  router  — grid-based Lee autorouter, board in → tracks out
  drc     — clearance / width / drill checks, board in → violations out
"""
