"""Ratsnest extraction — group pads by net and chain them into connections."""

from __future__ import annotations

from pcbcore.geometry import Point
from pcbcore.pipeline.board.models import Footprint

from .models import Connection


def group_pads_by_net(
    footprints: list[Footprint],
    *,
    apply_rotation: bool = False,
) -> dict[str, list[Point]]:
    """Absolute pad positions per net, in encounter order.

    Pads with an empty net are skipped.  Dict order is the order in
    which each net was first seen.
    """
    net_pads: dict[str, list[Point]] = {}
    for fp in footprints:
        for pad in fp.pads:
            if not pad.net:
                continue
            pos = fp.pad_world_xy(pad, apply_rotation=apply_rotation)
            net_pads.setdefault(pad.net, []).append(pos)
    return net_pads


def build_connections(
    footprints: list[Footprint],
    *,
    apply_rotation: bool = False,
) -> list[Connection]:
    """Chain each net's pads: pad[i] → pad[i+1].

    A net with N pads yields N-1 connections (A-B, B-C, never A-C).
    Nets with fewer than two pads yield none.
    """
    connections: list[Connection] = []
    for net, pads in group_pads_by_net(footprints, apply_rotation=apply_rotation).items():
        for i in range(len(pads) - 1):
            connections.append(Connection(net=net, start=pads[i], end=pads[i + 1]))
    return connections
