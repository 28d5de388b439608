"""Board document dataclasses — the subset of a PCB the engine reads."""

from __future__ import annotations

from dataclasses import dataclass, field

from pcbcore.geometry import Point, rotate_point


PAD_SHAPES = ("circle", "rect", "oval")
PAD_MOUNTS = ("smd", "through_hole")


@dataclass
class Pad:
    id: str
    net: str                            # "" = unconnected
    position: Point                     # local, relative to footprint origin
    size: tuple[float, float]           # (w, h)
    shape: str = "rect"
    mount: str = "smd"
    drill: float | None = None

    @property
    def max_extent(self) -> float:
        """Larger of the two pad dimensions."""
        return max(self.size[0], self.size[1])


@dataclass
class Footprint:
    id: str
    position: Point
    rotation: float = 0.0               # degrees
    layer: str = "F.Cu"
    pads: list[Pad] = field(default_factory=list)
    reference: str = ""
    courtyard: list[Point] = field(default_factory=list)   # local outline, empty = derive from pads

    def pad_world_xy(self, pad: Pad, *, apply_rotation: bool = False) -> Point:
        """Absolute position of *pad*.

        Rotation is only applied when asked; by default the pad offset
        is added to the footprint origin as-is.
        """
        return self.world_xy(pad.position, apply_rotation=apply_rotation)

    def world_xy(self, local: Point, *, apply_rotation: bool = False) -> Point:
        px, py = local
        if apply_rotation and self.rotation:
            px, py = rotate_point((px, py), self.rotation)
        return (self.position[0] + px, self.position[1] + py)

    @property
    def label(self) -> str:
        return self.reference or self.id


@dataclass
class Track:
    """A routed copper polyline belonging to a net."""

    id: str
    net: str
    layer: str
    width: float
    points: list[Point]     # world-space waypoints

    def segments(self) -> list[tuple[Point, Point]]:
        return [(self.points[i], self.points[i + 1]) for i in range(len(self.points) - 1)]

    @property
    def anchor(self) -> Point:
        """Middle waypoint by index (not by arc length)."""
        if not self.points:
            return (0.0, 0.0)
        return self.points[len(self.points) // 2]


@dataclass
class Via:
    id: str
    net: str
    position: Point
    diameter: float
    drill: float | None = None


@dataclass
class BoardOutline:
    points: list[Point]


@dataclass
class Board:
    """Snapshot of the PCB document handed to the router or the DRC."""

    outline: BoardOutline | None = None
    footprints: list[Footprint] = field(default_factory=list)
    tracks: list[Track] = field(default_factory=list)
    vias: list[Via] = field(default_factory=list)
    layers: list[str] = field(default_factory=list)
