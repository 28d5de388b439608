"""Board document parsing, serialization and shared geometry helpers."""

from __future__ import annotations

import math
import unittest

from pcbcore.geometry import (
    distance, midpoint, point_to_segment_distance, rotate_point, segments_intersect,
)
from pcbcore.pipeline.board import (
    DocumentError, parse_board, parse_rules, rules_to_dict, track_to_dict, via_to_dict,
)
from pcbcore.pipeline.board.parsing import parse_pad, parse_point
from pcbcore.pipeline.config import DEFAULT_RULES, DesignRules
from tests.board_fixture import track, via


class TestGeometry(unittest.TestCase):

    def test_point_to_segment(self):
        self.assertAlmostEqual(point_to_segment_distance((5, 3), (0, 0), (10, 0)), 3.0)
        self.assertAlmostEqual(point_to_segment_distance((-3, 4), (0, 0), (10, 0)), 5.0)
        self.assertAlmostEqual(point_to_segment_distance((3, 4), (0, 0), (0, 0)), 5.0)

    def test_segments_intersect(self):
        self.assertTrue(segments_intersect((0, 0), (2, 2), (0, 2), (2, 0)))
        self.assertFalse(segments_intersect((0, 0), (1, 0), (0, 1), (1, 1)))

    def test_small_helpers(self):
        self.assertEqual(distance((0, 0), (3, 4)), 5.0)
        self.assertEqual(midpoint((0, 0), (4, 2)), (2.0, 1.0))
        x, y = rotate_point((1, 0), 90)
        self.assertAlmostEqual(x, 0.0)
        self.assertAlmostEqual(y, 1.0)


class TestDesignRules(unittest.TestCase):

    def test_defaults(self):
        self.assertEqual(DEFAULT_RULES, DesignRules(
            clearance=0.2, track_width=0.25, via_diameter=0.8, via_drill=0.4, min_track_width=0.2,
        ))

    def test_clearance_cells_round_up(self):
        self.assertEqual(DesignRules(clearance=0.2).clearance_cells(0.5), 1)
        self.assertEqual(DesignRules(clearance=1.0).clearance_cells(0.5), 2)
        self.assertEqual(DesignRules(clearance=0.0).clearance_cells(0.5), 0)

    def test_track_clearance(self):
        self.assertAlmostEqual(DesignRules(clearance=1.0).track_clearance(2.0, 2.0), 3.0)

    def test_parse_rules_camel_and_snake(self):
        rules = parse_rules({"trackWidth": 0.3, "min_track_width": 0.15})
        self.assertEqual(rules.track_width, 0.3)
        self.assertEqual(rules.min_track_width, 0.15)
        self.assertEqual(rules.clearance, DEFAULT_RULES.clearance)

    def test_rules_round_trip(self):
        rules = DesignRules(clearance=0.15, via_drill=0.3)
        self.assertEqual(parse_rules(rules_to_dict(rules)), rules)


class TestParsing(unittest.TestCase):

    def test_point_forms(self):
        self.assertEqual(parse_point({"x": 1, "y": 2}), (1.0, 2.0))
        self.assertEqual(parse_point([3, 4]), (3.0, 4.0))
        for bad in ({"x": 1}, 5, [1, 2, 3]):
            with self.subTest(value=bad):
                with self.assertRaises(DocumentError):
                    parse_point(bad)

    def test_pad_net_and_mount_aliases(self):
        p = parse_pad({"id": "1", "netId": "GND", "size": {"x": 1.2, "y": 0.8},
                       "type": "thru_hole", "drill": 0.6})
        self.assertEqual(p.net, "GND")
        self.assertEqual(p.size, (1.2, 0.8))
        self.assertEqual(p.mount, "through_hole")
        self.assertEqual(p.drill, 0.6)
        self.assertEqual(p.max_extent, 1.2)

        bare = parse_pad({"id": "2"})
        self.assertEqual(bare.net, "")
        self.assertEqual(bare.mount, "smd")
        self.assertIsNone(bare.drill)

    def test_board(self):
        board = parse_board({
            "board_outline": [[0, 0], [20, 0], [20, 10], [0, 10]],
            "footprints": [{"id": "U1", "reference": "R1", "position": {"x": 5, "y": 5},
                            "rotation": 90, "pads": [{"id": "1", "net": "N"}],
                            "courtyard": [[-1, -1], [1, 1]]}],
            "tracks": [{"id": "t1", "net": "N", "width": 0.25, "path": [[0, 0], [1, 0]]}],
            "vias": [{"id": "v1", "position": [1, 1], "diameter": 0.8}],
            "layers": ["F.Cu", "B.Cu"],
        })
        self.assertEqual(len(board.outline.points), 4)
        fp = board.footprints[0]
        self.assertEqual((fp.label, fp.rotation, fp.layer), ("R1", 90.0, "F.Cu"))
        self.assertEqual(fp.courtyard, [(-1.0, -1.0), (1.0, 1.0)])
        self.assertEqual(board.tracks[0].points, [(0.0, 0.0), (1.0, 0.0)])
        self.assertEqual(board.tracks[0].layer, "F.Cu")
        self.assertIsNone(board.vias[0].drill)
        self.assertEqual(board.layers, ["F.Cu", "B.Cu"])

    def test_empty_board(self):
        board = parse_board({})
        self.assertIsNone(board.outline)
        self.assertEqual((board.footprints, board.tracks, board.vias), ([], [], []))

    def test_errors(self):
        with self.assertRaises(DocumentError):
            parse_board("not a document")
        with self.assertRaises(DocumentError):
            parse_board({"tracks": [{"id": "t1", "points": []}]})      # no width
        with self.assertRaises(DocumentError):
            parse_board({"vias": [{"id": "v1", "position": [0, 0], "diameter": "big"}]})


class TestSerialization(unittest.TestCase):

    def test_track_dict(self):
        d = track_to_dict(track("t1", "N", [(0, 0), (1, 2)], width=0.3, layer="B.Cu"))
        self.assertEqual(d, {
            "id": "t1", "net": "N", "layer": "B.Cu", "width": 0.3,
            "points": [{"x": 0, "y": 0}, {"x": 1, "y": 2}],
        })

    def test_via_dict_round_trips_through_parser(self):
        v = via("v1", "N", 2.0, 3.0, drill=None)
        board = parse_board({"vias": [via_to_dict(v)]})
        self.assertEqual(board.vias[0], v)
        self.assertTrue(math.isclose(board.vias[0].diameter, 0.8))


if __name__ == "__main__":
    unittest.main()
