"""Tests for the task boundary: request parsing, event streams, handles."""

from __future__ import annotations

import threading
import unittest

from pcbcore.pipeline.board import DocumentError
from pcbcore.pipeline.drc import DRCConfig, ViolationType
from pcbcore.tasks import (
    AutorouteRequest, DRCRequest,
    CancelledEvent, CompleteEvent, ErrorEvent, ProgressEvent, ViolationsEvent,
    event_to_dict, is_terminal,
    parse_autoroute_request, parse_drc_request,
    run_autoroute, run_drc, start_autoroute, start_drc,
)
from pcbcore.pipeline.board.models import Board
from pcbcore.pipeline.config import DesignRules
from pcbcore.pipeline.router import RouterConfig
from tests.board_fixture import make_two_pad_board, rect_outline, single_pad_footprint, two_pad_request_dict


TIMEOUT = 30.0


def _collect(fn, *args) -> list:
    events = []
    fn(*args, events.append)
    return events


def _two_net_board() -> Board:
    return Board(
        outline=rect_outline(20.0, 20.0),
        footprints=[
            single_pad_footprint("A", "N1", 2.0, 2.0),
            single_pad_footprint("B", "N1", 8.0, 2.0),
            single_pad_footprint("C", "N2", 2.0, 15.0),
            single_pad_footprint("D", "N2", 8.0, 15.0),
        ],
    )


class TestRequestParsing(unittest.TestCase):

    def test_autoroute_request(self):
        data = two_pad_request_dict()
        data["config"]["preferredLayer"] = "B.Cu"
        request = parse_autoroute_request(data)

        self.assertIsInstance(request, AutorouteRequest)
        self.assertEqual(request.config.grid_resolution, 0.5)
        self.assertEqual(request.config.preferred_layer, "B.Cu")
        self.assertEqual(request.rules.track_width, 0.25)
        self.assertEqual(len(request.board.footprints), 2)
        self.assertEqual(request.board.outline.points[2], (50.0, 40.0))
        self.assertEqual(request.board.footprints[1].pads[0].net, "SIG")

    def test_missing_sections_take_defaults(self):
        request = parse_autoroute_request({"document": two_pad_request_dict()["document"]})
        self.assertEqual(request.config, RouterConfig())
        self.assertEqual(request.rules, DesignRules())

    def test_missing_document(self):
        with self.assertRaises(DocumentError):
            parse_autoroute_request({"rules": {}})
        with self.assertRaises(DocumentError):
            parse_drc_request([])

    def test_malformed_document(self):
        data = two_pad_request_dict()
        del data["document"]["footprints"][0]["pads"][0]["id"]
        with self.assertRaises(DocumentError):
            parse_autoroute_request(data)

        data = two_pad_request_dict()
        data["document"]["footprints"][0]["position"] = {"x": 1}
        with self.assertRaises(DocumentError):
            parse_autoroute_request(data)

    def test_malformed_rules(self):
        data = two_pad_request_dict()
        data["rules"]["clearance"] = "wide"
        with self.assertRaises(DocumentError):
            parse_autoroute_request(data)

    def test_router_limits_coerced(self):
        data = two_pad_request_dict()
        data["config"].update(maxExpansions="100", timeBudgetS="2.5", cancelCheckInterval=64)
        config = parse_autoroute_request(data).config
        self.assertEqual(config.max_expansions, 100)
        self.assertEqual(config.time_budget_s, 2.5)
        self.assertEqual(config.cancel_check_interval, 64)

        data["config"].update(maxExpansions=None, timeBudgetS=None)
        config = parse_autoroute_request(data).config
        self.assertIsNone(config.max_expansions)
        self.assertIsNone(config.time_budget_s)

    def test_malformed_router_limits(self):
        for key, value in (("maxExpansions", "many"), ("timeBudgetS", "soon"),
                           ("cancelCheckInterval", 0), ("cancelCheckInterval", "often")):
            with self.subTest(key=key, value=value):
                data = two_pad_request_dict()
                data["config"][key] = value
                with self.assertRaises(DocumentError):
                    parse_autoroute_request(data)

    def test_drc_rules_fall_back_to_document(self):
        document = {
            "footprints": [],
            "tracks": [{"id": "t1", "net": "N", "layer": "F.Cu", "width": 0.15,
                        "points": [{"x": 0, "y": 0}, {"x": 1, "y": 0}]}],
            "vias": [{"id": "v1", "net": "N", "position": {"x": 5, "y": 5},
                      "diameter": 0.8, "drill": 0.4}],
            "designRules": {"minTrackWidth": 0.1, "clearance": 0.3},
        }
        request = parse_drc_request({"document": document})
        self.assertIsInstance(request, DRCRequest)
        self.assertEqual(request.rules.min_track_width, 0.1)
        self.assertEqual(request.rules.clearance, 0.3)

        request = parse_drc_request({"document": document, "rules": {"clearance": 0.5}})
        self.assertEqual(request.rules.clearance, 0.5)
        self.assertEqual(request.rules.min_track_width, 0.1)

    def test_drc_config(self):
        request = parse_drc_request({
            "document": {},
            "config": {"useSpatialIndex": True, "checkUnconnected": True},
        })
        self.assertTrue(request.config.use_spatial_index)
        self.assertTrue(request.config.check_unconnected)
        self.assertFalse(request.config.parallel)

    def test_drc_tolerances_and_courtyards(self):
        request = parse_drc_request({
            "document": {},
            "config": {"snapTolerance": "0.05", "minDrillTolerance": 0.8,
                       "checkCourtyardOverlap": True},
        })
        self.assertEqual(request.config.snap_tolerance, 0.05)
        self.assertEqual(request.config.min_drill_tolerance, 0.8)
        self.assertTrue(request.config.check_courtyard_overlap)

        with self.assertRaises(DocumentError):
            parse_drc_request({"document": {}, "config": {"snapTolerance": "tight"}})


class TestRunAutoroute(unittest.TestCase):

    def test_progress_then_complete(self):
        events = _collect(run_autoroute, parse_autoroute_request(two_pad_request_dict()))

        self.assertEqual(events[0], ProgressEvent(progress=1.0, routed=1, failed=0))
        self.assertIsInstance(events[-1], CompleteEvent)
        self.assertEqual(sum(is_terminal(e) for e in events), 1)

        result = events[-1].result
        self.assertEqual((result.routed, result.failed, result.total), (1, 0, 1))
        self.assertEqual(result.tracks[0].points, [(0.0, 0.0), (10.0, 0.0)])

    def test_bad_resolution_is_single_error(self):
        data = two_pad_request_dict()
        data["config"]["gridResolution"] = 0
        events = _collect(run_autoroute, parse_autoroute_request(data))

        self.assertEqual(len(events), 1)
        self.assertIsInstance(events[0], ErrorEvent)
        self.assertIn("resolution", events[0].message)

    def test_oversized_grid_is_error(self):
        data = two_pad_request_dict()
        data["config"]["maxGridCells"] = 100
        (event,) = _collect(run_autoroute, parse_autoroute_request(data))
        self.assertIsInstance(event, ErrorEvent)

    def test_unreachable_pad_counts_as_failure(self):
        board = _two_net_board()
        board.footprints[3].position = (1e308, 15.0)
        events = _collect(run_autoroute, AutorouteRequest(board, DesignRules(), RouterConfig(grid_resolution=0.5)))

        self.assertIsInstance(events[-1], CompleteEvent)
        result = events[-1].result
        self.assertEqual((result.routed, result.failed, result.total), (1, 1, 2))

    def test_cancel_before_start(self):
        cancel = threading.Event()
        cancel.set()
        events = []
        run_autoroute(AutorouteRequest(make_two_pad_board(), DesignRules()), events.append, cancel)
        self.assertEqual(events, [CancelledEvent(routed=0, failed=0, total=1)])

    def test_cancel_mid_run_reports_partial_counts(self):
        cancel = threading.Event()
        events = []

        def emit(event):
            events.append(event)
            if isinstance(event, ProgressEvent):
                cancel.set()

        request = AutorouteRequest(_two_net_board(), DesignRules(), RouterConfig(grid_resolution=1.0))
        run_autoroute(request, emit, cancel)

        self.assertEqual(events, [
            ProgressEvent(progress=0.5, routed=1, failed=0),
            CancelledEvent(routed=1, failed=0, total=2),
        ])


class TestRunDrc(unittest.TestCase):

    def test_violations_event(self):
        board = make_two_pad_board()
        board.tracks = []
        request = DRCRequest(board, DesignRules(), DRCConfig(check_unconnected=True))

        (event,) = _collect(run_drc, request)
        self.assertIsInstance(event, ViolationsEvent)
        self.assertEqual([v.type for v in event.violations], [ViolationType.UNCONNECTED])


class TestTaskHandle(unittest.TestCase):

    def test_background_autoroute(self):
        handle = start_autoroute(parse_autoroute_request(two_pad_request_dict()))
        events = list(handle.events(timeout=TIMEOUT))
        handle.join(TIMEOUT)

        self.assertTrue(handle.done)
        self.assertIsInstance(events[-1], CompleteEvent)
        self.assertTrue(all(isinstance(e, ProgressEvent) for e in events[:-1]))
        self.assertIsNone(handle.poll())

    def test_runs_on_snapshot(self):
        request = parse_autoroute_request(two_pad_request_dict())
        handle = start_autoroute(request)
        request.board.footprints.clear()

        final = handle.result(timeout=TIMEOUT)
        self.assertIsInstance(final, CompleteEvent)
        self.assertEqual(final.result.routed, 1)

    def test_background_drc(self):
        request = parse_drc_request({
            "document": {"tracks": [{"id": "t1", "net": "N", "width": 0.1,
                                     "points": [[0, 0], [1, 0]]}]},
        })
        final = start_drc(request).result(timeout=TIMEOUT)
        self.assertIsInstance(final, ViolationsEvent)
        self.assertEqual(len(final.violations), 1)

    def test_cancel_ends_stream(self):
        board = Board(
            outline=rect_outline(100.0, 100.0),
            footprints=[single_pad_footprint(f"P{i}", f"N{i // 2}", float(i), float(i) * 0.5)
                        for i in range(40)],
        )
        handle = start_autoroute(AutorouteRequest(board, DesignRules(),
                                                  RouterConfig(grid_resolution=0.1)))
        handle.cancel()
        final = handle.result(timeout=TIMEOUT)

        self.assertTrue(is_terminal(final))
        self.assertIsInstance(final, (CancelledEvent, CompleteEvent))
        if isinstance(final, CancelledEvent):
            self.assertEqual(final.total, 20)


class TestEventWireFormat(unittest.TestCase):

    def test_progress(self):
        self.assertEqual(
            event_to_dict(ProgressEvent(progress=0.5, routed=1, failed=0)),
            {"type": "progress", "progress": 0.5, "routed": 1, "failed": 0},
        )

    def test_cancelled_and_error(self):
        self.assertEqual(
            event_to_dict(CancelledEvent(routed=2, failed=1, total=5)),
            {"type": "cancelled", "routed": 2, "failed": 1, "total": 5},
        )
        self.assertEqual(event_to_dict(ErrorEvent(message="boom")),
                         {"type": "error", "message": "boom"})

    def test_complete(self):
        events = _collect(run_autoroute, parse_autoroute_request(two_pad_request_dict()))
        data = event_to_dict(events[-1])
        self.assertEqual(data["type"], "complete")
        self.assertEqual(data["result"]["routed"], 1)
        self.assertEqual(data["result"]["tracks"][0]["id"], "autotrack-0")

    def test_violations_payload_has_no_type(self):
        self.assertEqual(event_to_dict(ViolationsEvent(violations=[])), {"violations": []})

    def test_unknown_event(self):
        with self.assertRaises(TypeError):
            event_to_dict(object())


if __name__ == "__main__":
    unittest.main()
