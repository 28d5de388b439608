"""HTTP surface tests — FastAPI TestClient against the real app."""

from __future__ import annotations

import json
import unittest
from unittest import mock

from fastapi.testclient import TestClient

from pcbcore.web.server import app
from tests.board_fixture import two_pad_request_dict


def _sse_events(body: str) -> list[dict]:
    return [
        json.loads(line[len("data: "):])
        for line in body.splitlines()
        if line.startswith("data: ")
    ]


class TestServer(unittest.TestCase):

    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)

    def test_health(self):
        resp = self.client.get("/api/health")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json(), {"status": "ok"})

    def test_autoroute_stream(self):
        resp = self.client.post("/api/autoroute/stream", json=two_pad_request_dict())
        self.assertEqual(resp.status_code, 200)
        self.assertTrue(resp.headers["content-type"].startswith("text/event-stream"))

        events = _sse_events(resp.text)
        self.assertEqual([e["type"] for e in events], ["progress", "complete"])
        self.assertEqual(events[0], {"type": "progress", "progress": 1.0, "routed": 1, "failed": 0})

        result = events[-1]["result"]
        self.assertEqual((result["routed"], result["failed"], result["total"]), (1, 0, 1))
        self.assertEqual(result["tracks"][0]["points"],
                         [{"x": 0.0, "y": 0.0}, {"x": 10.0, "y": 0.0}])

    def test_autoroute_error_event(self):
        data = two_pad_request_dict()
        data["config"]["gridResolution"] = -1
        events = _sse_events(self.client.post("/api/autoroute/stream", json=data).text)
        self.assertEqual(len(events), 1)
        self.assertEqual(events[0]["type"], "error")

    def test_autoroute_malformed_document(self):
        data = two_pad_request_dict()
        del data["document"]["footprints"][0]["pads"][0]["id"]
        resp = self.client.post("/api/autoroute/stream", json=data)
        self.assertEqual(resp.status_code, 400)

    def test_autoroute_missing_document(self):
        resp = self.client.post("/api/autoroute/stream", json={"rules": {}})
        self.assertEqual(resp.status_code, 422)

    def test_drc(self):
        data = {
            "document": {
                "tracks": [
                    {"id": "t1", "net": "A", "layer": "F.Cu", "width": 0.25,
                     "points": [{"x": 0, "y": 0}, {"x": 10, "y": 0}]},
                    {"id": "t2", "net": "B", "layer": "F.Cu", "width": 0.25,
                     "points": [{"x": 0, "y": 0.3}, {"x": 10, "y": 0.3}]},
                ],
                "designRules": {"clearance": 0.2},
            },
        }
        resp = self.client.post("/api/drc", json=data)
        self.assertEqual(resp.status_code, 200)

        (violation,) = resp.json()["violations"]
        self.assertEqual(violation["type"], "clearance")
        self.assertEqual(violation["objectIds"], ["t1", "t2"])
        self.assertEqual(violation["position"], {"x": 5.0, "y": 0.0})

    def test_drc_clean_board(self):
        resp = self.client.post("/api/drc", json={"document": {}})
        self.assertEqual(resp.json(), {"violations": []})

    def test_drc_timeout(self):
        class _Stalled:
            def result(self, timeout=None):
                raise TimeoutError(f"task drc: no event within {timeout}s")

        with mock.patch("pcbcore.web.server.start_drc", return_value=_Stalled()), \
                self.assertLogs("pcbcore.web.server", "WARNING") as logs:
            resp = self.client.post("/api/drc", json={"document": {}})

        self.assertEqual(resp.status_code, 504)
        self.assertIn("did not finish", resp.json()["detail"])
        self.assertIn("background", logs.output[0])

    def test_drc_malformed_document(self):
        resp = self.client.post("/api/drc", json={"document": {"vias": [{"id": "v1"}]}})
        self.assertEqual(resp.status_code, 400)


if __name__ == "__main__":
    unittest.main()
