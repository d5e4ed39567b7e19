"""Tests for the FastAPI proxy routes and pages."""
import unittest
from unittest import mock

import requests
from fastapi.testclient import TestClient

from sigdb.config import Config
from sigdb.openchain_client import OpenchainClient, UpstreamError
from sigdb.service import SignatureService
from sigdb.web import create_app

STATS_PAYLOAD = {
    "ok": True,
    "result": {
        "count": {"function": 1200, "event": 300, "error": 40, "unknown": 0, "total": 1540},
        "metadata": {"refreshed_at": "2024-05-01T00:00:00Z"},
    },
}
SEARCH_PAYLOAD = {
    "ok": True,
    "result": {
        "function": {
            "0xa9059cbb": [
                {"name": "transfer(address,uint256)", "filtered": False, "hasVerifiedContract": True},
                {"name": "many_msg_babbage(bytes1)", "filtered": True},
            ]
        },
        "event": {},
    },
}


class ProxyRouteTestCase(unittest.TestCase):

    def setUp(self):
        self.upstream = mock.Mock(spec=OpenchainClient)
        self.upstream.stats.return_value = STATS_PAYLOAD
        config = Config(display_limit=1)
        app = create_app(config=config, service=SignatureService(config, client=self.upstream))
        self.http = TestClient(app)


class TestSearchProxy(ProxyRouteTestCase):

    def test_requires_query(self):
        response = self.http.get("/api/search")
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Query parameter is required"})
        self.upstream.search.assert_not_called()

    def test_forwards_upstream_body(self):
        self.upstream.search.return_value = SEARCH_PAYLOAD
        response = self.http.get("/api/search", params={"query": "transfer*"})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), SEARCH_PAYLOAD)
        self.upstream.search.assert_called_once_with("transfer*")

    def test_forwards_upstream_status(self):
        self.upstream.search.side_effect = UpstreamError(429)
        response = self.http.get("/api/search", params={"query": "transfer"})
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.json(), {"error": "Failed to fetch from upstream API"})

    def test_network_error_is_500(self):
        self.upstream.search.side_effect = requests.ConnectionError("refused")
        response = self.http.get("/api/search", params={"query": "transfer"})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})


class TestLookupProxy(ProxyRouteTestCase):

    def test_requires_a_parameter(self):
        response = self.http.get("/api/lookup")
        self.assertEqual(response.status_code, 400)
        self.upstream.lookup.assert_not_called()

    def test_selector_looks_up_both_categories(self):
        self.upstream.lookup.return_value = SEARCH_PAYLOAD
        response = self.http.get("/api/lookup", params={"selector": "0xa9059cbb"})
        self.assertEqual(response.status_code, 200)
        self.upstream.lookup.assert_called_once_with("0xa9059cbb", "0xa9059cbb", None)

    def test_function_and_event_with_filter(self):
        self.upstream.lookup.return_value = {"ok": True, "result": {}}
        self.http.get("/api/lookup", params={"event": "0x" + "ab" * 32, "filter": "false"})
        self.upstream.lookup.assert_called_once_with(None, "0x" + "ab" * 32, False)

    def test_forwards_upstream_status(self):
        self.upstream.lookup.side_effect = UpstreamError(404)
        response = self.http.get("/api/lookup", params={"function": "0xa9059cbb"})
        self.assertEqual(response.status_code, 404)


class TestStatsAndImportProxy(ProxyRouteTestCase):

    def test_stats(self):
        response = self.http.get("/api/stats")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), STATS_PAYLOAD)

    def test_stats_bad_body_is_500(self):
        self.upstream.stats.side_effect = ValueError("Failed to parse response")
        response = self.http.get("/api/stats")
        self.assertEqual(response.status_code, 500)

    def test_import_rejects_empty_data(self):
        response = self.http.post("/api/import", json={"data": "   "})
        self.assertEqual(response.status_code, 400)
        self.upstream.import_signatures.assert_not_called()

    def test_import_rejects_data_without_signatures(self):
        response = self.http.post("/api/import", json={"data": "no signatures here"})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "No signatures found in the import data."})
        self.upstream.import_signatures.assert_not_called()

    def test_import_forwards_normalized_request(self):
        self.upstream.import_signatures.return_value = {"ok": True, "result": {}}
        response = self.http.post(
            "/api/import",
            json={"data": "function transfer(address,uint256)\nevent Transfer(address,address,uint256)"},
        )
        self.assertEqual(response.status_code, 200)
        self.upstream.import_signatures.assert_called_once_with(
            ["transfer(address,uint256)"], ["Transfer(address,address,uint256)"]
        )


class TestPages(ProxyRouteTestCase):

    def test_index_without_query_shows_stats(self):
        response = self.http.get("/")
        self.assertEqual(response.status_code, 200)
        self.assertIn("1200 functions", response.text)
        self.upstream.search.assert_not_called()

    def test_index_runs_shared_query_once(self):
        self.upstream.search.return_value = SEARCH_PAYLOAD
        response = self.http.get("/", params={"q": "transfer"})
        self.assertEqual(response.status_code, 200)
        self.upstream.search.assert_called_once_with("transfer")
        self.assertIn("transfer(address,uint256)", response.text)
        self.assertIn("Showing first 1 of 2 results", response.text)

    def test_index_shows_validation_error_without_network(self):
        response = self.http.get("/", params={"q": "0x1234"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("got 4 characters", response.text)
        self.upstream.lookup.assert_not_called()

    def test_index_survives_stats_failure(self):
        self.upstream.stats.side_effect = UpstreamError(500)
        response = self.http.get("/")
        self.assertEqual(response.status_code, 200)

    def test_index_shows_fetch_failure(self):
        self.upstream.search.side_effect = requests.ConnectionError("refused")
        response = self.http.get("/", params={"q": "transfer"})
        self.assertIn("Failed to fetch results, please try again.", response.text)

    def test_import_page_empty_submission(self):
        response = self.http.post("/import", data={"data": ""})
        self.assertEqual(response.status_code, 200)
        self.assertIn("The import data field is empty", response.text)
        self.upstream.import_signatures.assert_not_called()

    def test_import_page_renders_outcome(self):
        self.upstream.import_signatures.return_value = {
            "ok": True,
            "result": {
                "function": {"imported": {"transfer(address,uint256)": "0xa9059cbb"}, "duplicated": {}, "invalid": []},
                "event": {"imported": {}, "duplicated": {}, "invalid": []},
            },
        }
        response = self.http.post("/import", data={"data": "function transfer(address,uint256)"})
        self.assertIn("Imported 1 functions and 0 events!", response.text)
        self.assertIn("status-imported", response.text)

    def test_abi_page_and_not_found(self):
        self.assertIn("Swiss Knife", self.http.get("/tools/abi").text)
        response = self.http.get("/no-such-page")
        self.assertEqual(response.status_code, 404)
        self.assertIn("could not be found", response.text)
        self.assertEqual(self.http.get("/api/missing").status_code, 404)


if __name__ == "__main__":
    unittest.main()
