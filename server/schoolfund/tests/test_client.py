import threading
import unittest
from unittest import mock

import requests

from schoolfund.client import ApiClientError, FileStatusPoller, SchoolFundClient

FILE_URL = "https://example.test/storage/impact-reports/1700000000500_report.pdf"


def response(status_code=200, payload=None):
    resp = mock.MagicMock()
    resp.status_code = status_code
    resp.ok = status_code < 400
    resp.json.return_value = payload if payload is not None else {}
    return resp


class SchoolFundClientTests(unittest.TestCase):
    def setUp(self):
        self.session = mock.MagicMock()
        self.client = SchoolFundClient("http://localhost:5000/api", token="abc", session=self.session)

    def test_get_file_status(self):
        self.session.request.return_value = response(payload={"exists": True})
        self.assertEqual(self.client.get_file_status(FILE_URL), {"exists": True})
        self.session.request.assert_called_once_with(
            "GET",
            "http://localhost:5000/api/upload/status",
            headers={"Authorization": "Bearer abc"},
            timeout=30.0,
            params={"fileUrl": FILE_URL},
        )

    def test_error_response_uses_api_message(self):
        self.session.request.return_value = response(
            400, {"status": "error", "message": "fileUrl is required"}
        )
        with self.assertRaises(ApiClientError) as ctx:
            self.client.get_file_status("")
        self.assertEqual(str(ctx.exception), "fileUrl is required")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_network_error(self):
        self.session.request.side_effect = requests.ConnectionError("refused")
        with self.assertRaises(ApiClientError):
            self.client.get_file_status(FILE_URL)

    def test_upload_file(self):
        self.session.request.return_value = response(payload={"url": FILE_URL, "key": "k"})
        url = self.client.upload_file("report.pdf", b"%PDF", "application/pdf", folder="impact-reports")
        self.assertEqual(url, FILE_URL)
        _, kwargs = self.session.request.call_args
        self.assertEqual(kwargs["data"], {"folder": "impact-reports"})
        self.assertEqual(kwargs["files"]["file"][0], "report.pdf")


class FakeStatusClient:
    """Returns queued statuses in order, repeating the last one."""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0
        self.lock = threading.Lock()

    def get_file_status(self, file_url):
        with self.lock:
            self.calls += 1
            result = self.results[0] if len(self.results) == 1 else self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class FileStatusPollerTests(unittest.TestCase):
    def test_check_records_status(self):
        seen = []
        poller = FileStatusPoller(
            FakeStatusClient({"exists": True, "size": 4}), FILE_URL, on_status=seen.append
        )
        self.assertEqual(poller.check(), {"exists": True, "size": 4})
        self.assertEqual(poller.status, {"exists": True, "size": 4})
        self.assertEqual(seen, [{"exists": True, "size": 4}])
        self.assertIsNone(poller.error)

    def test_failed_check_is_reported_as_missing(self):
        poller = FileStatusPoller(
            FakeStatusClient(ApiClientError("HTTP error! status: 500", 500)), FILE_URL
        )
        self.assertEqual(poller.check(), {"exists": False})
        self.assertEqual(poller.error, "HTTP error! status: 500")

    def test_no_url_does_nothing(self):
        client = FakeStatusClient({"exists": True})
        poller = FileStatusPoller(client, None).start()
        self.assertFalse(poller.running)
        self.assertIsNone(poller.check())
        self.assertEqual(client.calls, 0)

    def test_polls_until_file_exists(self):
        client = FakeStatusClient(
            {"exists": False},
            ApiClientError("temporarily unavailable"),
            {"exists": True, "fileName": "report.pdf"},
        )
        poller = FileStatusPoller(client, FILE_URL, interval=0.01)
        try:
            self.assertTrue(poller.wait_until_exists(timeout=5))
        finally:
            poller.stop(timeout=5)
        self.assertGreaterEqual(client.calls, 3)
        self.assertTrue(poller.status["exists"])
        self.assertFalse(poller.running)

    def test_checks_immediately_and_stops(self):
        client = FakeStatusClient({"exists": False})
        with FileStatusPoller(client, FILE_URL, interval=60) as poller:
            self.assertFalse(poller.wait_until_exists(timeout=0.2))
        self.assertEqual(client.calls, 1)
        self.assertFalse(poller.running)
        self.assertEqual(poller.status, {"exists": False})

    def test_non_json_body_keeps_polling(self):
        session = mock.MagicMock()
        bad = response(payload={"exists": True})
        bad.json.side_effect = ValueError("Expecting value")
        good = response(payload={"exists": True})
        session.request.side_effect = lambda *a, **kw: bad if session.request.call_count == 1 else good
        client = SchoolFundClient("http://localhost:5000/api", session=session)

        poller = FileStatusPoller(client, FILE_URL, interval=0.01)
        try:
            self.assertTrue(poller.wait_until_exists(timeout=5))
        finally:
            poller.stop(timeout=5)
        self.assertGreaterEqual(session.request.call_count, 2)
        self.assertEqual(poller.status, {"exists": True})

    def test_non_json_body_is_recorded_as_missing(self):
        session = mock.MagicMock()
        bad = response()
        bad.json.side_effect = ValueError("Expecting value")
        session.request.return_value = bad
        poller = FileStatusPoller(
            SchoolFundClient("http://localhost:5000/api", session=session), FILE_URL
        )
        self.assertEqual(poller.check(), {"exists": False})
        self.assertIn("Invalid JSON", poller.error)

    def test_unexpected_client_error_is_recorded(self):
        poller = FileStatusPoller(FakeStatusClient(RuntimeError("boom")), FILE_URL)
        self.assertEqual(poller.check(), {"exists": False})
        self.assertEqual(poller.error, "boom")

    def test_failing_callback_does_not_stop_polling(self):
        client = FakeStatusClient({"exists": False}, {"exists": True})

        def on_status(status):
            raise RuntimeError("callback failed")

        poller = FileStatusPoller(client, FILE_URL, interval=0.01, on_status=on_status)
        try:
            self.assertTrue(poller.wait_until_exists(timeout=5))
        finally:
            poller.stop(timeout=5)
        self.assertGreaterEqual(client.calls, 2)

    def test_restart_after_timed_out_stop_runs_one_thread(self):
        entered = threading.Event()
        release = threading.Event()

        class SlowClient(FakeStatusClient):
            def get_file_status(self, file_url):
                result = super().get_file_status(file_url)
                if self.calls == 1:
                    entered.set()
                    release.wait(5)
                return result

        client = SlowClient({"exists": False})
        poller = FileStatusPoller(client, FILE_URL, interval=60)
        poller.start()
        self.assertTrue(entered.wait(5))
        old_thread = poller._thread
        poller.stop(timeout=0.01)
        self.assertTrue(old_thread.is_alive())

        poller.start()
        release.set()
        old_thread.join(5)
        self.assertFalse(old_thread.is_alive())
        self.assertTrue(poller.running)
        poller.stop(timeout=5)
        self.assertEqual(client.calls, 2)


if __name__ == "__main__":
    unittest.main()
