"""
Small HTTP client for the SchoolFund API and a poller that watches an
uploaded file until the bucket reports it.

S3 gives no push notification when an object becomes readable, so callers
that just uploaded something (an impact report, say) re-check its status on
a fixed interval until it shows up or they stop caring.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional
from urllib.parse import urljoin

import requests

from shared.constants import DEFAULT_POLL_INTERVAL_SECONDS

logger = logging.getLogger(__name__)


class ApiClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class SchoolFundClient:
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        *,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/") + "/"
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def _request(self, method: str, path: str, **kwargs) -> dict:
        url = urljoin(self.base_url, path.lstrip("/"))
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except requests.RequestException as e:
            raise ApiClientError(f"Request to {url} failed: {e}") from e
        if not response.ok:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            raise ApiClientError(
                message or f"HTTP error! status: {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ApiClientError(
                f"Invalid JSON from {url}", status_code=response.status_code
            ) from e

    def get_file_status(self, file_url: str) -> dict:
        return self._request("GET", "upload/status", params={"fileUrl": file_url})

    def upload_file(
        self,
        filename: str,
        data: bytes,
        content_type: str,
        folder: Optional[str] = None,
    ) -> str:
        form = {"folder": folder} if folder else {}
        payload = self._request(
            "POST",
            "upload",
            files={"file": (filename, data, content_type)},
            data=form,
        )
        return payload["url"]


class FileStatusPoller:
    """
    Checks a file's status right away and then every `interval` seconds on a
    background thread until `stop()` is called.

    The latest result is kept in `status`; a failed check is recorded as
    `{"exists": False}` with the reason in `error`.
    """

    def __init__(
        self,
        client: SchoolFundClient,
        file_url: Optional[str],
        *,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
        on_status: Optional[Callable[[dict], None]] = None,
    ):
        self.client = client
        self.file_url = file_url
        self.interval = interval
        self.on_status = on_status
        self.status: Optional[dict] = None
        self.error: Optional[str] = None
        self._stop = threading.Event()
        self._found = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def check(self) -> Optional[dict]:
        if not self.file_url:
            with self._lock:
                self.status = None
            return None
        try:
            status = self.client.get_file_status(self.file_url)
            error = None
        except Exception as e:
            logger.warning("Error checking file status for %s: %s", self.file_url, e)
            status, error = {"exists": False}, str(e)
        with self._lock:
            self.status = status
            self.error = error
        if status.get("exists"):
            self._found.set()
        if self.on_status is not None:
            try:
                self.on_status(status)
            except Exception:
                logger.exception("on_status callback failed for %s", self.file_url)
        return status

    def _run(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.check()
            if stop.wait(self.interval):
                break

    def start(self) -> "FileStatusPoller":
        if not self.file_url or self.running:
            return self
        # One event per run; a thread left over from stop() keeps its own, already set.
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._run,
            args=(self._stop,),
            name="file-status-poller",
            daemon=True,
        )
        self._thread.start()
        return self

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)
        self._thread = None

    def wait_until_exists(self, timeout: Optional[float] = None) -> bool:
        """Block until a check reports the file, or `timeout` elapses."""
        self.start()
        return self._found.wait(timeout)

    def __enter__(self) -> "FileStatusPoller":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.stop()
