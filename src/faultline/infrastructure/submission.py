"""Submission client — settings fetch and event upload over HTTP.

Requests run on a ThreadPoolExecutor and report through callbacks; pass
``sync=True`` to run them on the caller's thread (CLI, tests). Transport
failures never raise: they become unsuccessful responses.
"""

from __future__ import annotations

import json
import logging
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from faultline.domain.models import Event, SettingsResponse, SubmissionResponse

if TYPE_CHECKING:
    from faultline.configuration import Configuration

logger = logging.getLogger(__name__)

SETTINGS_PATH = "/api/v2/projects/config"
EVENTS_PATH = "/api/v2/events"
CONFIG_VERSION_HEADER = "X-Faultline-ConfigVersion"
USER_AGENT = "faultline-python"

SettingsCallback = Callable[[SettingsResponse], None]
SubmissionCallback = Callable[[SubmissionResponse], None]


@runtime_checkable
class SubmissionClient(Protocol):
    """Network collaborator used for settings sync and event upload."""

    def get_settings(
        self, config: Configuration, version: int, callback: SettingsCallback
    ) -> None:
        """Fetch settings newer than *version* and pass the response to *callback*."""

    def post_events(
        self, events: Sequence[Event], config: Configuration, callback: SubmissionCallback
    ) -> None:
        """Upload *events* and pass the response to *callback*."""

    def close(self) -> None:
        """Release any worker resources."""


class HttpSubmissionClient:
    """``urllib``-based submission client.

    Parameters:
        timeout: Per-request timeout in seconds.
        sync: Run requests on the caller's thread.
        max_workers: ThreadPoolExecutor worker count.
    """

    def __init__(self, *, timeout: float = 10.0, sync: bool = False, max_workers: int = 2) -> None:
        self._timeout = timeout
        self._closed = False
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_settings(
        self, config: Configuration, version: int, callback: SettingsCallback
    ) -> None:
        query = urllib.parse.urlencode({"v": version})
        url = f"{config.server_url.rstrip('/')}{SETTINGS_PATH}?{query}"
        self._dispatch(lambda: callback(self._fetch_settings(url, config)))

    def post_events(
        self, events: Sequence[Event], config: Configuration, callback: SubmissionCallback
    ) -> None:
        url = f"{config.server_url.rstrip('/')}{EVENTS_PATH}"
        body = json.dumps([e.model_dump(mode="json") for e in events]).encode("utf-8")
        self._dispatch(lambda: callback(self._post(url, body, config)))

    def close(self) -> None:
        """Wait for in-flight requests, then stop accepting new ones."""
        self._closed = True
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _dispatch(self, job: Callable[[], None]) -> None:
        if self._closed:
            logger.warning("Submission client is closed; request dropped")
            return
        if self._executor is None:
            _run_job(job)
            return
        self._executor.submit(_run_job, job)

    def _request(
        self, url: str, config: Configuration, *, data: bytes | None = None
    ) -> urllib.request.Request:
        headers = {
            "Authorization": f"Bearer {config.api_key}",
            "User-Agent": USER_AGENT,
        }
        if data is not None:
            headers["Content-Type"] = "application/json"
        return urllib.request.Request(
            url, data=data, headers=headers, method="POST" if data is not None else "GET"
        )

    def _fetch_settings(self, url: str, config: Configuration) -> SettingsResponse:
        try:
            with urllib.request.urlopen(self._request(url, config), timeout=self._timeout) as resp:
                payload: Any = json.loads(resp.read().decode("utf-8") or "{}")
        except urllib.error.HTTPError as e:
            return SettingsResponse(success=False, message=f"HTTP {e.code}: {e.reason}")
        except (urllib.error.URLError, OSError, ValueError) as e:
            logger.debug("Settings request to %s failed: %s", url, e)
            return SettingsResponse(success=False, message=str(e))
        return parse_settings_payload(payload)

    def _post(self, url: str, body: bytes, config: Configuration) -> SubmissionResponse:
        try:
            with urllib.request.urlopen(
                self._request(url, config, data=body), timeout=self._timeout
            ) as resp:
                return SubmissionResponse(
                    status_code=resp.status,
                    settings_version=_parse_version(resp.headers.get(CONFIG_VERSION_HEADER)),
                )
        except urllib.error.HTTPError as e:
            return SubmissionResponse(
                status_code=e.code,
                message=str(e.reason),
                settings_version=_parse_version(e.headers.get(CONFIG_VERSION_HEADER)),
            )
        except (urllib.error.URLError, OSError) as e:
            logger.debug("Event upload to %s failed: %s", url, e)
            return SubmissionResponse(status_code=-1, message=str(e))


def _run_job(job: Callable[[], None]) -> None:
    """Run a request and its callback; callback failures end up in the log."""
    try:
        job()
    except Exception:
        logger.exception("Submission callback failed")


def parse_settings_payload(payload: Any) -> SettingsResponse:
    """Turn a ``{"version": n, "settings": {...}}`` body into a response."""
    if not isinstance(payload, dict):
        return SettingsResponse(success=False, message="Invalid settings response")
    settings = payload.get("settings")
    version = _parse_version(payload.get("version"))
    if not isinstance(settings, dict) or version is None:
        return SettingsResponse(success=False, message="Invalid settings response")
    return SettingsResponse(
        success=True,
        settings={str(k): str(v) for k, v in settings.items()},
        settings_version=version,
    )


def _parse_version(raw: Any) -> int | None:
    if raw is None:
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        return None
