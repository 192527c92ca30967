# psi_report/services/report_client.py
import asyncio
import logging
from typing import Any, Optional

import httpx

from psi_report.core.config import Settings
from psi_report.core.errors import (
    ConfigurationError,
    ParseError,
    ReportError,
    TransportError,
    UpstreamError,
    ValidationError,
)
from psi_report.models import ClientConfig, SubmissionPhase, ViewState
from psi_report.services import mock_service, processing_service

logger = logging.getLogger(__name__)

INVALID_URL_MESSAGE = "❌ Please enter a valid URL (example: https://example.com)."
RUNNING_MESSAGE = "Running mobile Lighthouse audit…"
COMPLETE_MESSAGE = "✅ Report complete."
GENERIC_FAILURE = "Something went wrong. Try again."

SUBMIT_LABEL = "Run Report"
RUNNING_LABEL = "Running..."


class ReportClient:
    """
    Owns the report form lifecycle: validate the URL, fetch a report, update the view state.

    In "demo" mode reports are synthesized locally; in "live" mode they come
    from the proxy at `config.endpoint`. Only one submission runs at a time.
    """

    def __init__(self, config: ClientConfig, http_client: Optional[httpx.AsyncClient] = None):
        self.config = config
        self._http_client = http_client
        self.state = ViewState()

    @classmethod
    def from_settings(cls, settings: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "ReportClient":
        config = ClientConfig(
            mode=settings.REPORT_MODE,
            endpoint=settings.REPORT_ENDPOINT,
            demo_delay=settings.DEMO_DELAY_SECONDS,
        )
        return cls(config, http_client=http_client)

    @property
    def is_running(self) -> bool:
        return self.state.phase == SubmissionPhase.LOADING

    def _update(self, **changes: Any) -> None:
        self.state = self.state.model_copy(update=changes)

    def _set_status(self, message: str, kind: str = "") -> None:
        self._update(status=message, status_kind=kind)

    def _set_loading(self, is_loading: bool) -> None:
        self._update(
            submit_disabled=is_loading,
            submit_label=RUNNING_LABEL if is_loading else SUBMIT_LABEL,
        )

    async def submit(self, raw_url: Optional[str]) -> ViewState:
        """
        Handles one form submission and returns the resulting view state.

        Failures never propagate; they end up as a sanitized status line.
        """
        if self.is_running:
            logger.warning("Submission ignored: a report is already running")
            return self.state

        # Clear the previous report before anything else
        self._update(phase=SubmissionPhase.VALIDATING, results_visible=False, view=None)

        try:
            normalized = processing_service.normalize_url(raw_url)
        except ValidationError:
            self._update(phase=SubmissionPhase.REJECTED)
            self._set_status(INVALID_URL_MESSAGE, "bad")
            self._update(phase=SubmissionPhase.IDLE)
            return self.state

        self._update(phase=SubmissionPhase.LOADING)
        self._set_loading(True)
        self._set_status(RUNNING_MESSAGE)

        try:
            data = await self._fetch_report(normalized)
            view = processing_service.build_report_view(data)
            self._update(phase=SubmissionPhase.SUCCESS, view=view, results_visible=True)
            self._set_status(COMPLETE_MESSAGE, "good")
        except Exception as e:
            if not isinstance(e, ReportError):
                logger.exception("Unexpected failure while running report for %s", normalized)
            message = processing_service.sanitize_message(getattr(e, "message", None) or str(e))
            self._update(phase=SubmissionPhase.FAILED)
            self._set_status(f"❌ {message or GENERIC_FAILURE}", "bad")
        finally:
            self._set_loading(False)
            self._update(phase=SubmissionPhase.IDLE)

        return self.state

    async def _fetch_report(self, url: str) -> Any:
        if self.config.mode == "demo":
            return await self._fetch_demo_report(url)
        return await self._fetch_live_report(url)

    async def _fetch_demo_report(self, url: str) -> Any:
        logger.info("Demo mode: synthesizing report for %s", url)
        await asyncio.sleep(self.config.demo_delay)
        return mock_service.build_mock_report(url)

    async def _fetch_live_report(self, url: str) -> Any:
        """
        Fetches a report from the proxy.

        Raises:
            ConfigurationError: If no endpoint is configured. No request is made.
            TransportError: If the proxy could not be reached.
            UpstreamError: If the proxy answers with a non-success status.
            ParseError: If the body is not valid JSON.
        """
        if not self.config.endpoint:
            raise ConfigurationError("Live mode requires a report endpoint (set REPORT_ENDPOINT)")

        logger.info("Requesting report for %s from %s", url, self.config.endpoint)
        try:
            if self._http_client is not None:
                response = await self._http_client.get(self.config.endpoint, params={"url": url})
            else:
                async with httpx.AsyncClient(timeout=None) as client:
                    response = await client.get(self.config.endpoint, params={"url": url})
        except httpx.RequestError as e:
            raise TransportError(f"Could not reach report endpoint: {str(e) or type(e).__name__}") from e

        if not response.is_success:
            raise UpstreamError(
                response.text or f"Request failed: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise ParseError("Report endpoint returned invalid JSON") from e
