"""Single-job client session: submit, poll, reset.

``ScanSession`` owns the ``SessionState`` and is the only thing the
presentation layer talks to. All lifecycle failures end up in
``state.error_message``; nothing raises out of ``start_scan`` or ``reset``.
"""

import asyncio
from typing import Optional

from loguru import logger

from audit.errors import ScanError
from audit.monitor import DEFAULT_POLL_INTERVAL, JobMonitor, MonitorState, SleepFn
from audit.state import SessionState
from audit.submitter import JobSubmitter
from infra.api_client import BaseScanApi
from infra.models import JobHandle, ScanRequest, ScanStatus


class ScanSession:
    """Coordinates ``JobSubmitter`` and ``JobMonitor`` around one ``SessionState``."""

    def __init__(
        self,
        api: BaseScanApi,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_retries: int = 0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.api = api
        self.state = SessionState()
        self.submitter = JobSubmitter(api, self.state)
        self.monitor = JobMonitor(
            api, self.state, interval=interval, max_retries=max_retries, sleep=sleep
        )

    async def __aenter__(self) -> "ScanSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def start_scan(self, repository_url: str) -> Optional[JobHandle]:
        """Submit ``repository_url`` and start polling the resulting job.

        Returns the new handle, or ``None`` if nothing was started (invalid
        input, failed submission, duplicate submit or a reset mid-request).
        """
        if self.state.submission_in_flight:
            logger.debug("Scan already being submitted, ignoring")
            return None

        request = ScanRequest(repository_url=repository_url)
        self.state.repository_url = repository_url
        try:
            self.submitter.validate(request)
        except ScanError as e:
            self.state.error_message = e.user_message
            return None

        # A fresh scan replaces whatever job was on display.
        self.monitor.detach()
        self.state.error_message = None
        self.state.active_job = None
        self.state.latest_status = None

        try:
            handle = await self.submitter.submit(request)
        except ScanError as e:
            self.state.error_message = e.user_message
            return None

        if handle is None:
            return None

        self.state.active_job = handle
        self.monitor.attach(handle)
        return handle

    def reset(self) -> None:
        """Abandon the current scan and return to the initial empty state."""
        self.monitor.detach()
        self.submitter.invalidate()
        self.state.clear()
        logger.info("🔁 Session reset")

    async def wait(self) -> MonitorState:
        """Wait until polling stops (terminal result, failure or reset)."""
        return await self.monitor.wait_until_stopped()

    async def aclose(self) -> None:
        self.submitter.invalidate()
        await self.monitor.aclose()
        await self.api.aclose()

    # ------------------------------------------------------------------
    # Presentation helpers
    # ------------------------------------------------------------------

    @property
    def is_scanning(self) -> bool:
        status = self.state.latest_status
        return self.state.submission_in_flight or (
            status is not None and status.status == ScanStatus.ANALYZING
        )

    @property
    def button_label(self) -> str:
        status = self.state.latest_status
        if status is not None and status.status == ScanStatus.DONE:
            return "Scan Done"
        return "Scanning..." if self.is_scanning else "Scan Now"

    @property
    def progress_text(self) -> Optional[str]:
        """``"done/total"`` when the backend reports both chunk counters."""
        status = self.state.latest_status
        if status is None or status.chunks_done is None or status.total_chunks is None:
            return None
        return f"{status.chunks_done}/{status.total_chunks}"

    @property
    def status_text(self) -> str:
        if self.state.active_job is None:
            return ""
        status = self.state.latest_status
        if status is None:
            return "Loading job status..."
        return status.status.value

    @property
    def summary_text(self) -> Optional[str]:
        status = self.state.latest_status
        if status is None or status.status != ScanStatus.DONE or status.result is None:
            return None
        if status.result.total_issues is None:
            return "Scan complete."
        return f"Scan complete. {status.result.total_issues} issues found."

    @property
    def download_url(self) -> Optional[str]:
        status = self.state.latest_status
        if status is None or not status.report_ready:
            return None
        return self.api.download_url(status.result.pdf_filename)
