"""Periodic status polling for the active scan job.

State machine:
    IDLE --attach--> POLLING --terminal result / poll failure--> TERMINAL
    any  --detach--> IDLE

The recurring timer is an ``asyncio.Task`` that sleeps one full interval
before every tick, so the first fetch happens ``interval`` seconds after
``attach``. Each tick spawns its own fetch task; fetches are never coalesced.

Every tick and fetch captures the generation number current when it was
scheduled. ``attach``/``detach`` bump the generation, and a result is applied
only if its generation is still current and the monitor is still POLLING.
Late results from a detached or already-terminal attachment are dropped.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Set

from loguru import logger

from audit.errors import PollingFailed, RemoteJobError, ScanError
from audit.state import SessionState
from infra.api_client import ApiClientError, BaseScanApi
from infra.models import JobHandle, JobStatus, ScanStatus

DEFAULT_POLL_INTERVAL = 3.0

StatusListener = Callable[[JobStatus], None]
SleepFn = Callable[[float], Awaitable[None]]


class MonitorState(str, Enum):
    IDLE = "idle"
    POLLING = "polling"
    TERMINAL = "terminal"


class JobMonitor:
    """Polls ``GET /job-status/{job_id}`` for at most one attached job.

    Args:
        api: Status source.
        state: Session state receiving ``latest_status`` and ``error_message``.
        interval: Seconds between ticks.
        max_retries: Consecutive failed fetches tolerated before giving up.
            ``0`` stops on the first failure.
        sleep: Timer primitive; tests substitute a manually driven one.
    """

    def __init__(
        self,
        api: BaseScanApi,
        state: SessionState,
        interval: float = DEFAULT_POLL_INTERVAL,
        max_retries: int = 0,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Polling interval must be positive, got {interval}")
        if max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {max_retries}")

        self.api = api
        self.state = state
        self.interval = interval
        self.max_retries = max_retries
        self._sleep = sleep

        self.mode = MonitorState.IDLE
        self.handle: Optional[JobHandle] = None
        self.last_error: Optional[ScanError] = None
        self.ticks_issued = 0

        self._generation = 0
        self._consecutive_failures = 0
        self._timer: Optional[asyncio.Task] = None
        self._fetches: Set[asyncio.Task] = set()
        self._listeners: List[StatusListener] = []
        self._stopped = asyncio.Event()
        self._stopped.set()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def attach(self, handle: JobHandle) -> None:
        """Start polling ``handle``. Any previous attachment is detached first.

        Must be called from a running event loop.
        """
        if self.mode is not MonitorState.IDLE:
            self.detach()

        self._generation += 1
        self.handle = handle
        self.mode = MonitorState.POLLING
        self.last_error = None
        self.ticks_issued = 0
        self._consecutive_failures = 0
        self._stopped.clear()

        # Tasks copy the current context, so every tick and fetch logs with job_id bound.
        with logger.contextualize(job_id=handle.job_id):
            self._timer = asyncio.create_task(
                self._run_timer(self._generation, handle),
                name=f"job-monitor-{handle.job_id}",
            )
        logger.info(f"⏱ Polling job {handle.job_id} every {self.interval:g}s")

    def detach(self) -> None:
        """Stop polling and forget the current job. Idempotent."""
        if self.mode is MonitorState.IDLE:
            return

        self._generation += 1
        self._cancel_timer()
        job_id = self.handle.job_id if self.handle else None
        self.handle = None
        self.mode = MonitorState.IDLE
        self._stopped.set()
        logger.info(f"Detached from job {job_id}")

    def add_listener(self, listener: StatusListener) -> Callable[[], None]:
        """Register a callback for every applied snapshot. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def wait_until_stopped(self) -> MonitorState:
        """Block until the monitor leaves POLLING; returns the resulting state."""
        await self._stopped.wait()
        return self.mode

    async def aclose(self) -> None:
        """Detach and cancel fetches that are still outstanding."""
        self.detach()
        pending = list(self._fetches)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _is_live(self, generation: int) -> bool:
        return generation == self._generation and self.mode is MonitorState.POLLING

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    async def _run_timer(self, generation: int, handle: JobHandle) -> None:
        while True:
            await self._sleep(self.interval)
            if not self._is_live(generation):
                return

            self.ticks_issued += 1
            tick = self.ticks_issued
            logger.debug(f"Tick {tick}: fetching status of job {handle.job_id}")
            task = asyncio.create_task(self._fetch(generation, handle, tick))
            self._fetches.add(task)
            task.add_done_callback(self._fetches.discard)

    async def _fetch(self, generation: int, handle: JobHandle, tick: int) -> None:
        try:
            status = await self.api.get_job_status(handle.job_id)
        except ApiClientError as e:
            self._on_fetch_failed(generation, handle, tick, e)
            return
        except Exception as e:
            logger.opt(exception=e).warning(f"Unexpected error polling job {handle.job_id} (tick {tick})")
            self._on_fetch_failed(generation, handle, tick, e)
            return
        self._apply(generation, handle, tick, status)

    def _apply(self, generation: int, handle: JobHandle, tick: int, status: JobStatus) -> None:
        if not self._is_live(generation):
            logger.debug(f"Discarding stale status of job {handle.job_id} (tick {tick})")
            return

        self._consecutive_failures = 0
        self.state.latest_status = status
        self._notify(status)

        if status.total_chunks is not None:
            logger.info(f"📦 Job {handle.job_id}: {status.status.value} {status.chunks_done}/{status.total_chunks}")
        else:
            logger.info(f"⏳ Job {handle.job_id}: {status.status.value}")

        if status.status == ScanStatus.ERROR:
            error = RemoteJobError(status.error)
            logger.error(f"❌ Job {handle.job_id} failed remotely: {error.user_message}")
            self._enter_terminal(error)
        elif status.is_terminal:
            logger.info(f"✅ Job {handle.job_id} finished, report {status.result.pdf_filename}")
            self._enter_terminal(None)

    def _on_fetch_failed(self, generation: int, handle: JobHandle, tick: int, cause: Exception) -> None:
        if not self._is_live(generation):
            logger.debug(f"Discarding stale poll failure of job {handle.job_id} (tick {tick}): {cause}")
            return

        self._consecutive_failures += 1
        if self._consecutive_failures <= self.max_retries:
            logger.warning(
                f"Polling error for job {handle.job_id} (attempt {self._consecutive_failures}/"
                f"{self.max_retries + 1}): {cause}, retrying on next tick"
            )
            return

        error = PollingFailed()
        error.__cause__ = cause
        logger.error(f"Polling error for job {handle.job_id}, giving up: {cause}")
        self._enter_terminal(error)

    def _enter_terminal(self, error: Optional[ScanError]) -> None:
        self.mode = MonitorState.TERMINAL
        self.last_error = error
        if error is not None:
            self.state.error_message = error.user_message
        self._cancel_timer()
        self._stopped.set()

    def _notify(self, status: JobStatus) -> None:
        for listener in list(self._listeners):
            try:
                listener(status)
            except Exception:
                logger.exception("Status listener raised; continuing")
