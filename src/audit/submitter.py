"""Start-job submission with a busy guard against duplicate clicks."""

from typing import Optional

from loguru import logger

from audit.errors import InvalidInput, SubmissionFailed
from audit.state import SessionState
from infra.api_client import ApiClientError, BaseScanApi
from infra.models import JobHandle, ScanRequest


class JobSubmitter:
    """Issues ``POST /start-job`` and turns the reply into a ``JobHandle``.

    No request-level deduplication: two sequential submissions of the same
    URL create two independent jobs on the backend.
    """

    def __init__(self, api: BaseScanApi, state: SessionState) -> None:
        self.api = api
        self.state = state
        self._epoch = 0

    def invalidate(self) -> None:
        """Abandon any outstanding submission; its job handle will be dropped."""
        self._epoch += 1
        self.state.submission_in_flight = False

    @staticmethod
    def validate(request: ScanRequest) -> None:
        """Raise ``InvalidInput`` for an empty or whitespace-only repository URL."""
        if not request.repository_url:
            raise InvalidInput()

    async def submit(self, request: ScanRequest) -> Optional[JobHandle]:
        """Start a scan for ``request.repository_url``.

        Returns:
            The new job handle, or ``None`` when another submission is still
            outstanding (the call is then a no-op) or this one was abandoned
            via ``invalidate()`` before the backend replied.

        Raises:
            InvalidInput: The repository URL is empty or whitespace-only.
            SubmissionFailed: The backend could not be reached or refused the job.
        """
        self.validate(request)

        if self.state.submission_in_flight:
            logger.debug("Submission already in flight, ignoring duplicate submit")
            return None

        epoch = self._epoch
        self.state.submission_in_flight = True
        try:
            logger.info(f"🚀 Starting scan for {request.repository_url}")
            job_id = await self.api.start_job(request.repository_url)
        except ApiClientError as e:
            if epoch != self._epoch:
                logger.debug(f"Ignoring failure of abandoned submission: {e}")
                return None
            logger.error(f"Start-job request failed for {request.repository_url}: {e}")
            raise SubmissionFailed() from e
        except Exception as e:
            if epoch != self._epoch:
                logger.debug(f"Ignoring failure of abandoned submission: {e!r}")
                return None
            logger.exception(f"Unexpected error starting scan for {request.repository_url}")
            raise SubmissionFailed() from e
        finally:
            if epoch == self._epoch:
                self.state.submission_in_flight = False

        if epoch != self._epoch:
            logger.info(f"Discarding job {job_id}: submission was abandoned")
            return None

        logger.info(f"🛠 Job created: {job_id}")
        return JobHandle(job_id=job_id)
