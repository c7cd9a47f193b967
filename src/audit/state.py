"""Session state shared by the submitter, the monitor and the presentation layer."""

from dataclasses import dataclass
from typing import Optional

from infra.models import JobHandle, JobStatus


@dataclass
class SessionState:
    """Everything a single-job client session knows.

    ``active_job`` is set from a successful submission until reset or the
    next scan; ``latest_status`` stays ``None`` until the first successful poll.
    """

    repository_url: str = ""
    submission_in_flight: bool = False
    active_job: Optional[JobHandle] = None
    latest_status: Optional[JobStatus] = None
    error_message: Optional[str] = None

    def clear(self) -> None:
        """Return to the initial empty form."""
        self.repository_url = ""
        self.submission_in_flight = False
        self.active_job = None
        self.latest_status = None
        self.error_message = None

    @property
    def is_empty(self) -> bool:
        return self == SessionState()
