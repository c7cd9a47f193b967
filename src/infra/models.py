"""Shared Pydantic schemas for the scan service wire format."""

from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ScanStatus(str, Enum):
    ANALYZING = "analyzing"
    DONE = "done"
    ERROR = "error"


class ScanResult(BaseModel):
    """Final report metadata returned once the backend finishes a job."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    total_issues: Optional[int] = Field(
        default=None,
        description="Number of issues found in the repository; some backends omit it",
    )
    pdf_filename: Optional[str] = Field(
        default=None,
        description="Report artifact name; absent until the PDF has been written",
    )


class JobStatus(BaseModel):
    """One snapshot of ``GET /job-status/{job_id}``.

    Snapshots are never merged: each poll replaces the previous one wholesale.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    status: ScanStatus
    #: ISO-8601 string or epoch seconds, passed through for display
    started_at: Optional[Union[str, float, int]] = None
    chunks_done: Optional[int] = None
    total_chunks: Optional[int] = None
    result: Optional[ScanResult] = None
    error: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _normalise_status(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @property
    def report_ready(self) -> bool:
        return (
            self.status == ScanStatus.DONE
            and self.result is not None
            and bool(self.result.pdf_filename)
        )

    @property
    def is_terminal(self) -> bool:
        """Done-with-artifact or Error. Done without a PDF keeps polling."""
        return self.report_ready or self.status == ScanStatus.ERROR


class ScanRequest(BaseModel):
    """Body of ``POST /start-job``."""

    model_config = ConfigDict(frozen=True)

    repository_url: str

    @field_validator("repository_url", mode="before")
    @classmethod
    def _trim(cls, v):
        return v.strip() if isinstance(v, str) else v

    def to_payload(self) -> dict:
        return {"repo_url": self.repository_url}


class JobHandle(BaseModel):
    """Server-assigned identifier of the active job."""

    model_config = ConfigDict(frozen=True)

    job_id: str
