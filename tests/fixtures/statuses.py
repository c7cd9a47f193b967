"""Canned ``/job-status`` payloads, as the scan service returns them."""

from typing import Any, Dict

StatusPayload = Dict[str, Any]

BASE_URL = "http://scan.test"
JOB_ID = "abc123"
REPO_URL = "github.com/x/y"

ANALYZING_NO_PROGRESS: StatusPayload = {
    "status": "analyzing",
    "started_at": "2024-05-01T10:00:00Z",
}

ANALYZING_1_OF_10: StatusPayload = {
    "status": "analyzing",
    "started_at": "2024-05-01T10:00:00Z",
    "chunks_done": 1,
    "total_chunks": 10,
}

ANALYZING_2_OF_10: StatusPayload = {**ANALYZING_1_OF_10, "chunks_done": 2}

# Backend marks the job done a moment before the PDF is written.
DONE_WITHOUT_REPORT: StatusPayload = {
    "status": "done",
    "chunks_done": 10,
    "total_chunks": 10,
    "result": {"total_issues": 4},
}

DONE_WITH_REPORT: StatusPayload = {
    "status": "done",
    "chunks_done": 10,
    "total_chunks": 10,
    "result": {"total_issues": 4, "pdf_filename": "abc123.pdf"},
}

REMOTE_ERROR: StatusPayload = {
    "status": "error",
    "error": "clone failed",
}
