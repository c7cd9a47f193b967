"""Scan job lifecycle: submission, polling and the session that ties them together."""

from audit.errors import InvalidInput, PollingFailed, RemoteJobError, ScanError, SubmissionFailed
from audit.monitor import JobMonitor, MonitorState
from audit.session import ScanSession
from audit.state import SessionState
from audit.submitter import JobSubmitter

__all__ = [
    "InvalidInput",
    "PollingFailed",
    "RemoteJobError",
    "ScanError",
    "SubmissionFailed",
    "JobMonitor",
    "MonitorState",
    "ScanSession",
    "SessionState",
    "JobSubmitter",
]
