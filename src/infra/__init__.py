"""HTTP and logging infrastructure for the scan client."""

from infra.api_client import ApiClientError, BaseScanApi, ScanApiClient
from infra.models import JobHandle, JobStatus, ScanRequest, ScanResult, ScanStatus

__all__ = [
    "ApiClientError",
    "BaseScanApi",
    "ScanApiClient",
    "JobHandle",
    "JobStatus",
    "ScanRequest",
    "ScanResult",
    "ScanStatus",
]
