"""Async HTTP client for the CodexAudit scan service.

Architecture:
    BaseScanApi (ABC)
        ScanApiClient  -- talks to the service over httpx.AsyncClient

Routes (relative to the configured base URL):
    POST /start-job                    -> {"job_id": ...}
    GET  /job-status/{job_id}          -> JobStatus JSON
    GET  /download-report/{filename}   -> PDF bytes
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional
from urllib.parse import quote

import httpx
from loguru import logger
from pydantic import ValidationError

from infra.models import JobStatus


class ApiClientError(Exception):
    """Raised on any failure talking to the scan service (network, HTTP status, payload)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


# ---------------------------------------------------------------------------
# Abstract interface
# ---------------------------------------------------------------------------

class BaseScanApi(ABC):
    """Interface the submitter and monitor depend on.

    Swap in a fake implementation for tests or alternative transports.
    """

    @abstractmethod
    async def start_job(self, repo_url: str) -> str:
        """Create a scan job and return its server-assigned id.

        Raises:
            ApiClientError: On transport failure, non-2xx or a body without ``job_id``.
        """

    @abstractmethod
    async def get_job_status(self, job_id: str) -> JobStatus:
        """Fetch the current status snapshot of ``job_id``.

        Raises:
            ApiClientError: On transport failure, non-2xx or a malformed payload.
        """

    @abstractmethod
    def download_url(self, pdf_filename: str) -> str:
        """Return the absolute link to a finished report."""

    async def aclose(self) -> None:
        """Release transport resources. No-op by default."""


# ---------------------------------------------------------------------------
# httpx implementation
# ---------------------------------------------------------------------------

class ScanApiClient(BaseScanApi):
    """Calls the scan service via ``httpx.AsyncClient``.

    ``base_url`` is treated as an opaque prefix; a trailing slash is dropped.
    ``timeout=None`` disables per-request timeouts, so a hung status fetch is
    only noticed through the lack of progress on later ticks.
    """

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
        )
        logger.debug(f"ScanApiClient: {self.base_url} | timeout={timeout}")

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise ApiClientError(f"{method} {path} returned HTTP {code}", status_code=code) from e
        except httpx.HTTPError as e:
            raise ApiClientError(f"{method} {path} failed: {e!r}") from e

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError as e:
            raise ApiClientError(f"Response from {response.request.url} is not JSON") from e
        if not isinstance(data, dict):
            raise ApiClientError(f"Expected a JSON object from {response.request.url}")
        return data

    async def start_job(self, repo_url: str) -> str:
        response = await self._request("POST", "/start-job", json={"repo_url": repo_url})
        job_id = self._json(response).get("job_id")
        if not isinstance(job_id, str) or not job_id:
            raise ApiClientError("start-job response has no job_id")
        return job_id

    async def get_job_status(self, job_id: str) -> JobStatus:
        response = await self._request("GET", f"/job-status/{quote(job_id, safe='')}")
        data = self._json(response)
        try:
            return JobStatus.model_validate(data)
        except ValidationError as e:
            raise ApiClientError(f"Malformed job-status payload for {job_id}: {e}") from e

    def download_url(self, pdf_filename: str) -> str:
        return f"{self.base_url}/download-report/{quote(pdf_filename, safe='')}"

    async def download_report(self, pdf_filename: str, dest_dir: Path) -> Path:
        """Stream a finished report to ``dest_dir`` and return the written path."""
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        target = dest_dir / Path(pdf_filename).name
        path = f"/download-report/{quote(pdf_filename, safe='')}"

        try:
            async with self._client.stream("GET", path) as response:
                response.raise_for_status()
                with open(target, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            raise ApiClientError(f"GET {path} returned HTTP {code}", status_code=code) from e
        except httpx.HTTPError as e:
            raise ApiClientError(f"GET {path} failed: {e!r}") from e

        logger.info(f"📥 Report saved to {target}")
        return target

    async def aclose(self) -> None:
        await self._client.aclose()
