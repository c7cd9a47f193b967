"""Tests for the httpx-backed scan service client, using httpx.MockTransport."""

import json
from pathlib import Path
from typing import Callable, List

import httpx
import pytest

from infra.api_client import ApiClientError, ScanApiClient
from infra.models import ScanStatus
from tests.fixtures.statuses import ANALYZING_1_OF_10, BASE_URL, DONE_WITH_REPORT, JOB_ID, REPO_URL

Handler = Callable[[httpx.Request], httpx.Response]


def _client(handler: Handler, base_url: str = BASE_URL) -> ScanApiClient:
    return ScanApiClient(base_url, transport=httpx.MockTransport(handler))


class TestStartJob:
    @pytest.mark.asyncio
    async def test_posts_repo_url_and_returns_job_id(self) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"job_id": JOB_ID})

        client = _client(handler)
        assert await client.start_job(REPO_URL) == JOB_ID
        await client.aclose()

        assert len(seen) == 1
        assert seen[0].method == "POST"
        assert str(seen[0].url) == f"{BASE_URL}/start-job"
        assert json.loads(seen[0].content) == {"repo_url": REPO_URL}

    @pytest.mark.asyncio
    async def test_non_2xx_raises_with_status_code(self) -> None:
        client = _client(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(ApiClientError) as excinfo:
            await client.start_job(REPO_URL)
        assert excinfo.value.status_code == 500
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_job_id_raises(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"id": JOB_ID}))
        with pytest.raises(ApiClientError, match="no job_id"):
            await client.start_job(REPO_URL)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_connection_error_raises(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _client(handler)
        with pytest.raises(ApiClientError) as excinfo:
            await client.start_job(REPO_URL)
        assert isinstance(excinfo.value.__cause__, httpx.ConnectError)
        assert excinfo.value.status_code is None
        await client.aclose()


class TestJobStatus:
    @pytest.mark.asyncio
    async def test_parses_status_payload(self) -> None:
        seen: List[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(str(request.url))
            return httpx.Response(200, json=ANALYZING_1_OF_10)

        client = _client(handler)
        status = await client.get_job_status(JOB_ID)
        await client.aclose()

        assert seen == [f"{BASE_URL}/job-status/{JOB_ID}"]
        assert status.status == ScanStatus.ANALYZING
        assert (status.chunks_done, status.total_chunks) == (1, 10)

    @pytest.mark.asyncio
    async def test_done_payload_carries_result(self) -> None:
        client = _client(lambda request: httpx.Response(200, json=DONE_WITH_REPORT))
        status = await client.get_job_status(JOB_ID)
        await client.aclose()

        assert status.result.total_issues == 4
        assert status.result.pdf_filename == "abc123.pdf"

    @pytest.mark.asyncio
    async def test_epoch_started_at_is_accepted(self) -> None:
        payload = {**ANALYZING_1_OF_10, "started_at": 1714557600.5}
        client = _client(lambda request: httpx.Response(200, json=payload))
        status = await client.get_job_status(JOB_ID)
        await client.aclose()

        assert status.status == ScanStatus.ANALYZING
        assert status.started_at == 1714557600.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>gateway</html>"),
            httpx.Response(200, json=["analyzing"]),
            httpx.Response(200, json={"status": "exploded"}),
            httpx.Response(404, json={"detail": "unknown job"}),
        ],
        ids=["not-json", "not-an-object", "bad-status", "http-404"],
    )
    async def test_bad_responses_raise(self, response: httpx.Response) -> None:
        client = _client(lambda request: response)
        with pytest.raises(ApiClientError):
            await client.get_job_status(JOB_ID)
        await client.aclose()


class TestReportDownload:
    def test_download_url_uses_base_prefix(self) -> None:
        client = ScanApiClient(f"{BASE_URL}/api/")
        assert client.download_url("abc123.pdf") == f"{BASE_URL}/api/download-report/abc123.pdf"

    def test_base_url_prefix_is_kept_for_routes(self) -> None:
        client = ScanApiClient(f"{BASE_URL}/api")
        assert client.base_url == f"{BASE_URL}/api"

    @pytest.mark.asyncio
    async def test_download_report_writes_file(self, tmp_path: Path) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/download-report/abc123.pdf"
            return httpx.Response(200, content=b"%PDF-1.7 fake")

        client = _client(handler)
        written = await client.download_report("abc123.pdf", tmp_path / "reports")
        await client.aclose()

        assert written == tmp_path / "reports" / "abc123.pdf"
        assert written.read_bytes() == b"%PDF-1.7 fake"

    @pytest.mark.asyncio
    async def test_download_report_missing_raises(self, tmp_path: Path) -> None:
        client = _client(lambda request: httpx.Response(404))
        with pytest.raises(ApiClientError) as excinfo:
            await client.download_report("gone.pdf", tmp_path)
        assert excinfo.value.status_code == 404
        await client.aclose()
