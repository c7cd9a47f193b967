"""
CodexAudit - command-line client
Submits a repository for analysis, follows the job until it finishes and
prints (or downloads) the resulting PDF report.
"""
import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

from audit.monitor import MonitorState
from audit.session import ScanSession
from infra.api_client import ApiClientError, ScanApiClient
from infra.models import JobStatus
from utils.config import settings, setup_logging

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_INTERRUPTED = 130


def _positive_float(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")
    if not seconds > 0:
        raise argparse.ArgumentTypeError(f"must be greater than 0, got {value}")
    return seconds


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Scan a GitHub repository with CodexAudit.")
    p.add_argument("repo_url", type=str, help="Repository URL, e.g. github.com/owner/name")
    p.add_argument("--api-url", type=str, default=None, help=f"Scan service base URL (default: {settings.api_url})")
    p.add_argument(
        "--interval",
        type=_positive_float,
        default=None,
        help=f"Seconds between status polls (default: {settings.poll_interval:g})",
    )
    p.add_argument("--download", type=Path, default=None, metavar="DIR", help="Save the PDF report into DIR.")
    return p


def _log_snapshot(session: ScanSession, status: JobStatus) -> None:
    progress = session.progress_text
    suffix = f" ({progress} chunks)" if progress else ""
    logger.info(f"⏳ Status: {status.status.value}{suffix}")


async def run_scan(
    repo_url: str,
    api: ScanApiClient,
    interval: float,
    download_dir: Optional[Path] = None,
) -> int:
    """Run one scan end to end and return a process exit code.

    The session (and with it ``api``) is closed on the way out.
    """
    async with ScanSession(api, interval=interval, max_retries=settings.poll_max_retries) as session:
        session.monitor.add_listener(lambda status: _log_snapshot(session, status))

        handle = await session.start_scan(repo_url)
        if handle is None:
            logger.error(f"❌ {session.state.error_message}")
            return EXIT_FAILED

        logger.info(f"🛠 Job: {handle.job_id}")
        try:
            outcome = await session.wait()
        except asyncio.CancelledError:
            session.reset()
            raise

        if outcome is not MonitorState.TERMINAL or session.state.error_message:
            logger.error(f"❌ {session.state.error_message or 'Scan stopped'} (job {handle.job_id})")
            return EXIT_FAILED

        logger.info(f"✅ {session.summary_text}")
        logger.info(f"📄 Report: {session.download_url}")

        if download_dir is not None:
            pdf_filename = session.state.latest_status.result.pdf_filename
            try:
                await api.download_report(pdf_filename, download_dir)
            except ApiClientError as e:
                logger.error(f"❌ Report download failed: {e}")
                return EXIT_FAILED

    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point"""
    args = build_parser().parse_args(argv)

    log_file = setup_logging()
    logger.debug(f"📝 Logging to: {log_file}")

    try:
        return asyncio.run(
            run_scan(
                args.repo_url,
                ScanApiClient(args.api_url or settings.api_url, timeout=settings.request_timeout),
                interval=args.interval if args.interval is not None else settings.poll_interval,
                download_dir=args.download,
            )
        )
    except KeyboardInterrupt:
        logger.warning("⚠️ Scan interrupted by user")
        return EXIT_INTERRUPTED


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
