"""Sends formatted job notifications through a transport, one message at a time."""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Protocol

from job_relay.jobs.models import JobRecord
from job_relay.notifications.telegram import TELEGRAM_MAX_LENGTH, SendResult
from job_relay.notifications.templates import DEFAULT_BUDGET, FormatMode, format_jobs, render_grouped_pages

logger = logging.getLogger("job_relay.notifications")


class Transport(Protocol):
    def send_message(
        self,
        text: str,
        parse_mode: str = "HTML",
        disable_web_page_preview: bool = False,
        disable_notification: bool = False,
    ) -> SendResult: ...


@dataclass
class SendReport:
    """Aggregate outcome of a batch send. `sent`/`failed` count jobs in
    individual mode and jobs on delivered/undelivered pages in grouped mode."""

    success: bool
    sent: int = 0
    failed: int = 0
    total: int = 0
    messages: int = 0
    message_ids: list[int] = field(default_factory=list)
    errors: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "sent": self.sent,
            "failed": self.failed,
            "total": self.total,
            "messages": self.messages,
            "message_ids": list(self.message_ids),
            "errors": list(self.errors),
        }


class Notifier:
    """Formats jobs and pushes them to the chat.

    Sends are sequential with a pause in between, which keeps the bot under
    Telegram's per-chat rate limit. A batch that has started always runs to
    the end; failures are collected, not raised.
    """

    def __init__(
        self,
        transport: Transport,
        delay_seconds: float = 1.0,
        page_delay_seconds: float = 1.0,
        budget: int = DEFAULT_BUDGET,
        parse_mode: str = "HTML",
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.transport = transport
        self.delay_seconds = delay_seconds
        self.page_delay_seconds = page_delay_seconds
        self.budget = budget
        self.parse_mode = parse_mode
        self._sleep = sleep

    def send_job(self, job: JobRecord, silent: bool = False) -> SendResult:
        (text,) = format_jobs([job], FormatMode.SINGLE_DETAILED, self.budget)
        return self.transport.send_message(
            text,
            parse_mode=self.parse_mode,
            disable_notification=silent,
        )

    def send_jobs(self, jobs: list[JobRecord], grouped: bool = False, silent: bool = False) -> SendReport:
        if not jobs:
            logger.info("No jobs to send")
            return SendReport(success=True)
        if grouped:
            return self._send_grouped(jobs, silent)
        return self._send_individually(jobs, silent)

    def _send_individually(self, jobs: list[JobRecord], silent: bool) -> SendReport:
        report = SendReport(success=False, total=len(jobs))

        for i, job in enumerate(jobs):
            try:
                result = self.send_job(job, silent=silent)
            except Exception as e:
                result = SendResult(success=False, error=f"{type(e).__name__}: {e}")

            if result.success:
                report.sent += 1
                report.messages += 1
                report.message_ids.append(result.message_id)
                logger.info("Sent %d/%d: %s", i + 1, len(jobs), job.job_id)
            else:
                report.failed += 1
                report.errors.append({"job_id": job.job_id, "error": result.error})
                logger.error("Error %d/%d (%s): %s", i + 1, len(jobs), job.job_id, result.error)

            if i < len(jobs) - 1:
                self._sleep(self.delay_seconds)

        report.success = report.failed == 0
        return report

    def _send_grouped(self, jobs: list[JobRecord], silent: bool) -> SendReport:
        pages = render_grouped_pages(jobs, min(self.budget, TELEGRAM_MAX_LENGTH))
        report = SendReport(success=False, total=len(jobs))

        for i, (page, size) in enumerate(pages):
            try:
                result = self._send_page(page, silent)
            except Exception as e:
                result = SendResult(success=False, error=f"{type(e).__name__}: {e}")

            if result.success:
                report.sent += size
                report.messages += 1
                report.message_ids.append(result.message_id)
            else:
                report.failed += size
                report.errors.append({"page": i + 1, "error": result.error})
                logger.error("Grouped page %d/%d failed: %s", i + 1, len(pages), result.error)

            if i < len(pages) - 1:
                self._sleep(self.page_delay_seconds)

        report.success = report.failed == 0
        logger.info("Grouped send: %d pages, %d jobs sent, %d failed", len(pages), report.sent, report.failed)
        return report

    def _send_page(self, text: str, silent: bool) -> SendResult:
        return self.transport.send_message(
            text,
            parse_mode=self.parse_mode,
            disable_web_page_preview=True,
            disable_notification=silent,
        )
