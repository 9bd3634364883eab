"""Submission pipeline: parse -> change gate -> dedup -> record -> notify."""

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from job_relay.config import AppConfig
from job_relay.jobs.listing_parser import UPWORK_BASE, parse_listings
from job_relay.jobs.models import JobRecord
from job_relay.notifications.dispatcher import Notifier, SendReport
from job_relay.notifications.telegram import TelegramClient
from job_relay.storage.database import JobLedger
from job_relay.utils.change_detector import ChangeDetector

logger = logging.getLogger("job_relay.pipeline")


@dataclass
class ProcessResult:
    """What happened to one submitted document."""

    received_at: datetime
    jobs_parsed: int = 0
    changed: bool = False
    new_jobs: list[JobRecord] = field(default_factory=list)
    recorded: int = 0
    report: Optional[SendReport] = None
    error: Optional[str] = None

    @property
    def jobs_notified(self) -> int:
        return self.report.sent if self.report else 0


class JobRelayPipeline:
    """Turns a scraped listing page into chat notifications for unseen jobs.

    Runs are serialized: a submission arriving mid-run waits for the current
    one to finish.
    """

    def __init__(
        self,
        ledger: JobLedger,
        notifier: Notifier,
        detector: Optional[ChangeDetector] = None,
        group_messages: bool = False,
        silent: bool = False,
        base_url: str = UPWORK_BASE,
    ):
        self.ledger = ledger
        self.notifier = notifier
        self.detector = detector or ChangeDetector()
        self.group_messages = group_messages
        self.silent = silent
        self.base_url = base_url
        self._lock = threading.Lock()

    def process_document(self, html, received_at: Optional[datetime] = None) -> ProcessResult:
        """Run the full pipeline for one document. Never raises."""
        result = ProcessResult(received_at=received_at or datetime.now(timezone.utc))
        start = time.time()

        with self._lock:
            try:
                self._run(html, result)
            except Exception as e:
                result.error = f"{type(e).__name__}: {e}"
                logger.error("Processing failed: %s", result.error, exc_info=True)
                # The page was not fully handled; let an identical resubmission through
                self.detector.reset()

            self._record_run(result, start)

        logger.info(
            "Submission done: %d parsed, changed=%s, %d new, %d notified",
            result.jobs_parsed, result.changed, len(result.new_jobs), result.jobs_notified,
        )
        return result

    def _run(self, html, result: ProcessResult):
        logger.info("Step 1: Parsing document received at %s", result.received_at.isoformat())
        jobs = parse_listings(html, base_url=self.base_url)
        result.jobs_parsed = len(jobs)
        if not jobs:
            logger.info("No listings found in document")
            return

        logger.info("Step 2: Checking for changes since last submission...")
        if not self.detector.has_changed([job.to_dict() for job in jobs]):
            logger.info("Listings unchanged, skipping")
            return
        result.changed = True

        logger.info("Step 3: Deduplicating against ledger...")
        new_jobs = self.ledger.filter_new(jobs)
        result.new_jobs = new_jobs
        logger.info("New jobs after dedup: %d/%d", len(new_jobs), len(jobs))
        if not new_jobs:
            return

        # One write per id, so a failure part-way keeps everything recorded before it
        for job in new_jobs:
            outcome = self.ledger.mark_seen(job.job_id)
            if outcome.success:
                result.recorded += 1
            else:
                logger.warning("Could not record job %s: %s", job.job_id, outcome.error)

        logger.info("Step 4: Sending %d jobs (grouped=%s)...", len(new_jobs), self.group_messages)
        result.report = self.notifier.send_jobs(new_jobs, grouped=self.group_messages, silent=self.silent)
        if not result.report.success:
            logger.error(
                "Notification partially failed: %d sent, %d failed",
                result.report.sent, result.report.failed,
            )

    def _record_run(self, result: ProcessResult, start: float):
        try:
            self.ledger.record_run(
                jobs_parsed=result.jobs_parsed,
                page_changed=result.changed,
                new_jobs_found=len(result.new_jobs),
                jobs_notified=result.jobs_notified,
                error_message=result.error,
                duration_seconds=round(time.time() - start, 2),
            )
        except Exception as e:
            logger.error("Could not record run history: %s", e)


def build_pipeline(config: AppConfig, ledger: JobLedger, transport=None) -> JobRelayPipeline:
    """Wire a pipeline from AppConfig. `transport` defaults to the configured Telegram bot."""
    tg = config.telegram
    if transport is None:
        transport = TelegramClient(tg.bot_token, tg.chat_id, timeout=tg.timeout_seconds)

    notifier = Notifier(
        transport,
        delay_seconds=max(0.0, tg.delay_between_messages),
        budget=tg.character_budget,
        parse_mode=tg.parse_mode,
    )
    return JobRelayPipeline(
        ledger,
        notifier,
        group_messages=tg.group_messages,
        silent=tg.silent,
    )
