"""Job ledger: persistent dedup of processed job ids, plus run history."""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from job_relay.jobs.models import JobRecord
from job_relay.models import Base, ConfigEntry, RunHistory, SeenJob, make_engine, make_session_factory

logger = logging.getLogger("job_relay.storage")

SCHEMA_VERSION = "1.0"


@dataclass
class RecordResult:
    """Outcome of a single ledger write."""

    success: bool
    id: Optional[int] = None
    error: Optional[str] = None


class JobLedger:
    """Database-backed record of which job ids have already been processed.

    Construct one per process and pass it to whoever needs it; close it
    (or use it as a context manager) when done.
    """

    def __init__(self, database_url: str = "sqlite:///data/jobs.db"):
        self.database_url = database_url
        self.engine = make_engine(database_url)
        self._sessions = make_session_factory(self.engine)
        self._init_db()

    def _init_db(self):
        Base.metadata.create_all(self.engine)
        with self._sessions() as db:
            if db.get(ConfigEntry, "version_db") is not None:
                logger.info("Connected to existing job ledger")
                return
            logger.info("New job ledger detected, seeding config")
            db.add(ConfigEntry(id="version_db", value=SCHEMA_VERSION))
            db.add(ConfigEntry(id="db_created_date", value=datetime.now(timezone.utc).isoformat()))
            db.commit()

    def record_job(self, job_id: str) -> RecordResult:
        """Insert one job id in its own transaction. Duplicates fail without raising."""
        with self._sessions() as db:
            row = SeenJob(job_id=job_id)
            db.add(row)
            try:
                db.commit()
            except IntegrityError as e:
                db.rollback()
                logger.debug("Job %s already recorded: %s", job_id, e.orig)
                return RecordResult(success=False, error=f"Job already recorded: {job_id}")
            except SQLAlchemyError as e:
                db.rollback()
                logger.error("Failed to record job %s: %s", job_id, e)
                return RecordResult(success=False, error=str(e))
            return RecordResult(success=True, id=row.id)

    def find_job(self, job_id: str) -> Optional[SeenJob]:
        with self._sessions() as db:
            return db.scalars(select(SeenJob).where(SeenJob.job_id == job_id)).first()

    def has_seen(self, job_id: str) -> bool:
        return self.find_job(job_id) is not None

    def mark_seen(self, job_id: str) -> RecordResult:
        return self.record_job(job_id)

    def filter_new(self, jobs: list[JobRecord]) -> list[JobRecord]:
        """Return jobs not previously recorded, dropping repeats within the batch."""
        if not jobs:
            return []
        ids = {job.job_id for job in jobs}
        with self._sessions() as db:
            seen = set(db.scalars(select(SeenJob.job_id).where(SeenJob.job_id.in_(list(ids)))).all())

        new_jobs = []
        for job in jobs:
            if job.job_id in seen:
                continue
            seen.add(job.job_id)
            new_jobs.append(job)
        return new_jobs

    def get_config(self, key: str) -> Optional[str]:
        with self._sessions() as db:
            entry = db.get(ConfigEntry, key)
            return entry.value if entry else None

    def count_jobs(self) -> int:
        with self._sessions() as db:
            return db.scalar(select(func.count(SeenJob.id))) or 0

    def record_run(
        self,
        jobs_parsed: int = 0,
        page_changed: bool = False,
        new_jobs_found: int = 0,
        jobs_notified: int = 0,
        error_message: Optional[str] = None,
        duration_seconds: Optional[float] = None,
    ):
        """Record a processed submission in history."""
        with self._sessions() as db:
            db.add(RunHistory(
                jobs_parsed=jobs_parsed,
                page_changed=page_changed,
                new_jobs_found=new_jobs_found,
                jobs_notified=jobs_notified,
                error_message=error_message,
                duration_seconds=duration_seconds,
            ))
            db.commit()

    def get_stats(self) -> dict:
        """Get ledger statistics."""
        stats = {}
        with self._sessions() as db:
            stats["total_jobs_tracked"] = db.scalar(select(func.count(SeenJob.id))) or 0
            stats["total_runs"] = db.scalar(select(func.count(RunHistory.id))) or 0
            stats["schema_version"] = self.get_config("version_db")
            stats["created_at"] = self.get_config("db_created_date")

            last = db.scalars(select(RunHistory).order_by(RunHistory.id.desc()).limit(1)).first()
            if last:
                stats["last_run"] = {
                    "run_at": last.run_at.isoformat() if last.run_at else None,
                    "jobs_parsed": last.jobs_parsed,
                    "page_changed": last.page_changed,
                    "new_jobs_found": last.new_jobs_found,
                    "jobs_notified": last.jobs_notified,
                    "error_message": last.error_message,
                }
        return stats

    def close(self):
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None
            logger.info("Job ledger closed")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
