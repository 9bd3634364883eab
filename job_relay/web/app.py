"""FastAPI application factory for the collector-facing submission API."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import BackgroundTasks, Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from job_relay.config import AppConfig
from job_relay.pipeline import JobRelayPipeline, build_pipeline
from job_relay.storage.database import JobLedger

from .dependencies import get_ledger, get_pipeline

logger = logging.getLogger("job_relay.web")


class Submission(BaseModel):
    """Body posted by the collector. Only `html` is required."""

    model_config = ConfigDict(extra="ignore")

    html: str
    timestamp: Optional[str] = None
    url: Optional[str] = None
    pageTitle: Optional[str] = None


def _parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable timestamp %r", value)
        return None


def create_app(config: AppConfig, transport=None) -> FastAPI:
    """Build the app. The ledger is opened on startup and closed on shutdown."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        ledger = JobLedger(config.database_url)
        app.state.ledger = ledger
        app.state.pipeline = build_pipeline(config, ledger, transport=transport)
        logger.info("Job relay API ready")
        try:
            yield
        finally:
            ledger.close()

    app = FastAPI(title="Job Relay", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.post("/endpoint")
    def receive_document(
        submission: Submission,
        background_tasks: BackgroundTasks,
        pipeline: JobRelayPipeline = Depends(get_pipeline),
    ):
        # Acknowledge right away; processing outcome is only logged
        logger.info("Document received from %s (%d chars)", submission.url or "collector", len(submission.html))
        background_tasks.add_task(
            pipeline.process_document,
            submission.html,
            _parse_timestamp(submission.timestamp),
        )
        return {
            "success": True,
            "message": "Data received",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/health")
    def health(ledger: JobLedger = Depends(get_ledger)):
        return {"status": "ok", "jobs_tracked": ledger.count_jobs()}

    return app
