"""Shared FastAPI dependencies: ledger and pipeline from app state."""

from fastapi import Request

from job_relay.pipeline import JobRelayPipeline
from job_relay.storage.database import JobLedger


def get_ledger(request: Request) -> JobLedger:
    return request.app.state.ledger


def get_pipeline(request: Request) -> JobRelayPipeline:
    return request.app.state.pipeline
