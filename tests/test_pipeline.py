"""End-to-end tests for the submission pipeline."""

import os
import tempfile

import pytest

from job_relay.config import AppConfig
from job_relay.notifications.dispatcher import Notifier
from job_relay.notifications.telegram import SendResult
from job_relay.pipeline import JobRelayPipeline, build_pipeline
from job_relay.storage.database import JobLedger


class RecordingTransport:
    def __init__(self, succeed=True):
        self.succeed = succeed
        self.texts = []

    def send_message(self, text, parse_mode="HTML", disable_web_page_preview=False, disable_notification=False):
        self.texts.append(text)
        if self.succeed:
            return SendResult(success=True, message_id=len(self.texts))
        return SendResult(success=False, error="HTTP 500")


def page(*uids) -> str:
    sections = "".join(
        f'<section data-ev-opening_uid="{uid}"><h2><a href="/jobs/{uid}">Job {uid}</a></h2>'
        f'<span data-test="budget">$100</span></section>'
        for uid in uids
    )
    return f'<html><body><div data-test="job-tile-list">{sections}</div></body></html>'


@pytest.fixture
def ledger():
    with tempfile.TemporaryDirectory() as tmpdir:
        db = JobLedger(f"sqlite:///{os.path.join(tmpdir, 'jobs.db')}")
        yield db
        db.close()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def pipeline(ledger, transport):
    return JobRelayPipeline(ledger, Notifier(transport, sleep=lambda _: None))


class TestProcessDocument:
    def test_first_submission_notifies_all(self, pipeline, transport, ledger):
        result = pipeline.process_document(page("a", "b"))

        assert result.error is None
        assert result.jobs_parsed == 2
        assert result.changed
        assert [j.uid for j in result.new_jobs] == ["a", "b"]
        assert result.recorded == 2
        assert result.jobs_notified == 2
        assert len(transport.texts) == 2
        assert ledger.has_seen("a") and ledger.has_seen("b")

    def test_identical_resubmission_skipped(self, pipeline, transport):
        pipeline.process_document(page("a", "b"))
        result = pipeline.process_document(page("a", "b"))

        assert not result.changed
        assert result.new_jobs == []
        assert len(transport.texts) == 2

    def test_changed_page_sends_only_new_jobs(self, pipeline, transport):
        pipeline.process_document(page("a", "b"))
        result = pipeline.process_document(page("c", "a", "b"))

        assert result.changed
        assert [j.uid for j in result.new_jobs] == ["c"]
        assert len(transport.texts) == 3
        assert "Job c" in transport.texts[-1]

    def test_seen_jobs_survive_restart(self, ledger, transport):
        JobRelayPipeline(ledger, Notifier(transport, sleep=lambda _: None)).process_document(page("a"))
        # fresh pipeline, fresh change detector, same ledger
        result = JobRelayPipeline(ledger, Notifier(transport, sleep=lambda _: None)).process_document(page("a"))

        assert result.changed
        assert result.new_jobs == []
        assert len(transport.texts) == 1

    def test_empty_page(self, pipeline, transport):
        result = pipeline.process_document("<html><body></body></html>")
        assert result.jobs_parsed == 0
        assert not result.changed
        assert transport.texts == []

    def test_grouped_mode(self, ledger, transport):
        pipeline = JobRelayPipeline(ledger, Notifier(transport, sleep=lambda _: None), group_messages=True)
        result = pipeline.process_document(page("a", "b", "c"))
        assert result.jobs_notified == 3
        assert len(transport.texts) == 1
        assert "(3)" in transport.texts[0]

    def test_failed_send_still_marks_seen(self, ledger):
        transport = RecordingTransport(succeed=False)
        pipeline = JobRelayPipeline(ledger, Notifier(transport, sleep=lambda _: None))

        result = pipeline.process_document(page("a"))

        assert result.report.failed == 1
        assert result.jobs_notified == 0
        assert ledger.has_seen("a")

    def test_never_raises(self, pipeline):
        result = pipeline.process_document(12345)
        assert result.error is not None
        assert "DocumentParseError" in result.error

    def test_failed_run_lets_same_page_through_again(self, pipeline, transport, ledger, monkeypatch):
        real_filter_new = ledger.filter_new
        calls = []

        def locked_once(jobs):
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("database is locked")
            return real_filter_new(jobs)

        monkeypatch.setattr(ledger, "filter_new", locked_once)

        first = pipeline.process_document(page("a"))
        second = pipeline.process_document(page("a"))

        assert "database is locked" in first.error
        assert second.error is None
        assert second.changed
        assert [j.uid for j in second.new_jobs] == ["a"]
        assert len(transport.texts) == 1
        assert ledger.has_seen("a")

    def test_runs_are_recorded(self, pipeline, ledger):
        pipeline.process_document(page("a"))
        pipeline.process_document(page("a"))
        stats = ledger.get_stats()
        assert stats["total_runs"] == 2
        assert stats["last_run"]["page_changed"] is False


class TestBuildPipeline:
    def test_wires_config(self, ledger, transport):
        config = AppConfig()
        config.telegram.group_messages = True
        config.telegram.delay_between_messages = -3
        config.telegram.character_budget = 3000

        pipeline = build_pipeline(config, ledger, transport=transport)

        assert pipeline.group_messages is True
        assert pipeline.notifier.delay_seconds == 0.0
        assert pipeline.notifier.budget == 3000
        assert pipeline.notifier.transport is transport
