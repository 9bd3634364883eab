"""Tests for the SQLAlchemy-backed job ledger."""

import os
import tempfile

import pytest

from job_relay.jobs.models import JobRecord
from job_relay.storage.database import SCHEMA_VERSION, JobLedger


@pytest.fixture
def db_url():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield f"sqlite:///{os.path.join(tmpdir, 'nested', 'test.db')}"


@pytest.fixture
def ledger(db_url):
    database = JobLedger(db_url)
    yield database
    database.close()


class TestJobLedger:
    def test_record_and_check_job(self, ledger):
        assert not ledger.has_seen("1790")
        result = ledger.record_job("1790")
        assert result.success
        assert result.id is not None
        assert ledger.has_seen("1790")

    def test_duplicate_record_fails_without_raising(self, ledger):
        first = ledger.record_job("1790")
        second = ledger.record_job("1790")
        assert first.success
        assert not second.success
        assert second.error
        assert ledger.count_jobs() == 1

    def test_mark_seen_alias(self, ledger):
        assert ledger.mark_seen("a").success
        assert not ledger.mark_seen("a").success
        assert ledger.has_seen("a")

    def test_find_job(self, ledger):
        ledger.record_job("abc")
        row = ledger.find_job("abc")
        assert row.job_id == "abc"
        assert row.created_at is not None
        assert ledger.find_job("missing") is None

    def test_ids_are_exact_strings(self, ledger):
        ledger.record_job("ABC")
        assert not ledger.has_seen("abc")
        assert not ledger.has_seen("ABC ")

    def test_filter_new(self, ledger):
        jobs = [JobRecord(index=i, uid=f"u{i}") for i in range(3)]
        assert len(ledger.filter_new(jobs)) == 3

        ledger.record_job("u1")
        new = ledger.filter_new(jobs)
        assert [j.uid for j in new] == ["u0", "u2"]

    def test_filter_new_drops_in_batch_duplicates(self, ledger):
        jobs = [JobRecord(index=0, uid="x"), JobRecord(index=1, uid="x"), JobRecord(index=2, uid="y")]
        new = ledger.filter_new(jobs)
        assert [j.index for j in new] == [0, 2]

    def test_filter_new_empty(self, ledger):
        assert ledger.filter_new([]) == []

    def test_seeded_config(self, ledger):
        assert ledger.get_config("version_db") == SCHEMA_VERSION
        assert ledger.get_config("db_created_date")
        assert ledger.get_config("nope") is None

    def test_reopen_is_idempotent(self, db_url):
        with JobLedger(db_url) as first:
            first.record_job("keep-me")
            created = first.get_config("db_created_date")

        with JobLedger(db_url) as second:
            assert second.get_config("db_created_date") == created
            assert second.has_seen("keep-me")
            assert second.count_jobs() == 1

    def test_record_run_and_stats(self, ledger):
        ledger.record_job("a")
        ledger.record_run(jobs_parsed=10, page_changed=True, new_jobs_found=1, jobs_notified=1)

        stats = ledger.get_stats()
        assert stats["total_jobs_tracked"] == 1
        assert stats["total_runs"] == 1
        assert stats["last_run"]["jobs_parsed"] == 10
        assert stats["last_run"]["page_changed"] is True
        assert stats["schema_version"] == SCHEMA_VERSION

    def test_record_failed_run(self, ledger):
        ledger.record_run(error_message="Telegram timeout")
        assert ledger.get_stats()["last_run"]["error_message"] == "Telegram timeout"

    def test_stats_empty_db(self, ledger):
        stats = ledger.get_stats()
        assert stats["total_jobs_tracked"] == 0
        assert stats["total_runs"] == 0
        assert "last_run" not in stats

    def test_close_twice(self, db_url):
        ledger = JobLedger(db_url)
        ledger.close()
        ledger.close()
