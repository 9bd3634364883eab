"""Orchestrator - CLI entry point for the job relay."""

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path

from job_relay.config import AppConfig, find_config, load_config, validate_config
from job_relay.jobs.listing_parser import parse_listings
from job_relay.notifications.telegram import TelegramClient
from job_relay.notifications.templates import FormatMode, format_jobs
from job_relay.storage.database import JobLedger
from job_relay.utils.logging_config import setup_logging

logger = logging.getLogger("job_relay")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Job Relay - scrape job listings and republish new ones to Telegram",
    )
    parser.add_argument(
        "--config", default=None,
        help="Path to config file (default: $JOB_RELAY_CONFIG or config.yaml)",
    )
    parser.add_argument(
        "--test-message", action="store_true",
        help="Check the bot token, send a test message and exit",
    )
    parser.add_argument(
        "--parse", metavar="FILE",
        help="Parse a saved listing page and print records and messages (no sending)",
    )
    parser.add_argument(
        "--grouped", action="store_true",
        help="With --parse, render the grouped summary instead of individual messages",
    )
    parser.add_argument(
        "--stats", action="store_true",
        help="Print ledger statistics and exit",
    )
    parser.add_argument(
        "--collect", action="store_true",
        help="Poll the configured page and forward changes to the API",
    )
    return parser.parse_args(argv)


def print_stats(ledger: JobLedger):
    """Print ledger statistics."""
    stats = ledger.get_stats()
    print("\n=== Job Relay Statistics ===")
    print(f"Schema version: {stats.get('schema_version')}")
    print(f"Ledger created: {stats.get('created_at')}")
    print(f"Total jobs tracked: {stats['total_jobs_tracked']}")
    print(f"Total submissions processed: {stats['total_runs']}")

    if stats.get("last_run"):
        run = stats["last_run"]
        print(f"\nLast run: {run['run_at']}")
        print(f"  Parsed: {run['jobs_parsed']}")
        print(f"  Page changed: {'Yes' if run['page_changed'] else 'No'}")
        print(f"  New: {run['new_jobs_found']}")
        print(f"  Notified: {run['jobs_notified']}")
        if run["error_message"]:
            print(f"  Error: {run['error_message']}")
    print()


def dry_run_parse(path: str, config: AppConfig, grouped: bool = False) -> int:
    """Parse a saved page and print what would be sent."""
    html = Path(path).read_text(encoding="utf-8")
    jobs = parse_listings(html)
    print(json.dumps([job.to_dict() for job in jobs], indent=2, ensure_ascii=False))

    mode = FormatMode.GROUPED_SUMMARY if grouped else FormatMode.INDIVIDUAL
    payloads = format_jobs(jobs, mode, config.telegram.character_budget)
    for i, payload in enumerate(payloads, 1):
        print(f"\n--- message {i}/{len(payloads)} ({len(payload)} chars) ---")
        print(payload)
    return len(jobs)


def send_test_message(config: AppConfig) -> bool:
    client = TelegramClient(
        config.telegram.bot_token,
        config.telegram.chat_id,
        timeout=config.telegram.timeout_seconds,
    )
    probe = client.test_connection()
    if not probe["success"]:
        logger.error("Bot token check failed: %s", probe["error"])
        return False
    logger.info("Connected as @%s", probe["bot"].get("username"))

    result = client.send_message("✅ <b>Job Relay</b> test message", parse_mode=config.telegram.parse_mode)
    if not result.success:
        logger.error("Test message failed: %s", result.error)
    return result.success


def run_collector(config: AppConfig):
    """Poll until interrupted."""
    from job_relay.collector import PageCollector
    from job_relay.scheduler import PollScheduler

    collector = PageCollector(
        config.collector.page_url,
        config.collector.api_url,
        content_selector=config.collector.content_selector,
        timeout=config.collector.timeout_seconds,
    )
    poller = PollScheduler(collector.run_once, config.collector.refresh_interval_seconds)

    stop = threading.Event()
    signal.signal(signal.SIGINT, lambda *_: stop.set())
    signal.signal(signal.SIGTERM, lambda *_: stop.set())

    poller.start()
    try:
        stop.wait()
    finally:
        poller.stop()


def serve(config: AppConfig):
    import uvicorn

    from job_relay.web.app import create_app

    uvicorn.run(create_app(config), host=config.server.host, port=config.server.port)


def main(argv=None):
    args = parse_args(argv)

    # Load config
    try:
        config = load_config(find_config(args.config))
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    # Setup logging
    setup_logging(config.log_dir)

    # Validate config and print warnings
    for w in validate_config(config):
        logger.warning("Config: %s", w)

    if args.stats:
        with JobLedger(config.database_url) as ledger:
            print_stats(ledger)
        return

    if args.parse:
        dry_run_parse(args.parse, config, grouped=args.grouped)
        return

    if args.test_message:
        if send_test_message(config):
            print("Test message sent successfully!")
        else:
            print("Failed to send test message. Check logs for details.", file=sys.stderr)
            sys.exit(1)
        return

    if args.collect:
        run_collector(config)
        return

    serve(config)


if __name__ == "__main__":
    main()
