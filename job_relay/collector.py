"""Page collector: fetch the feed, cut out the listing container, forward it."""

import logging
from datetime import datetime, timezone
from typing import Optional

import requests
from bs4 import BeautifulSoup

from job_relay.utils.change_detector import ChangeDetector
from job_relay.utils.http_client import DEFAULT_TIMEOUT, create_session, safe_get, safe_post_json

logger = logging.getLogger("job_relay.collector")

DEFAULT_CONTENT_SELECTOR = '[data-test="job-tile-list"]'


class PageCollector:
    """Polls one page and posts its listing container to the relay API when it changes."""

    def __init__(
        self,
        page_url: str,
        api_url: str,
        content_selector: str = DEFAULT_CONTENT_SELECTOR,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_TIMEOUT,
        detector: Optional[ChangeDetector] = None,
    ):
        self.page_url = page_url
        self.api_url = api_url
        self.content_selector = content_selector
        self.session = session or create_session(browser=True)
        self.timeout = timeout
        self.detector = detector or ChangeDetector()

    def extract_content(self, html: str) -> Optional[dict]:
        """Build the submission payload, or None when the selector matches nothing."""
        soup = BeautifulSoup(html, "lxml")
        elements = soup.select(self.content_selector)
        if not elements:
            logger.warning("No elements matched selector %s", self.content_selector)
            return None

        return {
            "url": self.page_url,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "text": "\n\n".join(el.get_text().strip() for el in elements),
            "html": "\n".join(el.decode_contents() for el in elements),
            "pageTitle": soup.title.get_text().strip() if soup.title else "",
        }

    def run_once(self) -> bool:
        """Fetch, compare and forward. Returns True when a payload was delivered."""
        response = safe_get(self.page_url, session=self.session, timeout=self.timeout)
        if response is None:
            return False

        content = self.extract_content(response.text)
        if content is None:
            return False

        # The timestamp changes every poll; leave it out of the comparison
        comparable = {k: v for k, v in content.items() if k != "timestamp"}
        if not self.detector.has_changed(comparable):
            logger.info("Content unchanged, skipping submission")
            return False

        logger.info("New content detected, submitting to %s", self.api_url)
        delivered = safe_post_json(self.api_url, content, session=self.session, timeout=self.timeout)
        if delivered is None:
            # Forget it so the next poll retries the same content
            self.detector.reset()
            return False
        return True
