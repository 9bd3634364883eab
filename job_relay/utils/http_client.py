"""Shared requests sessions and non-raising GET/POST helpers."""

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

logger = logging.getLogger("job_relay.http")

DEFAULT_TIMEOUT = 10
RETRY_STATUSES = (429, 500, 502, 503, 504)

BROWSER_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


def create_session(
    max_retries: int = 3,
    backoff_factor: float = 1.0,
    browser: bool = False,
) -> requests.Session:
    """Session whose adapter retries GETs on connection errors and 429/5xx.

    POSTs go out once; a retried sendMessage could post the same job twice.
    Pass `browser=True` for page fetches that should look like a desktop browser.
    """
    session = requests.Session()

    adapter = HTTPAdapter(max_retries=Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
    ))
    session.mount("http://", adapter)
    session.mount("https://", adapter)

    if browser:
        session.headers.update(BROWSER_HEADERS)
    return session


def safe_get(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs,
) -> Optional[requests.Response]:
    """GET a page; None on network error, timeout or non-2xx."""
    return _send("GET", url, session, timeout=timeout, **kwargs)


def safe_post_json(
    url: str,
    payload: Any,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
    **kwargs,
) -> Optional[requests.Response]:
    """POST a JSON body; None on network error, timeout or non-2xx."""
    return _send("POST", url, session, json=payload, timeout=timeout, **kwargs)


def _send(method: str, url: str, session: Optional[requests.Session], **kwargs) -> Optional[requests.Response]:
    session = session or create_session()
    try:
        response = session.request(method, url, **kwargs)
        response.raise_for_status()
    except requests.RequestException as e:
        logger.warning("HTTP %s failed for %s: %s", method, url, e)
        return None
    return response
