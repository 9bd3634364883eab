"""Upwork "most recent" feed parsing: listing sections to JobRecords."""

import logging
from urllib.parse import urljoin

from bs4 import BeautifulSoup
from bs4.element import Tag

from job_relay.jobs.models import JobRecord

logger = logging.getLogger("job_relay.jobs.parser")

UPWORK_BASE = "https://www.upwork.com"

LISTING_TAG = "section"
UID_ATTRIBUTE = "data-ev-opening_uid"
TITLE_SELECTOR = "h3, h2, h1"
SKILL_SELECTOR = '[data-test="attr-item"]'
FREELANCERS_TO_HIRE_DEFAULT = 1

# Single-valued text fields: record attribute -> selector scoped to the fragment
FIELD_SELECTORS = {
    "posted_on": '[data-test="posted-on"]',
    "job_type": '[data-test="job-type"]',
    "contractor_tier": '[data-test="contractor-tier"]',
    "budget": '[data-test="budget"]',
    "duration": '[data-test="duration"]',
    "job_description_text": '[data-test="job-description-text"]',
    "client_payment_status": '[data-test="payment-verification-status"]',
    "client_spend": '[data-test="formatted-amount"]',
    "client_feedback": '[data-ev-sublocation="!rating"]',
    "client_country": '[data-test="client-country"]',
    "proposals": '[data-test="proposals"]',
}


class DocumentParseError(ValueError):
    """Raised when the submitted input is not a document at all."""


def parse_listings(html, base_url: str = UPWORK_BASE) -> list[JobRecord]:
    """Parse a listing page into JobRecords, in document order.

    A page without listing sections yields an empty list. A section whose
    extraction fails is kept as a bare record (uid, index, classes only) so
    one bad fragment never drops its siblings.
    """
    if not isinstance(html, (str, bytes)):
        raise DocumentParseError(f"Expected an HTML document, got {type(html).__name__}")

    soup = BeautifulSoup(html, "lxml")
    sections = soup.find_all(LISTING_TAG)

    jobs = []
    for index, section in enumerate(sections):
        try:
            jobs.append(extract_job(section, index, base_url=base_url))
        except Exception as e:
            logger.warning("Listing #%d could not be extracted: %s", index, e)
            jobs.append(_bare_record(section, index))

    logger.debug("Parsed %d listings", len(jobs))
    return jobs


def extract_job(fragment: Tag, index: int, base_url: str = UPWORK_BASE) -> JobRecord:
    """Map a single listing section onto a JobRecord.

    Every lookup is independent: a missing sub-element only leaves its own
    field as None (or 1 for freelancers_to_hire).
    """
    job = _bare_record(fragment, index)

    for attr, selector in FIELD_SELECTORS.items():
        setattr(job, attr, _select_text(fragment, selector))

    title_elem = fragment.select_one(TITLE_SELECTOR)
    if title_elem is not None:
        job.job_title = title_elem.get_text().strip()
        job.link = _title_link(title_elem, base_url)

    job.attributes_items = [el.get_text().strip() for el in fragment.select(SKILL_SELECTOR)]

    hire_no = _select_text(fragment, '[data-test="freelancers-to-hire"]')
    job.freelancers_to_hire = hire_no if hire_no is not None else FREELANCERS_TO_HIRE_DEFAULT

    return job


def _bare_record(fragment: Tag, index: int) -> JobRecord:
    classes = fragment.get("class")
    if isinstance(classes, list):
        classes = " ".join(classes)
    return JobRecord(
        index=index,
        uid=fragment.get(UID_ATTRIBUTE),
        classes=classes or None,
    )


def _select_text(fragment: Tag, selector: str) -> str | None:
    elem = fragment.select_one(selector)
    return elem.get_text().strip() if elem is not None else None


def _title_link(title_elem: Tag, base_url: str) -> str | None:
    anchor = title_elem.find("a", href=True)
    if anchor is None:
        return None
    return urljoin(base_url, anchor["href"])
