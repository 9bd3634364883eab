"""Telegram message templates for job notifications.

Every renderer is a pure function returning HTML-parse-mode text. Batches
are split so that no payload ever exceeds the character budget. Shortening
is done on the raw field values before they are escaped and wrapped in
tags, so every payload stays well-formed markup.
"""

from enum import Enum

from job_relay.jobs.models import JobRecord
from job_relay.notifications.telegram import TELEGRAM_MAX_LENGTH
from job_relay.utils.text_processing import (
    clean_text,
    escape_attr,
    escape_html,
    fit_escaped,
    strip_tags,
    truncate,
)

DEFAULT_BUDGET = 4000  # headroom under Telegram's hard limit
MIN_BUDGET = 500  # room for the fixed card layout and any page header

DESCRIPTION_LIMIT = 1500
FIELD_LIMIT = 200
LINK_LIMIT = 600
SUMMARY_TITLE_LIMIT = 200
LINE_SEPARATOR = "\n\n"
DOT = " · "


class FormatMode(str, Enum):
    SINGLE_DETAILED = "single-detailed"
    GROUPED_SUMMARY = "grouped-summary"
    INDIVIDUAL = "individual"


def check_budget(budget: int) -> int:
    """Cap the budget at Telegram's limit; reject one too small for a message."""
    budget = min(budget, TELEGRAM_MAX_LENGTH)
    if budget < MIN_BUDGET:
        raise ValueError(f"character budget {budget} is below the minimum of {MIN_BUDGET}")
    return budget


def format_jobs(jobs: list[JobRecord], mode: FormatMode, budget: int = DEFAULT_BUDGET) -> list[str]:
    """Render jobs into one or more payloads, each at most `budget` characters."""
    mode = FormatMode(mode)
    budget = check_budget(budget)

    if mode is FormatMode.SINGLE_DETAILED:
        if len(jobs) != 1:
            raise ValueError(f"single-detailed mode takes exactly one job, got {len(jobs)}")
        return [render_job_detailed(jobs[0], budget)]

    if mode is FormatMode.INDIVIDUAL:
        return [render_job_detailed(job, budget) for job in jobs]

    return render_grouped(jobs, budget)


def render_job_detailed(job: JobRecord, budget: int = DEFAULT_BUDGET) -> str:
    """Render a full job card within the budget.

    The description gives way first, then skills from the end of the list,
    then every remaining field is cut to a shrinking length.
    """
    budget = check_budget(budget)
    description = clean_text(job.job_description_text)
    skills = list(job.attributes_items)
    room = DESCRIPTION_LIMIT
    limit = FIELD_LIMIT

    def render():
        return _detailed(job, truncate(description, room), skills, limit)

    text = render()
    while len(text) > budget and room > 0:
        room = max(0, room - (len(text) - budget))
        text = render()

    while len(text) > budget and skills:
        skills.pop()
        text = render()

    while len(text) > budget and limit > 0:
        limit //= 2
        text = render()

    if len(text) > budget:
        # Only the fixed layout is left; fall back to plain text
        text = fit_escaped(strip_tags(text), budget)
    return text


def _detailed(job: JobRecord, description: str, skills: list[str], limit: int) -> str:
    def field(value) -> str:
        return escape_html(truncate(clean_text(value), limit))

    title = escape_html(truncate(clean_text(job.job_title) or "Untitled", min(limit, SUMMARY_TITLE_LIMIT)))
    skill_line = DOT.join(field(s) for s in skills)

    # A cut URL is useless, so the link is dropped once fields get short
    link = ""
    if job.link and len(job.link) <= LINK_LIMIT * limit // FIELD_LIMIT:
        link = f'🔗 <a href="{escape_attr(job.link)}">View job</a>'

    return f"""\
🔹 <b>{title}</b>

📝 {field(job.job_type)}{DOT}<b>{field(job.budget)}</b>{DOT}{field(job.contractor_tier)}{DOT}{field(job.duration)}

🗃 <b>Skills</b>
{skill_line}

🤵 <b>About Client</b>
⭐ {field(job.client_feedback)}{DOT}{field(job.client_payment_status)}{DOT}{field(job.client_spend)}
🌎 {field(job.client_country)} 🚀 {field(job.proposals)}

<b>Description</b>
<blockquote>{escape_html(description)}</blockquote>

⏳ {field(job.posted_on)}

{link}""".strip()


def render_job_summary(job: JobRecord, number: int, title_limit: int = SUMMARY_TITLE_LIMIT) -> str:
    """Render the compact numbered line used in grouped messages."""
    title = escape_html(truncate(clean_text(job.job_title) or "Untitled", title_limit))
    lines = [
        f"{number}. <b>{title}</b>",
        f"   🆔 <code>{escape_html(job.job_id)}</code>",
    ]
    if job.link:
        lines.append(f'   🔗 <a href="{escape_attr(job.link)}">View</a>')
    return "\n".join(lines)


def _fit_summary(job: JobRecord, number: int, room: int) -> str:
    limit = SUMMARY_TITLE_LIMIT
    while limit > 0:
        limit //= 2
        line = render_job_summary(job, number, limit)
        if len(line) <= room:
            return line
    # Oversized id or link: keep the text, lose the markup
    return fit_escaped(strip_tags(render_job_summary(job, number)), room)


def grouped_header(count: int) -> str:
    return f"📋 <b>New jobs available ({count})</b>"


def paginated_header() -> str:
    return "📋 <b>New jobs available</b>"


def continuation_header() -> str:
    return "📋 <b>New jobs (continued)</b>"


def render_grouped(jobs: list[JobRecord], budget: int = DEFAULT_BUDGET) -> list[str]:
    """One summary message for all jobs, or several pages when it would not fit.

    Lines are numbered by each job's position on the source page, so the
    numbering carries across pages.
    """
    return [text for text, _ in render_grouped_pages(jobs, budget)]


def render_grouped_pages(jobs: list[JobRecord], budget: int = DEFAULT_BUDGET) -> list[tuple[str, int]]:
    """Like render_grouped, but pairs each page with the number of jobs on it."""
    budget = check_budget(budget)
    if not jobs:
        return []

    numbered = [(job, job.index + 1) for job in jobs]
    lines = [render_job_summary(job, number) for job, number in numbered]

    def shrink(i: int, room: int) -> str:
        return _fit_summary(*numbered[i], room)

    pages = _paginate(lines, grouped_header(len(jobs)), budget, shrink)
    if len(pages) > 1:
        pages = _paginate(lines, paginated_header(), budget, shrink)
    return pages


def paginate(lines: list[str], header: str, budget: int = DEFAULT_BUDGET) -> list[str]:
    """Accumulate lines under a header, sealing a page before it would exceed `budget`.

    Later pages start with the continuation header. A line too long even for
    an empty page is reduced to its plain text and cut to fit.
    """
    return [text for text, _ in _paginate(lines, header, budget)]


def _paginate(lines, header, budget, shrink=None) -> list[tuple[str, int]]:
    smallest = max(len(header), len(continuation_header())) + len(LINE_SEPARATOR) + 1
    if budget < smallest:
        raise ValueError(f"budget {budget} cannot hold a page header and a line (need {smallest})")
    if shrink is None:
        def shrink(i, room):
            return fit_escaped(strip_tags(lines[i]), room)

    pages = []
    current = header
    count = 0

    for i, line in enumerate(lines):
        candidate = current + LINE_SEPARATOR + line
        if len(candidate) <= budget:
            current = candidate
            count += 1
            continue

        if count:
            pages.append((current, count))
            current = continuation_header()
            count = 0
            candidate = current + LINE_SEPARATOR + line

        if len(candidate) > budget:
            room = budget - len(current) - len(LINE_SEPARATOR)
            candidate = current + LINE_SEPARATOR + shrink(i, room)
        current = candidate
        count += 1

    if count:
        pages.append((current, count))
    return pages
