"""Job record data model."""

import hashlib
from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass
class JobRecord:
    """Represents one job posting scraped from a listing page."""

    index: int
    uid: Optional[str] = None
    classes: Optional[str] = None
    posted_on: Optional[str] = None
    job_title: Optional[str] = None
    job_type: Optional[str] = None
    contractor_tier: Optional[str] = None
    budget: Optional[str] = None
    duration: Optional[str] = None
    job_description_text: Optional[str] = None
    attributes_items: list[str] = field(default_factory=list)
    client_payment_status: Optional[str] = None
    client_spend: Optional[str] = None
    client_feedback: Optional[str] = None
    client_country: Optional[str] = None
    proposals: Optional[str] = None
    freelancers_to_hire: Union[str, int] = 1
    link: Optional[str] = None

    @property
    def job_id(self) -> str:
        """The opening uid, or a SHA-256 of every extracted field when the page omits it.

        The position on the page is left out, so the same job keeps its id
        when newer postings push it down the list.
        """
        if self.uid:
            return self.uid
        parts = []
        for key, value in sorted(self.to_dict().items()):
            if key == "id":
                continue
            if isinstance(value, list):
                value = ",".join(value)
            parts.append(f"{key}={'' if value is None else str(value).strip().lower()}")
        return hashlib.sha256("|".join(parts).encode()).hexdigest()

    def to_dict(self) -> dict:
        """Convert to the camelCase wire form used by the collector API."""
        return {
            "uid": self.uid,
            "id": self.index,
            "classes": self.classes,
            "postedOn": self.posted_on,
            "jobTitle": self.job_title,
            "jobType": self.job_type,
            "contractorTier": self.contractor_tier,
            "budget": self.budget,
            "duration": self.duration,
            "jobDescriptionText": self.job_description_text,
            "attributesItems": list(self.attributes_items),
            "clientPaymentStatus": self.client_payment_status,
            "clientSpend": self.client_spend,
            "clientFeedback": self.client_feedback,
            "clientCountry": self.client_country,
            "proposals": self.proposals,
            "freelancersToHire": self.freelancers_to_hire,
            "link": self.link,
        }
