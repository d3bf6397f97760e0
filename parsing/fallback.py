"""Pattern-matching lead extraction for completions that are not JSON."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import structlog

from schemas.lead import Company, Contact, Lead

logger = structlog.get_logger(__name__)

FALLBACK_SOURCE = "fallback-extraction"
FALLBACK_CONFIDENCE = 0.3
FALLBACK_NOTE = (
    "This lead was extracted using fallback pattern matching and may be "
    "incomplete or inaccurate."
)

# Labeled company cues only, e.g. "Company: Acme", "회사명: 에이스"
_COMPANY_PATTERN = re.compile(
    r"(?:Company(?:\s+name)?|회사명?|기업명?|업체명?)\s*[:：]\s*([^\n,]+)",
    re.IGNORECASE,
)
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PHONE_PATTERNS = (
    re.compile(r"(?:Phone|Tel|전화)[:\s]*([\d\-+() ]+)", re.IGNORECASE),
    re.compile(r"(\+?\d{1,3}[-.\s]?\(?\d{1,4}\)?[-.\s]?\d{1,4}[-.\s]?\d{1,9})"),
)

_MIN_COMPANY_CHARS = 3
_MIN_PHONE_CHARS = 8


def _unique(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


def find_company_names(text: str) -> list[str]:
    names = []
    for match in _COMPANY_PATTERN.finditer(text):
        name = match.group(1).strip().strip("*_\"' ")
        if len(name) >= _MIN_COMPANY_CHARS:
            names.append(name)
    return _unique(names)


def find_emails(text: str) -> list[str]:
    return _unique(_EMAIL_PATTERN.findall(text))


def find_phones(text: str) -> list[str]:
    phones = []
    for pattern in _PHONE_PATTERNS:
        for match in pattern.finditer(text):
            phone = match.group(1).strip()
            if len(phone) >= _MIN_PHONE_CHARS:
                phones.append(phone)
    return _unique(phones)


def extract_fallback_leads(text: str, now: datetime | None = None) -> list[Lead]:
    """Build low-confidence leads from labeled company names in free text.

    Each company is paired with the next unclaimed email and phone, in
    order of appearance, under a single placeholder contact.
    """
    companies = find_company_names(text)
    if not companies:
        logger.warning("Fallback extraction found no company names")
        return []

    emails = find_emails(text)
    phones = find_phones(text)
    extracted_at = now or datetime.now(timezone.utc)

    leads = []
    for i, company in enumerate(companies):
        contact = Contact(
            name="Contact",
            email=emails[i] if i < len(emails) else None,
            phone=phones[i] if i < len(phones) else None,
        )
        leads.append(
            Lead(
                company=Company(name=company),
                contacts=[contact],
                source=FALLBACK_SOURCE,
                confidence=FALLBACK_CONFIDENCE,
                extracted_at=extracted_at,
                notes=FALLBACK_NOTE,
            )
        )

    logger.info("Fallback extraction found leads", count=len(leads))
    return leads
