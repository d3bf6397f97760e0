"""CSV and JSON export of leads."""

from __future__ import annotations

import csv
import io
import json
from datetime import datetime, timezone

from schemas.lead import Lead

CSV_COLUMNS = [
    "company_name",
    "company_industry",
    "company_size",
    "company_website",
    "company_location",
    "company_description",
    "contact_name",
    "contact_title",
    "contact_email",
    "contact_phone",
    "contact_linkedin",
    "source_document",
    "confidence_score",
    "extracted_at",
]


def _rows(lead: Lead) -> list[dict[str, str]]:
    """One row per contact, company columns repeated."""
    company = lead.company
    base = {
        "company_name": company.name,
        "company_industry": company.industry or "",
        "company_size": company.size or "",
        "company_website": company.website or "",
        "company_location": company.location or "",
        "company_description": company.description or "",
        "source_document": lead.source,
        "confidence_score": f"{lead.confidence:.2f}",
        "extracted_at": lead.extracted_at.isoformat() if lead.extracted_at else "",
    }
    return [
        {
            **base,
            "contact_name": contact.name,
            "contact_title": contact.title or "",
            "contact_email": contact.email or "",
            "contact_phone": contact.phone or "",
            "contact_linkedin": contact.linkedin or "",
        }
        for contact in lead.contacts
    ]


def leads_to_csv(leads: list[Lead]) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_COLUMNS, lineterminator="\n")
    writer.writeheader()
    for lead in leads:
        writer.writerows(_rows(lead))
    return buffer.getvalue()


def leads_to_json(leads: list[Lead]) -> str:
    return json.dumps([lead.to_wire() for lead in leads], indent=2, ensure_ascii=False)


def export_filename(extension: str, now: datetime | None = None) -> str:
    moment = now or datetime.now(timezone.utc)
    return f"leads_export_{int(moment.timestamp() * 1000)}.{extension}"
