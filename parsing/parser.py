"""Turn an LLM completion into validated Lead records."""

from __future__ import annotations

import json
import math
import re
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from parsing.fallback import extract_fallback_leads
from schemas.lead import Company, Contact, Lead, LeadMetadata

logger = structlog.get_logger(__name__)

DEFAULT_CONFIDENCE = 0.5
UNKNOWN_SOURCE = "unknown"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```", re.IGNORECASE)
_LEADS_OBJECT = re.compile(r"\{[\s\S]*\"leads\"[\s\S]*\}")

# Keys the model may echo back that are always assigned here instead
_PARSER_OWNED_KEYS = ("extractedAt", "extracted_at")


def decode_json(raw: str) -> Any:
    """Best-effort JSON decode: whole text, then a fenced block, then a leads object."""
    text = raw.strip()
    if not text:
        return None

    try:
        return json.loads(text)
    except json.JSONDecodeError:
        pass

    candidates = []
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        candidates.append(fenced.group(1))
    embedded = _LEADS_OBJECT.search(text)
    if embedded:
        candidates.append(embedded.group(0))

    for candidate in candidates:
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            continue
    return None


def _lead_items(parsed: Any) -> list[Any]:
    if isinstance(parsed, dict) and isinstance(parsed.get("leads"), list):
        return parsed["leads"]
    if isinstance(parsed, list):
        return parsed
    return []


def _validate_stripping(
    model: type[BaseModel], data: dict[str, Any], required: set[str]
) -> Any:
    """Validate ``data``, dropping invalid optional fields until it passes.

    Returns None if a required field is invalid.
    """
    data = dict(data)
    while True:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            bad = {err["loc"][0] for err in e.errors() if err["loc"]}
            droppable = {key for key in bad if key in data and key not in required}
            if not droppable or bad & required:
                return None
            for key in droppable:
                data.pop(key)


def _coerce_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return DEFAULT_CONFIDENCE
    if math.isnan(value):
        return DEFAULT_CONFIDENCE
    return min(max(float(value), 0.0), 1.0)


class ResultParser:
    """Parses extraction completions into Leads. ``parse`` never raises."""

    def parse(self, raw: str | None, now: datetime | None = None) -> list[Lead]:
        extracted_at = now or datetime.now(timezone.utc)
        text = raw or ""

        try:
            leads = self._parse_structured(text, extracted_at)
            if leads:
                return leads
            if text.strip():
                logger.warning(
                    "No structured leads in completion, using fallback extraction",
                    preview=text[:200],
                )
            return extract_fallback_leads(text, now=extracted_at)
        except Exception:
            logger.exception("Lead parsing failed", preview=text[:200])
            return []

    def _parse_structured(self, text: str, extracted_at: datetime) -> list[Lead]:
        leads = []
        for item in _lead_items(decode_json(text)):
            if not isinstance(item, dict):
                continue

            data = {k: v for k, v in item.items() if k not in _PARSER_OWNED_KEYS}
            try:
                leads.append(Lead.model_validate({**data, "extracted_at": extracted_at}))
                continue
            except ValidationError as e:
                logger.warning("Invalid lead data, attempting salvage", errors=e.error_count())

            lead = self.salvage(data, extracted_at)
            if lead is not None:
                leads.append(lead)
            else:
                logger.warning("Discarded unsalvageable lead")
        return leads

    @staticmethod
    def salvage(data: dict[str, Any], extracted_at: datetime) -> Lead | None:
        """Recover a lead from schema-failing data.

        Keeps the record when it has a company name and at least one named
        contact; invalid optional fields are dropped.
        """
        company_data = data.get("company")
        if not isinstance(company_data, dict):
            return None
        company = _validate_stripping(Company, company_data, required={"name"})
        if company is None:
            return None

        contacts = []
        raw_contacts = data.get("contacts")
        for contact_data in raw_contacts if isinstance(raw_contacts, list) else []:
            if not isinstance(contact_data, dict):
                continue
            contact = _validate_stripping(Contact, contact_data, required={"name"})
            if contact is not None:
                contacts.append(contact)
        if not contacts:
            return None

        source = data.get("source")
        if not isinstance(source, str) or not source.strip():
            source = UNKNOWN_SOURCE

        metadata = None
        if isinstance(data.get("metadata"), dict):
            try:
                metadata = LeadMetadata.model_validate(data["metadata"])
            except ValidationError:
                metadata = None

        notes = data.get("notes")
        return Lead(
            company=company,
            contacts=contacts,
            source=source,
            confidence=_coerce_confidence(data.get("confidence")),
            extracted_at=extracted_at,
            metadata=metadata,
            notes=notes if isinstance(notes, str) else None,
        )
