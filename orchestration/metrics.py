"""Quality estimates for a batch of extracted leads."""

from __future__ import annotations

from schemas.base import BaseSchema
from schemas.lead import Lead

LOW_CONFIDENCE_THRESHOLD = 0.6

CONFIDENCE_WEIGHT = 0.7
COMPLETENESS_WEIGHT = 0.3

# Field presence weights, summing to 1.0
_COMPLETENESS_WEIGHTS = {
    "email": 0.3,
    "phone": 0.2,
    "website": 0.2,
    "industry": 0.15,
    "location": 0.15,
}


class AccuracyMetrics(BaseSchema):
    estimated_accuracy: float = 0.0
    low_confidence_count: int = 0
    average_confidence: float = 0.0


def completeness(lead: Lead) -> float:
    """Weighted share of the key contact and company fields that are present."""
    present = {
        "email": any(c.email for c in lead.contacts),
        "phone": any(c.phone for c in lead.contacts),
        "website": bool(lead.company.website),
        "industry": bool(lead.company.industry),
        "location": bool(lead.company.location),
    }
    return sum(w for key, w in _COMPLETENESS_WEIGHTS.items() if present[key])


def average_confidence(leads: list[Lead]) -> float:
    if not leads:
        return 0.0
    return sum(lead.confidence for lead in leads) / len(leads)


def calculate_accuracy_metrics(leads: list[Lead]) -> AccuracyMetrics:
    """Blend self-reported confidence with field completeness."""
    if not leads:
        return AccuracyMetrics()

    avg_confidence = average_confidence(leads)
    avg_completeness = sum(completeness(lead) for lead in leads) / len(leads)

    return AccuracyMetrics(
        estimated_accuracy=avg_confidence * CONFIDENCE_WEIGHT
        + avg_completeness * COMPLETENESS_WEIGHT,
        low_confidence_count=sum(
            1 for lead in leads if lead.confidence < LOW_CONFIDENCE_THRESHOLD
        ),
        average_confidence=avg_confidence,
    )
