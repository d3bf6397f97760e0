"""Lead entity schemas: a company plus its contacts."""

from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from .base import BaseSchema, EmailAddress, HttpUrl, blank_to_none


class Contact(BaseSchema):
    """One person at a company."""

    name: str = Field(..., min_length=1, description="Contact name")
    title: str | None = Field(None, description="Job title/position")
    email: EmailAddress | None = Field(None, description="Email address")
    phone: str | None = Field(None, description="Phone number (free text)")
    linkedin: HttpUrl | None = Field(None, description="LinkedIn profile URL")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_missing(cls, v: Any) -> Any:
        return blank_to_none(v)


class Company(BaseSchema):
    """One organization."""

    name: str = Field(..., min_length=1, description="Company name")
    industry: str | None = Field(None, description="Industry/sector")
    size: str | None = Field(None, description="Company size (free text)")
    website: HttpUrl | None = Field(None, description="Company website URL")
    location: str | None = Field(None, description="City, state, country")
    description: str | None = Field(None, description="Brief description")

    @field_validator("*", mode="before")
    @classmethod
    def _blank_is_missing(cls, v: Any) -> Any:
        return blank_to_none(v)


class LeadMetadata(BaseSchema):
    """Optional provenance details for a lead."""

    document_type: str | None = None
    document_url: str | None = None
    keywords: list[str] | None = None


class Lead(BaseSchema):
    """A validated (company, contacts) record with provenance and confidence."""

    company: Company
    contacts: list[Contact] = Field(..., min_length=1)
    source: str = Field(..., min_length=1, description="Source document name")
    confidence: float = Field(..., ge=0, le=1, description="Extraction confidence")
    extracted_at: datetime | None = Field(None, description="Set at parse time")
    metadata: LeadMetadata | None = None
    notes: str | None = Field(None, description="Caveats about how the lead was produced")
