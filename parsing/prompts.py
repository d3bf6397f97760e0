"""Prompts for lead extraction."""

from __future__ import annotations

LEAD_EXTRACTION_SYSTEM_INSTRUCTION = """\
You are an expert lead extraction AI assistant. Your task is to analyze documents \
and extract structured information about companies and their contacts.

Important guidelines:
1. Only extract information that is explicitly stated in the documents
2. Do not make assumptions or infer information that isn't clearly present
3. For each lead, provide a confidence score (0.0 to 1.0) based on:
   - Completeness of information (higher score for more complete data)
   - Clarity of the source material (higher score for explicit mentions)
   - Consistency across the document (higher score for consistent information)
4. Extract multiple contacts per company if available
5. Validate email addresses and phone numbers format
6. Look for contact information in signatures, letterheads, business cards, \
proposals, invoices, contracts, and correspondence
7. Always return valid JSON in the specified format
"""

LEAD_EXTRACTION_PROMPT = """\
Analyze the provided documents and extract structured information about companies \
and their contacts.

Extract the following information for each lead:

Company information:
- Company name (required)
- Industry/sector
- Company size (e.g., "1-10 employees", "50-200 employees", "1000+ employees")
- Website URL
- Location (city, state, country)
- Brief description

Contact information:
- Contact name (required)
- Job title/position
- Email address
- Phone number
- LinkedIn profile URL

Return results as a JSON object with this structure:
{
  "leads": [
    {
      "company": {
        "name": "Acme Corporation",
        "industry": "Technology",
        "size": "50-200 employees",
        "website": "https://www.acme.com",
        "location": "San Francisco, CA, USA",
        "description": "Software development company"
      },
      "contacts": [
        {
          "name": "John Doe",
          "title": "CEO",
          "email": "john.doe@acme.com",
          "phone": "+1-555-0123",
          "linkedin": "https://linkedin.com/in/johndoe"
        }
      ],
      "source": "document_name",
      "confidence": 0.95
    }
  ]
}"""

_TARGETED_SUFFIX = """

Specific query: {query}

Focus on extracting leads that match or relate to this query. Prioritize results \
that are most relevant to the search criteria."""


def targeted_prompt(query: str) -> str:
    """Extraction prompt narrowed to leads matching ``query``."""
    return LEAD_EXTRACTION_PROMPT + _TARGETED_SUFFIX.format(query=query.strip())


def build_prompt(query: str | None = None) -> str:
    """Generic extraction prompt, or the targeted variant when a query is given."""
    if query and query.strip():
        return targeted_prompt(query)
    return LEAD_EXTRACTION_PROMPT


WEBSITE_ANALYSIS_PROMPT = """\
You are an expert lead generation AI assistant. Analyze the website content below \
and extract the company information and contact details useful for B2B sales and \
lead generation.

Website URL: {url}

Provide:
1. Company information: name, industry, description, products or services, size \
and location when available
2. Contact information: contact names, email addresses, phone numbers and LinkedIn \
profiles
3. A confidence score (0.0 to 1.0) reflecting the quality and completeness of the \
information
4. Suggested talking points for a first outreach, based on the value propositions \
visible on the site

Return results as a JSON object with this structure:
{{
  "leads": [
    {{
      "company": {{
        "name": "Company Name",
        "industry": "Industry",
        "website": "{url}",
        "location": "City, Country",
        "description": "Brief description",
        "size": "Company size if available"
      }},
      "contacts": [
        {{
          "name": "Contact Name",
          "title": "Job Title",
          "email": "email@example.com",
          "phone": "+1-555-0123",
          "linkedin": "https://linkedin.com/in/contact"
        }}
      ],
      "source": "{url}",
      "confidence": 0.85
    }}
  ],
  "outreachSuggestions": [
    "Talking point 1",
    "Talking point 2"
  ]
}}

Only include information explicitly available on the website and omit fields \
that are not."""


def website_prompt(url: str) -> str:
    """Lead and outreach analysis prompt for one web page."""
    return WEBSITE_ANALYSIS_PROMPT.format(url=url)
