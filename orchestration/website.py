"""Lead and outreach analysis of a single web page."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from pydantic import Field

from core.config import Settings
from engine.base import ExtractionEngine, GenerationOptions, InlineText
from parsing.parser import ResultParser, decode_json
from parsing.prompts import LEAD_EXTRACTION_SYSTEM_INSTRUCTION, website_prompt
from parsing.webpage import page_text
from schemas.base import BaseSchema
from schemas.lead import Lead

logger = structlog.get_logger(__name__)

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


class WebsiteFetchError(Exception):
    """The page could not be fetched."""

    def __init__(self, url: str, details: str) -> None:
        self.url = url
        self.details = details
        super().__init__(f"Failed to fetch {url}: {details}")


class WebsiteAnalysis(BaseSchema):
    leads: list[Lead] = Field(default_factory=list)
    outreach_suggestions: list[str] = Field(default_factory=list)
    raw_text: str = ""


def outreach_suggestions(raw: str) -> list[str]:
    """Talking points from the completion's ``outreachSuggestions`` list, if any."""
    parsed: Any = decode_json(raw)
    if not isinstance(parsed, dict):
        return []
    items = parsed.get("outreachSuggestions")
    if not isinstance(items, list):
        return []
    return [str(item).strip() for item in items if isinstance(item, str) and item.strip()]


def website_client(timeout: float = 10.0) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers={"User-Agent": USER_AGENT},
        follow_redirects=True,
    )


class WebsiteAnalyzer:
    """Fetches a page, reduces it to text and asks the engine for leads."""

    def __init__(
        self,
        engine: ExtractionEngine,
        client: httpx.AsyncClient,
        parser: ResultParser | None = None,
        *,
        max_chars: int = 30_000,
        temperature: float = 0.3,
        max_output_tokens: int = 8192,
    ) -> None:
        self.engine = engine
        self.client = client
        self.parser = parser or ResultParser()
        self.max_chars = max_chars
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens

    @classmethod
    def from_settings(
        cls, settings: Settings, engine: ExtractionEngine, client: httpx.AsyncClient
    ) -> WebsiteAnalyzer:
        return cls(
            engine,
            client,
            max_chars=settings.website_max_chars,
            temperature=settings.website_temperature,
            max_output_tokens=settings.max_output_tokens,
        )

    async def fetch_text(self, url: str) -> str:
        """Visible text of the page at ``url``.

        Raises:
            WebsiteFetchError: Network failure or a non-2xx response
        """
        try:
            response = await self.client.get(url)
        except httpx.HTTPError as e:
            raise WebsiteFetchError(url, str(e) or type(e).__name__) from e

        if not response.is_success:
            raise WebsiteFetchError(url, f"Failed to fetch website: {response.status_code}")
        return page_text(response.content, self.max_chars)

    async def analyze(self, url: str) -> WebsiteAnalysis:
        """Extract leads and outreach suggestions from one page.

        Raises:
            WebsiteFetchError: The page could not be fetched
            ExtractionEngineError: The engine call failed
        """
        text = await self.fetch_text(url)
        logger.info("Fetched website", url=url, chars=len(text))

        result = await self.engine.generate(
            website_prompt(url),
            InlineText(text=text, source_name=url),
            GenerationOptions(
                temperature=self.temperature,
                max_output_tokens=self.max_output_tokens,
                system_instruction=LEAD_EXTRACTION_SYSTEM_INSTRUCTION,
                json_output=True,
            ),
        )

        leads = self.parser.parse(result.text)
        suggestions = outreach_suggestions(result.text)
        logger.info("Analyzed website", url=url, leads=len(leads), suggestions=len(suggestions))
        return WebsiteAnalysis(
            leads=leads, outreach_suggestions=suggestions, raw_text=result.text
        )
