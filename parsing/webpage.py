"""Reduce fetched web pages to the visible text an LLM can read."""

from __future__ import annotations

import re

from bs4 import BeautifulSoup

# Never rendered as page text. Headers and footers stay: they carry contact details.
_STRIP_TAGS = ["script", "style", "noscript", "svg", "iframe", "template"]

_CONTACT_SCHEMES = ("mailto:", "tel:")


def collapse_whitespace(text: str) -> str:
    text = text.replace("\x00", "")
    return re.sub(r"\s+", " ", text).strip()


def _contact_links(soup: BeautifulSoup) -> list[str]:
    """Addresses behind mailto:/tel: links, which often have no visible text."""
    found: list[str] = []
    for anchor in soup.find_all("a", href=True):
        href = str(anchor["href"]).strip()
        for scheme in _CONTACT_SCHEMES:
            if href.lower().startswith(scheme):
                value = href[len(scheme):].split("?", 1)[0].strip()
                if value and value not in found:
                    found.append(value)
    return found


def page_text(html: bytes | str, max_chars: int = 30_000) -> str:
    """Visible text of an HTML page, whitespace-collapsed and cut to ``max_chars``."""
    soup = BeautifulSoup(html, "lxml")
    for tag in soup.find_all(_STRIP_TAGS):
        tag.decompose()

    text = collapse_whitespace(soup.get_text(separator=" "))
    missing = [link for link in _contact_links(soup) if link not in text]
    if missing:
        text = f"{text} Contact links: {', '.join(missing)}"
    return text[:max_chars]
