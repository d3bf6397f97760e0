"""Detect chat messages that ask for lead extraction."""

from __future__ import annotations

import re

LEAD_KEYWORDS = (
    # English
    "lead", "contact", "company", "companies", "extract", "find", "search",
    "email", "phone", "business", "client", "prospect", "drive", "documents",
    "vendor", "supplier", "distributor", "manufacturer",
    # Korean
    "리드", "연락처", "컨택", "회사", "기업", "업체", "추출", "찾아", "검색",
    "이메일", "전화", "연락", "고객", "거래처", "클라이언트", "제조사", "유통사",
    "공급사", "비즈니스", "사업자", "문서", "드라이브", "정보", "데이터",
    # Japanese
    "会社", "企業", "連絡先", "取引先", "顧客",
)

_DRIVE_LINK = re.compile(r"drive\.google\.com", re.IGNORECASE)


def is_lead_extraction_query(message: str) -> bool:
    """Substring keyword match, case-insensitive."""
    lowered = message.lower()
    return any(keyword in lowered for keyword in LEAD_KEYWORDS)


def contains_drive_link(message: str) -> bool:
    return bool(_DRIVE_LINK.search(message))


def wants_leads(message: str) -> bool:
    return is_lead_extraction_query(message) or contains_drive_link(message)
