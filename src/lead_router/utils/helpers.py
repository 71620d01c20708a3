"""
General helper functions
"""
import re
from typing import Optional
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the DateTime columns store"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """Strip everything but digits; empty results become None"""
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    return digits or None


def display_name(first_name: Optional[str], last_name: Optional[str], fallback: str = "") -> str:
    """Join name parts, falling back when both are blank"""
    name = " ".join(part for part in (first_name, last_name) if part).strip()
    return name or fallback
