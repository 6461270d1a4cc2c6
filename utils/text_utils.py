"""
Text utilities for search terms and geo codes.

Terms are case-sensitive cache keys, so normalization never changes case.
"""

import re
from typing import Optional


def normalize_term(term: Optional[str]) -> Optional[str]:
    """
    Normalize a search term for lookups and logging.

    - "  react  " → "react"
    - "machine   learning" → "machine learning"
    - "React" stays "React" (case is significant)

    Args:
        term: Raw term from the request

    Returns:
        Trimmed term with single spaces, or None if empty
    """
    if term is None:
        return None

    cleaned = re.sub(r"\s+", " ", term).strip()

    return cleaned or None


def normalize_geo(geo: Optional[str]) -> str:
    """
    Normalize a geo code.

    Empty or missing means worldwide and is stored as "".
    Codes are uppercased: "us" → "US", "us-ca" → "US-CA".
    """
    if not geo:
        return ""
    return geo.strip().upper()
