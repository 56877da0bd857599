"""Parsers for free-text questionnaire fields.

Several collected fields are loosely structured strings that behave like
enumerations (SLA text, scaling mechanism, technical debt). They are parsed
here into typed optional values before any scoring arithmetic runs.
"""

import re
from typing import Optional

from .schema import ScalingMechanism, TechnicalDebtLevel

# First decimal number in a string, with dot or comma as separator
_NUMBER_PATTERN = re.compile(r"\d+(?:[.,]\d+)?")

# Certification labels and the points each one contributes
CERTIFICATION_POINTS = {
    "ISO 27001": 8,
    "HDS": 8,
    "SOC 2": 6,
    "PCI": 4,
    "SOC 1": 3,
    "ISAE 3402": 3,
}

# Certifications strong enough to cover sensitive data
STRONG_CERTIFICATIONS = frozenset(["ISO 27001", "HDS", "SOC 2"])

SENSITIVE_DATA_TYPES = frozenset(["health", "financial"])


def parse_sla(text: Optional[str]) -> Optional[float]:
    """Extract the SLA percentage from free text.

    Takes the first decimal number appearing anywhere in the text, accepting
    either a dot or a comma as decimal separator.

    Examples:
        "99.9%" -> 99.9
        "SLA de 99,5 % par mois" -> 99.5
        "best effort" -> None
    """
    if not text:
        return None
    match = _NUMBER_PATTERN.search(text)
    if not match:
        return None
    return float(match.group(0).replace(",", "."))


def parse_scaling_mechanism(text: Optional[str]) -> Optional[ScalingMechanism]:
    """Interpret the database scaling mechanism text.

    "Horizontal" takes precedence over "Verticale" when both appear.
    """
    if not text:
        return None
    if "Horizontal" in text:
        return ScalingMechanism.HORIZONTAL
    if "Verticale" in text:
        return ScalingMechanism.VERTICAL
    return None


def parse_technical_debt(text: Optional[str]) -> Optional[TechnicalDebtLevel]:
    """Interpret the known technical debt text (exact match only)."""
    if text is None:
        return None
    for level in TechnicalDebtLevel:
        if text == level.value:
            return level
    return None


def _normalize_certification(label: str) -> str:
    return re.sub(r"[\s_\-]+", "", label.lower())


def match_certifications(labels: list[str]) -> list[str]:
    """Return the known certifications found in a list of free-text labels.

    Matching is a case-insensitive substring test that ignores whitespace,
    hyphens and underscores, so "ISO27001:2022" matches "ISO 27001". Known
    certifications are returned at most once, in CERTIFICATION_POINTS order.
    """
    normalized = [_normalize_certification(label) for label in labels if label]
    found = []
    for certification in CERTIFICATION_POINTS:
        key = _normalize_certification(certification)
        if any(key in label for label in normalized):
            found.append(certification)
    return found


def has_sensitive_data(data_types: list[str]) -> bool:
    """True when health or financial data is processed."""
    return any(d.strip().lower() in SENSITIVE_DATA_TYPES for d in data_types if d)
