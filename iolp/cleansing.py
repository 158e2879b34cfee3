"""Building name cleansing for IOLP asset names.

IOLP "Real Property Asset Name" values frequently mix a street address into
the building name:

- "123 Main St - Empire Plaza"   → "Empire Plaza"
- "Empire Plaza, 123 Main St"    → "Empire Plaza"
- "Tech Hub @ 999 Market Street" → "Tech Hub"
- "Business Center, 12345"       → "Business Center"

The cleaner splits on the first separator it finds and keeps the part that
looks most like a building name. It never raises: when cleaning would leave
nothing useful, the trimmed original comes back.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable


# =============================================================================
# Patterns
# =============================================================================

STREET_TYPES = (
    "st|street|ave|avenue|rd|road|blvd|boulevard|dr|drive|ln|lane|ct|court|way|pl|place"
)

ADDRESS_PATTERNS = [
    re.compile(rf"\d+\s+[A-Za-z]+\s+({STREET_TYPES})", re.IGNORECASE),
    re.compile(rf"\d+\s+[A-Za-z]+\s+[A-Za-z]+\s+({STREET_TYPES})", re.IGNORECASE),
    re.compile(r"\d{3,5}\s+[A-Za-z]"),  # street number followed by a word
    re.compile(r",\s*\d{5}(-\d{4})?"),  # ZIP after a comma
    re.compile(r"(suite|ste|floor|fl|room|rm)\s*\d+", re.IGNORECASE),
]

TRAILING_ZIP_RE = re.compile(r",?\s*\b\d{5}(-\d{4})?\s*$")
TRAILING_UNIT_RE = re.compile(r",?\s*\b(suite|ste|floor|fl|room|rm)\s*\d+\s*$", re.IGNORECASE)

# Checked in order; only the first one present is used.
SEPARATORS = (" - ", " – ", " — ", ", ", " / ", ": ", " | ", " @ ", " at ")

STREET_WORD_RE = re.compile(rf"\b({STREET_TYPES})\b", re.IGNORECASE)
ZIP_RUN_RE = re.compile(r"\b\d{5}(-\d{4})?\b")
BUILDING_WORD_RE = re.compile(
    r"\b(center|plaza|tower|building|complex|mall|square|park|place)\b", re.IGNORECASE
)
CAPITALIZED_WORD_RE = re.compile(r"\b[A-Z][a-z]+")
WHITESPACE_RE = re.compile(r"\s+")
EDGE_PUNCT_RE = re.compile(r"^[,\-–—\s]+|[,\-–—\s]+$")

MIN_CLEAN_LENGTH = 3


# =============================================================================
# Detection and Scoring
# =============================================================================


def has_address_in_name(name: str | None) -> bool:
    """True if the name carries something that looks like part of an address."""
    if not name:
        return False
    return any(pattern.search(name) for pattern in ADDRESS_PATTERNS)


def score_as_building_name(part: str) -> int:
    """Score how much a fragment looks like a building name rather than an address.

    Higher is more name-like. Leading digits, street words and ZIP codes push
    the score down; words like "Plaza" or "Tower" push it up.
    """
    score = 10
    if part[:1].isdigit():
        score -= 10
    if STREET_WORD_RE.search(part):
        score -= 5
    if ZIP_RUN_RE.search(part):
        score -= 8
    if BUILDING_WORD_RE.search(part):
        score += 5
    if len(CAPITALIZED_WORD_RE.findall(part)) > 1:
        score += 2
    if len(part) < 5:
        score -= 3
    return score


def _best_part(parts: list[str]) -> str | None:
    best = None
    best_score = None
    for part in parts:
        part = part.strip()
        if not part:
            continue
        score = score_as_building_name(part)
        # Ties keep the earlier part
        if best_score is None or score > best_score:
            best, best_score = part, score
    return best


# =============================================================================
# Cleaning
# =============================================================================


def clean_building_name(name: str | None) -> str | None:
    """Strip address fragments from an asset name.

    Examples:
    - "789 Market St: Civic Center" → "Civic Center"
    - "Empire Plaza, Suite 100" → "Empire Plaza"
    - "One World Trade Center" → "One World Trade Center"
    - "Plaza" → "Plaza"
    """
    if name is None:
        return None

    original = name.strip()
    cleaned = TRAILING_ZIP_RE.sub("", original)
    cleaned = TRAILING_UNIT_RE.sub("", cleaned)

    for sep in SEPARATORS:
        if sep in cleaned:
            best = _best_part(cleaned.split(sep))
            if best is not None:
                cleaned = best
            break

    cleaned = WHITESPACE_RE.sub(" ", cleaned).strip()
    cleaned = EDGE_PUNCT_RE.sub("", cleaned)

    if len(cleaned) < MIN_CLEAN_LENGTH:
        return original
    return cleaned


def process_row(row: dict[str, Any]) -> dict[str, Any]:
    """Copy a raw row and add cleanedBuildingName / addressInName."""
    asset_name = row.get("Real Property Asset Name") or ""
    if not isinstance(asset_name, str):
        asset_name = str(asset_name)
    return {
        **row,
        "cleanedBuildingName": clean_building_name(asset_name),
        "addressInName": has_address_in_name(asset_name),
    }


# =============================================================================
# Statistics
# =============================================================================


@dataclass
class CleansingStats:
    """How much cleansing a batch of asset names needed."""

    total: int = 0
    with_address: int = 0
    cleaned: int = 0
    examples: list[tuple[str, str]] = field(default_factory=list)

    def summary(self) -> str:
        return (
            f"{self.total} names, {self.with_address} with address fragments, "
            f"{self.cleaned} changed by cleaning"
        )


def cleansing_stats(names: Iterable[str | None], max_examples: int = 3) -> CleansingStats:
    """Tally address-in-name and cleaned counts for a batch of asset names."""
    stats = CleansingStats()
    for raw in names:
        name = raw or ""
        stats.total += 1
        if has_address_in_name(name):
            stats.with_address += 1
        cleaned = clean_building_name(name)
        if cleaned != name:
            stats.cleaned += 1
            if len(stats.examples) < max_examples:
                stats.examples.append((name, cleaned))
    return stats
