"""
Canadian postal code formatting, validation and coverage prefixes
"""
import re
from typing import Dict, List, Optional, Iterable
from pydantic import BaseModel

# Canada Post never uses D, F, I, O, Q, U in any position, nor W or Z as the first letter
FIRST_LETTERS = "ABCEGHJKLMNPRSTVXY"
OTHER_LETTERS = "ABCEGHJKLMNPRSTVWXYZ"

POSTAL_CODE_RE = re.compile(r"^[ABCEGHJ-NPRSTVXY]\d[ABCEGHJ-NPRSTV-Z] \d[ABCEGHJ-NPRSTV-Z]\d$")

PREFIX_BROAD = "broad"
PREFIX_MEDIUM = "medium"
PREFIX_SPECIFIC = "specific"

POSTAL_CODE_PRESETS: Dict[str, List[str]] = {
    "Greater Toronto Area": ["L", "M"],
    "Toronto Core": ["M1", "M2", "M3", "M4", "M5", "M6"],
    "Mississauga": ["L4T", "L4V", "L4W", "L4X", "L4Y", "L4Z", "L5A", "L5B", "L5C"],
    "Brampton": ["L6P", "L6R", "L6S", "L6T", "L6V", "L6W", "L6X", "L6Y", "L6Z", "L7A"],
    "Ottawa": ["K1", "K2", "K4"],
    "Montreal": ["H"],
    "Vancouver": ["V"],
    "Calgary": ["T2", "T3"],
    "Edmonton": ["T5", "T6"],
    "Winnipeg": ["R"],
    "Halifax": ["B"],
}


class PrefixValidation(BaseModel):
    is_valid: bool
    type: Optional[str] = None
    error: Optional[str] = None


class PostalPrefixInfo(BaseModel):
    prefix: str
    type: Optional[str] = None
    coverage_description: str
    estimated_areas: int


class OverlapReport(BaseModel):
    has_overlap: bool
    conflicts: List[str]


class CoverageSummary(BaseModel):
    total_areas: int
    coverage_level: str


def compact_postal_code(value: str) -> str:
    """Uppercase with all whitespace removed"""
    return re.sub(r"\s", "", value or "").upper()


def format_postal_code(value: str) -> str:
    """
    Normalise user input to the "A1A 1A1" layout.

    Stops at the first character that cannot appear in its position, so the
    result is always a valid prefix of a postal code (possibly empty).
    """
    cleaned = compact_postal_code(value)
    formatted = ""
    for i, char in enumerate(cleaned[:6]):
        if i == 0:
            ok = char in FIRST_LETTERS
        elif i in (1, 3, 5):
            ok = char.isdigit()
        else:
            ok = char in OTHER_LETTERS
        if not ok:
            break
        formatted += char
        if i == 2 and len(cleaned) > 3:
            formatted += " "
    return formatted


def validate_postal_code(code: str) -> bool:
    """Strict check of an already formatted "A1A 1A1" postal code"""
    return bool(POSTAL_CODE_RE.match(code or ""))


def normalize_prefix(prefix: str) -> str:
    return (prefix or "").strip().upper()


def validate_postal_prefix(prefix: str) -> PrefixValidation:
    """
    Classify a coverage prefix.

    Returns:
        broad for one letter, medium for letter + digit, specific for a full FSA
    """
    cleaned = normalize_prefix(prefix)

    if not cleaned:
        return PrefixValidation(is_valid=False, error="Prefix cannot be empty")

    if len(cleaned) == 1:
        if cleaned in FIRST_LETTERS:
            return PrefixValidation(is_valid=True, type=PREFIX_BROAD)
        return PrefixValidation(is_valid=False, error="Invalid postal code letter")

    if len(cleaned) == 2:
        if cleaned[0] in FIRST_LETTERS and cleaned[1].isdigit():
            return PrefixValidation(is_valid=True, type=PREFIX_MEDIUM)
        return PrefixValidation(is_valid=False, error="Format must be: Letter + Digit (e.g., L5, M1)")

    if len(cleaned) == 3:
        if cleaned[0] in FIRST_LETTERS and cleaned[1].isdigit() and cleaned[2] in OTHER_LETTERS:
            return PrefixValidation(is_valid=True, type=PREFIX_SPECIFIC)
        return PrefixValidation(is_valid=False, error="Format must be: Letter + Digit + Letter (e.g., L5J, M1C)")

    return PrefixValidation(is_valid=False, error="Prefix must be 1-3 characters long")


def get_postal_prefix_info(prefix: str) -> PostalPrefixInfo:
    prefix_type = validate_postal_prefix(prefix).type

    if prefix_type == PREFIX_BROAD:
        description, areas = f"Entire {prefix} region (province/major area)", 100
    elif prefix_type == PREFIX_MEDIUM:
        description, areas = f"{prefix}* areas (city/district level)", 20
    elif prefix_type == PREFIX_SPECIFIC:
        description, areas = f"{prefix}* neighborhood areas", 5
    else:
        description, areas = "Unknown coverage", 0

    return PostalPrefixInfo(
        prefix=prefix,
        type=prefix_type,
        coverage_description=description,
        estimated_areas=areas,
    )


def check_for_overlapping_prefixes(prefixes: List[str]) -> OverlapReport:
    """Report pairs where one prefix contains the other, e.g. "L" and "L5"."""
    conflicts: List[str] = []
    for i, first in enumerate(prefixes):
        for second in prefixes[i + 1:]:
            if first.startswith(second) or second.startswith(first):
                conflict = f"{first} overlaps with {second}"
                if conflict not in conflicts:
                    conflicts.append(conflict)
    return OverlapReport(has_overlap=bool(conflicts), conflicts=conflicts)


def calculate_total_coverage(prefixes: Iterable[str]) -> CoverageSummary:
    total = sum(get_postal_prefix_info(prefix).estimated_areas for prefix in prefixes)

    level = "Limited"
    if total > 50:
        level = "Good"
    if total > 100:
        level = "Excellent"
    if total > 200:
        level = "Maximum"

    return CoverageSummary(total_areas=total, coverage_level=level)


def postal_code_matches(postal_code: str, prefixes: Optional[Iterable[str]]) -> bool:
    """True when the compact postal code starts with any stored prefix"""
    compact = compact_postal_code(postal_code)
    if not compact:
        return False
    return any(compact.startswith(normalize_prefix(prefix)) for prefix in prefixes or [] if normalize_prefix(prefix))
