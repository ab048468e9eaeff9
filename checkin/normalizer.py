"""
normalizer.py - Name and Date Normalization
============================================
Turns the raw, all-caps scanner fields into a NameQuery the member matcher
can send to Wix.

The scanner writes names in capitals ("JANE MARIE") while Wix stores proper
case ("Jane Marie"), and people with two first names are often registered
under only one of them. So every name is title-cased and the first name is
expanded into a few variants:

    "JANE MARIE" -> ("Jane Marie", "Jane", "Marie")

Dates of birth come from the scanner as MM-DD-YYYY and are queried on Wix
as YYYY-MM-DD.

Every function here is pure and never raises.
"""

from datetime import datetime
from typing import List, Optional, Tuple

from .models import NameQuery

# Scanner layouts we know how to convert to ISO
SCANNER_DATE_FORMATS = ("%m-%d-%Y", "%m/%d/%Y")
ISO_DATE_FORMAT = "%Y-%m-%d"


def title_case(value: Optional[str]) -> str:
    """
    Title-case every whitespace-separated token.

    Examples:
        title_case("JANE  MARIE") -> "Jane Marie"
        title_case("o'NEIL")      -> "O'neil"
        title_case(None)          -> ""
    """
    if not value:
        return ""
    return " ".join(word[:1].upper() + word[1:].lower() for word in value.split())


def name_variants(first_name: Optional[str]) -> Tuple[str, ...]:
    """
    Build the first-name variants used to widen the search.

    Order: the full first name, then each part longer than one character
    (initials are skipped), then the first part on its own. Duplicates are
    dropped, keeping the first occurrence.
    """
    formatted = title_case(first_name)
    if not formatted:
        return ()

    parts = formatted.split(" ")
    variants: List[str] = [formatted]
    variants.extend(part for part in parts if len(part) > 1)
    if len(parts) > 1:
        variants.append(parts[0])

    seen = set()
    unique = []
    for variant in variants:
        if variant not in seen:
            seen.add(variant)
            unique.append(variant)
    return tuple(unique)


def _parse_date(value: str, formats) -> Optional[datetime]:
    for fmt in formats:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def normalize_dob(value: Optional[str]) -> str:
    """
    Convert a scanner date of birth to YYYY-MM-DD.

    Examples:
        normalize_dob("01-15-1990") -> "1990-01-15"
        normalize_dob("01/15/1990") -> "1990-01-15"
        normalize_dob("1990-01-15") -> "1990-01-15"
        normalize_dob("sometime")   -> "sometime"
    """
    if not value:
        return ""
    text = value.strip()
    parsed = _parse_date(text, SCANNER_DATE_FORMATS + (ISO_DATE_FORMAT,))
    if parsed is None:
        return text
    return parsed.strftime(ISO_DATE_FORMAT)


def denormalize_dob(value: Optional[str]) -> str:
    """
    Convert YYYY-MM-DD back to the scanner's MM-DD-YYYY.

    Unparseable values pass through unchanged.
    """
    if not value:
        return ""
    text = value.strip()
    parsed = _parse_date(text, (ISO_DATE_FORMAT,) + SCANNER_DATE_FORMATS)
    if parsed is None:
        return text
    return parsed.strftime("%m-%d-%Y")


def build_query(
    first_name: Optional[str],
    last_name: Optional[str],
    date_of_birth: Optional[str],
) -> NameQuery:
    """Build the NameQuery for one scan."""
    return NameQuery(
        first_name=title_case(first_name),
        last_name=title_case(last_name),
        variants=name_variants(first_name),
        date_of_birth=normalize_dob(date_of_birth),
        raw_date_of_birth=(date_of_birth or "").strip(),
    )
