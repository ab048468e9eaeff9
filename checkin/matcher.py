"""
matcher.py - Member Matcher
============================
Finds the Wix member behind a scanned ID.

Workflow:
---------
1. Refuse a query with no name and no date of birth (InvalidQueryError)
2. Ask each source in order (members, contacts, free text)
3. Stop at the first source that returns at least one candidate
4. Collapse duplicates (same identifier) returned by that source
5. Move exact matches (first name, last name and DOB all equal) to the front

Outcomes:
---------
- Candidates found            -> success, source tag of the source that found them
- Sources answered, all empty -> success, no candidates ("no match" is data)
- Every source failed         -> not successful, error lists each remote failure
"""

import logging
from typing import Dict, List, Sequence

from .errors import InvalidQueryError, TransportError
from .models import MatchCandidate, MatchResult, NameQuery
from .normalizer import normalize_dob, title_case
from .sources import SourceAdapter

logger = logging.getLogger(__name__)


def dedupe_candidates(candidates: Sequence[MatchCandidate]) -> List[MatchCandidate]:
    """
    Collapse candidates sharing an identifier.

    The last copy seen wins, at the position of the first one. Candidates
    without an identifier can't be compared and are all kept.
    """
    by_key: Dict[str, MatchCandidate] = {}
    for index, candidate in enumerate(candidates):
        key = candidate.id if candidate.id is not None else f"__no_id_{index}"
        by_key[key] = candidate
    return list(by_key.values())


def is_exact_match(candidate: MatchCandidate, query: NameQuery) -> bool:
    """True when first name, last name and DOB all equal the query (case and date format ignored)."""
    if not (query.first_name and query.last_name and query.date_of_birth):
        return False
    return (
        title_case(candidate.first_name) == query.first_name
        and title_case(candidate.last_name) == query.last_name
        and normalize_dob(candidate.date_of_birth) == query.date_of_birth
    )


def promote_exact_matches(candidates: Sequence[MatchCandidate], query: NameQuery) -> List[MatchCandidate]:
    """Stable partition: exact matches first, everything else after, order kept."""
    exact = [c for c in candidates if is_exact_match(c, query)]
    others = [c for c in candidates if not is_exact_match(c, query)]
    return exact + others


class Matcher:
    """
    Runs a NameQuery against an ordered list of sources.

    Usage:
        matcher = Matcher(default_sources(client))
        result = matcher.find_member(build_query("JOHN", "SMITH", "03-22-1985"))
    """

    def __init__(self, sources: Sequence[SourceAdapter]):
        self.sources = list(sources)

    def find_member(self, query: NameQuery) -> MatchResult:
        """
        Search the sources in order and return the first non-empty answer.

        Raises:
            InvalidQueryError: If the query has no name and no date of birth
        """
        if not query.has_criteria:
            raise InvalidQueryError(
                "At least one search parameter (firstName, lastName, or dateOfBirth) is required"
            )

        logger.info(
            f"Looking up member: {query.full_name or 'N/A'}, DOB: {query.date_of_birth or 'N/A'} "
            f"(variants: {', '.join(query.variants) or 'none'})"
        )

        failures: List[str] = []
        answered = 0

        for source in self.sources:
            try:
                raw = source.search(query)
            except TransportError as e:
                logger.warning(f"{source.tag} search failed: {e}")
                failures.append(f"{source.tag}: {e}")
                continue

            answered += 1
            if not raw:
                logger.info(f"No results from {source.tag}, trying next source...")
                continue

            candidates = promote_exact_matches(dedupe_candidates(raw), query)
            logger.info(f"Found {len(candidates)} candidate(s) via {source.tag}")
            return MatchResult(
                success=True,
                source=source.tag,
                candidates=tuple(candidates),
                failures=tuple(failures),
            )

        if self.sources and not answered:
            return MatchResult(
                success=False,
                error="All member searches failed: " + "; ".join(failures),
                failures=tuple(failures),
            )

        logger.info("No members found matching the search criteria")
        return MatchResult(success=True, source=None, failures=tuple(failures))
