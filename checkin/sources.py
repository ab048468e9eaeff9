"""
sources.py - Member Search Sources
===================================
The places the matcher looks for a member, in the order it looks:

1. MembersDirectory  - Wix Members API query      (tag "members")
2. ContactsDirectory - Wix Contacts API query     (tag "contacts")
3. FreeTextSearch    - Wix Contacts free-text search (tag "contacts")

Every source has the same contract: search(query) -> list of MatchCandidate.
The matcher never needs to know which Wix endpoint a candidate came from
beyond the source tag carried on it.

Filter Semantics:
-----------------
A query is sent as

    (any name filter matches) AND (any date-of-birth filter matches)

where the date-of-birth half is left out when the scan has no DOB. Name
filters are "contains" filters on each first-name variant, the last name and
the full name; DOB filters are "eq" filters on the extended fields Wix sites
commonly use for it, in both ISO and scanner format.

Within a source each call is independent: if one is rejected (Wix drops
support for a field or operator without notice) the next still runs. The
source only raises when every one of its calls failed.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .errors import TransportError
from .http_client import HttpClient
from .models import MatchCandidate, NameQuery
from .normalizer import denormalize_dob, normalize_dob

logger = logging.getLogger(__name__)

# Extended fields a site may store the date of birth under
DOB_FIELDS = ("extendedFields.dob", "extendedFields.birthdate", "extendedFields.dateOfBirth")


# =============================================================================
# HELPERS
# =============================================================================

def dig(obj: Any, path: str) -> Any:
    """
    Follow a dotted path through nested dicts and lists.

    Examples:
        dig({"info": {"name": {"first": "Jane"}}}, "info.name.first") -> "Jane"
        dig({"emails": [{"email": "a@b.c"}]}, "emails.0.email")       -> "a@b.c"
        dig({}, "info.name.first")                                    -> None
    """
    current = obj
    for key in path.split("."):
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            return None
        if current is None:
            return None
    return current


def first_present(obj: Any, paths: Iterable[str]) -> Any:
    """Return the first non-empty value found along the given paths."""
    for path in paths:
        value = dig(obj, path)
        if value not in (None, "", [], {}):
            return value
    return None


def _text(value: Any) -> str:
    """None becomes an empty string, everything else its str()."""
    return "" if value is None else str(value)


def _condition(field_name: str, operator: str, value: str) -> Dict[str, Any]:
    """One fieldName/operator/value filter leaf."""
    return {"filter": {"fieldName": field_name, "operator": operator, "value": value}}


def dob_values(query: NameQuery) -> List[str]:
    """Both spellings of the query DOB: ISO first, then scanner format."""
    values = []
    for value in (query.date_of_birth, denormalize_dob(query.date_of_birth), query.raw_date_of_birth):
        if value and value not in values:
            values.append(value)
    return values


# =============================================================================
# SOURCE BASE CLASS
# =============================================================================

class SourceAdapter:
    """
    One remote place to search for a member.

    Subclasses define the endpoint, where results sit in the response, how a
    request body is built and how a remote object becomes a MatchCandidate.
    """

    tag: str = ""
    path: str = ""
    result_key: str = ""

    # Identifier fallback chain, first hit wins
    id_paths: Tuple[str, ...] = ("id",)

    def __init__(self, client: HttpClient, page_limit: int = 10, per_variant: bool = False):
        """
        Args:
            client: HTTP client used for every call
            page_limit: Max results requested per call
            per_variant: Send one call per first-name variant instead of one
                OR-combined call, and union the results
        """
        self.client = client
        self.page_limit = page_limit
        self.per_variant = per_variant

    def __repr__(self):
        return f"{type(self).__name__}(tag={self.tag!r}, per_variant={self.per_variant})"

    # -------------------------------------------------------------------------
    # SEARCH
    # -------------------------------------------------------------------------

    def search(self, query: NameQuery) -> List[MatchCandidate]:
        """
        Run every request for this query and return the raw candidate union.

        Raises:
            TransportError: Only when every request of this source failed
        """
        payloads = self.build_requests(query)
        candidates: List[MatchCandidate] = []
        last_error: Optional[TransportError] = None
        answered = 0

        for payload in payloads:
            try:
                data = self.client.post_json(self.path, payload)
            except TransportError as e:
                logger.warning(f"{self.tag} search call failed, trying next: {e}")
                last_error = e
                continue

            answered += 1
            items = data.get(self.result_key) or []
            logger.debug(f"{self.tag} search returned {len(items)} items")
            candidates.extend(self.to_candidate(item) for item in items if isinstance(item, dict))

        if payloads and not answered and last_error is not None:
            raise last_error

        return self.post_filter(query, candidates)

    def build_requests(self, query: NameQuery) -> List[Dict[str, Any]]:
        raise NotImplementedError

    def to_candidate(self, item: Dict[str, Any]) -> MatchCandidate:
        raise NotImplementedError

    def post_filter(self, query: NameQuery, candidates: List[MatchCandidate]) -> List[MatchCandidate]:
        return candidates

    def extract_id(self, item: Dict[str, Any]) -> Optional[str]:
        """Identifier of a remote object, following id_paths in order."""
        value = first_present(item, self.id_paths)
        return None if value is None else str(value)

    # -------------------------------------------------------------------------
    # FILTER BUILDING
    # -------------------------------------------------------------------------

    def variant_groups(self, query: NameQuery) -> List[Tuple[str, ...]]:
        """First-name variants per request: one group, or one per variant."""
        if self.per_variant and len(query.variants) > 1:
            return [(variant,) for variant in query.variants]
        return [query.variants]


class FilterQuerySource(SourceAdapter):
    """A source queried with fieldName/operator/value filter trees."""

    first_name_field: str = ""
    last_name_field: str = ""
    full_name_field: str = ""
    fields: Tuple[str, ...] = ()

    def name_conditions(self, variants: Sequence[str], last_name: str) -> List[Dict[str, Any]]:
        conditions = [_condition(self.first_name_field, "contains", v) for v in variants]
        if last_name:
            conditions.append(_condition(self.last_name_field, "contains", last_name))
            for variant in variants:
                conditions.append(_condition(self.full_name_field, "contains", f"{variant} {last_name}"))
        return conditions

    def dob_conditions(self, query: NameQuery) -> List[Dict[str, Any]]:
        return [
            _condition(field_name, "eq", value)
            for value in dob_values(query)
            for field_name in DOB_FIELDS
        ]

    def build_requests(self, query: NameQuery) -> List[Dict[str, Any]]:
        dob_filters = self.dob_conditions(query)
        payloads = []

        for group in self.variant_groups(query):
            name_filters = self.name_conditions(group, query.last_name)

            if name_filters and dob_filters:
                filter_expr = {"and": [{"or": name_filters}, {"or": dob_filters}]}
            elif name_filters:
                filter_expr = {"or": name_filters}
            elif dob_filters:
                filter_expr = {"or": dob_filters}
            else:
                continue

            payloads.append({
                "filter": filter_expr,
                "paging": {"limit": self.page_limit},
                "fields": list(self.fields),
            })

        return payloads


# =============================================================================
# WIX SOURCES
# =============================================================================

class MembersDirectory(FilterQuerySource):
    """Site members (people with a login)."""

    tag = "members"
    path = "/members/v1/members/query"
    result_key = "members"
    id_paths = ("_id", "id", "memberId")

    first_name_field = "profile.firstName"
    last_name_field = "profile.lastName"
    full_name_field = "profile.name"
    fields = ("profile", "privacyStatus", "status", "activityStatus", "extendedFields", "membershipStatus")

    def to_candidate(self, item: Dict[str, Any]) -> MatchCandidate:
        nickname = _text(dig(item, "profile.nickname"))
        nick_first, _, nick_last = nickname.partition(" ")

        first = first_present(item, ("profile.firstName", "contact.firstName")) or nick_first
        last = first_present(item, ("profile.lastName", "contact.lastName")) or nick_last

        return MatchCandidate(
            id=self.extract_id(item),
            source=self.tag,
            first_name=_text(first),
            last_name=_text(last),
            email=_text(first_present(item, ("loginEmail", "contact.emails.0", "profile.email"))),
            phone=_text(first_present(item, ("contact.phones.0", "profile.phone"))),
            picture=_text(dig(item, "profile.photo.url")),
            date_of_birth=_text(first_present(
                item,
                ("contact.birthdate", "extendedFields.dob", "extendedFields.birthdate", "extendedFields.dateOfBirth"),
            )),
            nickname=nickname,
            raw=item,
        )


class ContactsDirectory(FilterQuerySource):
    """Site contacts (everyone the site knows about, members or not)."""

    tag = "contacts"
    path = "/contacts/v4/contacts/query"
    result_key = "contacts"
    id_paths = ("memberInfo.id", "info.memberId", "info.id", "id")

    first_name_field = "info.name.first"
    last_name_field = "info.name.last"
    full_name_field = "info.name.full"
    fields = ("info", "customFields", "extendedFields")

    def to_candidate(self, item: Dict[str, Any]) -> MatchCandidate:
        return MatchCandidate(
            id=self.extract_id(item),
            source=self.tag,
            first_name=_text(dig(item, "info.name.first")),
            last_name=_text(dig(item, "info.name.last")),
            email=_text(first_present(item, ("primaryEmail.email", "info.emails.0.email", "info.emails.items.0.email"))),
            phone=_text(first_present(item, ("primaryPhone.phone", "info.phones.0.phone", "info.phones.items.0.phone"))),
            picture=_text(first_present(item, ("picture.image.url", "info.picture.image.url"))),
            date_of_birth=_text(first_present(
                item,
                ("info.birthdate", "customFields.birthdate", "customFields.dob", "extendedFields.dob"),
            )),
            raw=item,
        )


class FreeTextSearch(ContactsDirectory):
    """
    Last resort: free-text contact search, one call per name variant.

    Free text can't carry a DOB condition, so candidates whose known DOB
    differs from the scan are dropped afterwards. Candidates without a DOB
    are kept.
    """

    path = "/contacts/v4/contacts/search"
    fields = ("info", "customFields", "picture")

    def __init__(self, client: HttpClient, page_limit: int = 10):
        super().__init__(client, page_limit=page_limit, per_variant=True)

    def build_requests(self, query: NameQuery) -> List[Dict[str, Any]]:
        texts = [f"{variant} {query.last_name}".strip() for variant in query.variants]
        if not texts and query.last_name:
            texts = [query.last_name]

        payloads = []
        for text in dict.fromkeys(texts):
            payloads.append({
                "search": {"freeText": text},
                "paging": {"limit": self.page_limit},
                "fields": list(self.fields),
            })
        return payloads

    def post_filter(self, query: NameQuery, candidates: List[MatchCandidate]) -> List[MatchCandidate]:
        if not query.date_of_birth:
            return candidates
        # Candidates with no DOB on file are kept: a DOB match is only
        # required when the contact has one, unlike the filter-query sources
        return [
            c for c in candidates
            if not c.date_of_birth or normalize_dob(c.date_of_birth) == query.date_of_birth
        ]


def default_sources(client: HttpClient, page_limit: int = 10) -> List[SourceAdapter]:
    """The standard search order: members, then contacts, then free text."""
    return [
        MembersDirectory(client, page_limit=page_limit),
        ContactsDirectory(client, page_limit=page_limit),
        FreeTextSearch(client, page_limit=page_limit),
    ]
