"""Tests for the Wix search sources."""

import pytest

from checkin.errors import TransportError
from checkin.normalizer import build_query
from checkin.sources import (
    ContactsDirectory,
    FreeTextSearch,
    MembersDirectory,
    default_sources,
    dig,
    dob_values,
    first_present,
)

from conftest import FakeClient


def _field_names(conditions):
    return [c["filter"]["fieldName"] for c in conditions]


class TestHelpers:
    def test_dig_nested_and_list(self):
        obj = {"info": {"emails": [{"email": "a@b.c"}]}}
        assert dig(obj, "info.emails.0.email") == "a@b.c"
        assert dig(obj, "info.emails.3.email") is None
        assert dig(obj, "info.missing") is None

    def test_first_present_skips_empty(self):
        obj = {"_id": "", "id": "m-1", "memberId": "m-2"}
        assert first_present(obj, ("_id", "id", "memberId")) == "m-1"

    def test_dob_values_both_spellings(self):
        assert dob_values(build_query("JOHN", "SMITH", "03-22-1985")) == ["1985-03-22", "03-22-1985"]


class TestMembersDirectoryRequests:
    def test_names_and_dob_are_anded(self):
        source = MembersDirectory(FakeClient(lambda p, b: {}), page_limit=5)

        [payload] = source.build_requests(build_query("JANE MARIE", "DOE", "01-15-1990"))

        name_half, dob_half = payload["filter"]["and"]
        names = name_half["or"]
        assert ("profile.firstName", "Jane") in [(c["filter"]["fieldName"], c["filter"]["value"]) for c in names]
        assert "profile.lastName" in _field_names(names)
        assert "profile.name" in _field_names(names)
        assert all(c["filter"]["operator"] == "contains" for c in names)
        assert {c["filter"]["value"] for c in dob_half["or"]} == {"1990-01-15", "01-15-1990"}
        assert set(_field_names(dob_half["or"])) == {
            "extendedFields.dob",
            "extendedFields.birthdate",
            "extendedFields.dateOfBirth",
        }
        assert payload["paging"] == {"limit": 5}

    def test_no_dob_is_plain_or(self):
        source = MembersDirectory(FakeClient(lambda p, b: {}))

        [payload] = source.build_requests(build_query("JOHN", "SMITH", ""))

        assert "or" in payload["filter"]
        assert "and" not in payload["filter"]

    def test_dob_only(self):
        source = MembersDirectory(FakeClient(lambda p, b: {}))

        [payload] = source.build_requests(build_query("", "", "03-22-1985"))

        assert set(_field_names(payload["filter"]["or"])) == {
            "extendedFields.dob",
            "extendedFields.birthdate",
            "extendedFields.dateOfBirth",
        }

    def test_per_variant_sends_one_request_per_variant(self):
        source = MembersDirectory(FakeClient(lambda p, b: {}), per_variant=True)

        payloads = source.build_requests(build_query("JANE MARIE", "DOE", ""))

        assert len(payloads) == 3
        first_names = [
            [c["filter"]["value"] for c in p["filter"]["or"] if c["filter"]["fieldName"] == "profile.firstName"]
            for p in payloads
        ]
        assert first_names == [["Jane Marie"], ["Jane"], ["Marie"]]


class TestMembersDirectorySearch:
    def test_maps_member_fields(self):
        member = {
            "id": "m-1",
            "loginEmail": "john@example.com",
            "profile": {"nickname": "John Smith", "photo": {"url": "https://img/1.png"}},
            "contact": {"phones": ["555-0100"], "birthdate": "1985-03-22"},
        }
        client = FakeClient(lambda p, b: {"members": [member]})

        [found] = MembersDirectory(client).search(build_query("JOHN", "SMITH", "03-22-1985"))

        assert client.calls[0][0] == "/members/v1/members/query"
        assert found.id == "m-1"
        assert found.source == "members"
        assert (found.first_name, found.last_name) == ("John", "Smith")
        assert found.email == "john@example.com"
        assert found.phone == "555-0100"
        assert found.picture == "https://img/1.png"
        assert found.date_of_birth == "1985-03-22"

    def test_identifier_fallback_chain(self):
        client = FakeClient(lambda p, b: {"members": [{"_id": "a"}, {"id": "b"}, {"memberId": "c"}, {}]})

        found = MembersDirectory(client).search(build_query("JOHN", "", ""))

        assert [c.id for c in found] == ["a", "b", "c", None]

    def test_one_failed_call_does_not_stop_the_others(self):
        def responder(path, body):
            values = [c["filter"]["value"] for c in body["filter"]["or"]]
            if "Jane Marie" in values:
                raise TransportError("400: unsupported operator")
            return {"members": [{"id": "m-" + values[0]}]}

        client = FakeClient(responder)
        source = MembersDirectory(client, per_variant=True)

        found = source.search(build_query("JANE MARIE", "", ""))

        assert len(client.calls) == 3
        assert [c.id for c in found] == ["m-Jane", "m-Marie"]

    def test_raises_when_every_call_fails(self):
        def responder(path, body):
            raise TransportError("401: bad key")

        with pytest.raises(TransportError, match="bad key"):
            MembersDirectory(FakeClient(responder), per_variant=True).search(build_query("JANE MARIE", "", ""))

    def test_missing_result_key_is_empty(self):
        assert MembersDirectory(FakeClient(lambda p, b: {})).search(build_query("JOHN", "", "")) == []


class TestContactsDirectory:
    def test_uses_contact_fields(self):
        client = FakeClient(lambda p, b: {"contacts": []})

        ContactsDirectory(client).search(build_query("JOHN", "SMITH", ""))

        path, body = client.calls[0]
        assert path == "/contacts/v4/contacts/query"
        assert set(_field_names(body["filter"]["or"])) == {"info.name.first", "info.name.last", "info.name.full"}

    def test_contact_identifier_chain(self):
        contacts = [
            {"id": "c-1", "memberInfo": {"id": "m-1"}, "info": {"memberId": "m-x"}},
            {"id": "c-2", "info": {"memberId": "m-2"}},
            {"id": "c-3", "info": {"id": "i-3"}},
            {"id": "c-4"},
        ]
        client = FakeClient(lambda p, b: {"contacts": contacts})

        found = ContactsDirectory(client).search(build_query("JOHN", "", ""))

        assert [c.id for c in found] == ["m-1", "m-2", "i-3", "c-4"]
        assert all(c.source == "contacts" for c in found)

    def test_maps_contact_fields(self):
        contact = {
            "id": "c-1",
            "info": {"name": {"first": "John", "last": "Smith"}, "birthdate": "1985-03-22"},
            "primaryEmail": {"email": "john@example.com"},
            "primaryPhone": {"phone": "555-0100"},
        }
        [found] = ContactsDirectory(FakeClient(lambda p, b: {"contacts": [contact]})).search(
            build_query("JOHN", "SMITH", "")
        )

        assert (found.first_name, found.last_name) == ("John", "Smith")
        assert found.email == "john@example.com"
        assert found.phone == "555-0100"
        assert found.date_of_birth == "1985-03-22"


class TestFreeTextSearch:
    def test_one_call_per_variant(self):
        client = FakeClient(lambda p, b: {"contacts": []})

        FreeTextSearch(client).search(build_query("JANE MARIE", "DOE", ""))

        assert [body["search"]["freeText"] for _, body in client.calls] == [
            "Jane Marie Doe",
            "Jane Doe",
            "Marie Doe",
        ]
        assert all(path == "/contacts/v4/contacts/search" for path, _ in client.calls)

    def test_last_name_only(self):
        client = FakeClient(lambda p, b: {"contacts": []})

        FreeTextSearch(client).search(build_query("", "DOE", ""))

        assert [body["search"]["freeText"] for _, body in client.calls] == ["Doe"]

    def test_dob_only_sends_nothing(self):
        client = FakeClient(lambda p, b: {"contacts": []})

        assert FreeTextSearch(client).search(build_query("", "", "01-15-1990")) == []
        assert client.calls == []

    def test_drops_candidates_with_other_dob(self):
        contacts = [
            {"id": "1", "info": {"birthdate": "1990-01-15"}},
            {"id": "2", "info": {"birthdate": "1975-06-30"}},
            {"id": "3"},
        ]
        client = FakeClient(lambda p, b: {"contacts": contacts})

        found = FreeTextSearch(client).search(build_query("JANE", "DOE", "01-15-1990"))

        assert [c.id for c in found] == ["1", "3"]


def test_default_source_order():
    sources = default_sources(FakeClient(lambda p, b: {}), page_limit=7)

    assert [type(s) for s in sources] == [MembersDirectory, ContactsDirectory, FreeTextSearch]
    assert [s.tag for s in sources] == ["members", "contacts", "contacts"]
    assert all(s.page_limit == 7 for s in sources)
