"""Shared fixtures for the check-in tests."""

from pathlib import Path

import pytest

from checkin.errors import TransportError
from checkin.models import MatchCandidate

HEADER = "FIRST NAME,LAST NAME,FULL NAME,BIRTHDATE,AGE,DRV LC NO,EXPIRES ON,ISSUED ON,CREATED,Image1"


def export_row(first, last, dob, created, id_number="D000", photo="img.jpg"):
    return f"{first},{last},{first} {last},{dob},30,{id_number},01-01-2030,01-01-2020,{created},{photo}"


@pytest.fixture
def write_export(tmp_path: Path):
    """Write a Scan-ID export with the standard header and the given rows."""

    def _write(*rows: str, name: str = "scan-id-export.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join((HEADER,) + rows) + "\n", encoding="utf-8")
        return path

    return _write


class FakeClient:
    """
    Stands in for HttpClient.

    `responder(path, payload)` returns the decoded JSON body or raises
    TransportError; every call is recorded.
    """

    def __init__(self, responder):
        self.responder = responder
        self.calls = []
        self.closed = False

    def post_json(self, path, payload):
        self.calls.append((path, payload))
        return self.responder(path, payload)

    def close(self):
        self.closed = True


@pytest.fixture
def fake_client():
    return FakeClient


class StubSource:
    """A source that returns fixed candidates or raises."""

    def __init__(self, tag, candidates=None, error=None):
        self.tag = tag
        self.candidates = list(candidates or [])
        self.error = error
        self.queries = []

    def search(self, query):
        self.queries.append(query)
        if self.error:
            raise TransportError(self.error)
        return list(self.candidates)


@pytest.fixture
def stub_source():
    return StubSource


def candidate(id, first="", last="", dob="", source="members"):
    return MatchCandidate(id=id, source=source, first_name=first, last_name=last, date_of_birth=dob)
