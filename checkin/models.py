"""
models.py - Value Objects
==========================
Request-scoped data passed between the reader, normalizer, matcher and
plan resolver. Everything here is immutable once built.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple


# Raw export column -> (ScanRecord field, envelope key)
SCAN_COLUMNS = {
    "FIRST NAME": ("first_name", "FirstName"),
    "LAST NAME": ("last_name", "LastName"),
    "FULL NAME": ("full_name", "FullName"),
    "BIRTHDATE": ("date_of_birth", "DateOfBirth"),
    "AGE": ("age", "Age"),
    "DRV LC NO": ("id_number", "IDNumber"),
    "EXPIRES ON": ("id_expiration", "IDExpiration"),
    "ISSUED ON": ("id_issued", "IDIssued"),
    "CREATED": ("scan_time", "ScanTime"),
    "Image1": ("photo_path", "PhotoPath"),
}

UNNAMED_PLAN = "Unnamed Plan"
UNNAMED_ORDER = "Unnamed Order"
UNKNOWN_STATUS = "Unknown"


@dataclass(frozen=True)
class ScanRecord:
    first_name: str = ""
    last_name: str = ""
    full_name: str = ""
    date_of_birth: str = ""
    age: str = ""
    id_number: str = ""
    id_expiration: str = ""
    id_issued: str = ""
    scan_time: str = ""
    photo_path: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ScanRecord":
        values = {}
        for column, (attr, _) in SCAN_COLUMNS.items():
            value = row.get(column)
            values[attr] = "" if value is None else str(value)
        return cls(**values)

    def to_dict(self) -> Dict[str, str]:
        return {key: getattr(self, attr) for attr, key in SCAN_COLUMNS.values()}


@dataclass(frozen=True)
class NameQuery:
    first_name: str = ""
    last_name: str = ""
    variants: Tuple[str, ...] = ()
    date_of_birth: str = ""
    raw_date_of_birth: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def has_criteria(self) -> bool:
        return bool(self.variants or self.last_name or self.date_of_birth)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "firstName": self.first_name,
            "lastName": self.last_name,
            "variants": list(self.variants),
            "dateOfBirth": self.date_of_birth,
            "rawDateOfBirth": self.raw_date_of_birth,
        }


@dataclass(frozen=True)
class MatchCandidate:
    id: Optional[str]
    source: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    picture: str = ""
    date_of_birth: str = ""
    nickname: str = ""
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "picture": self.picture,
            "dateOfBirth": self.date_of_birth,
            "nickname": self.nickname,
        }


@dataclass(frozen=True)
class MatchResult:
    success: bool
    source: Optional[str] = None
    candidates: Tuple[MatchCandidate, ...] = ()
    error: Optional[str] = None
    failures: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success, "source": self.source}
        if self.success:
            data["members"] = [c.to_dict() for c in self.candidates]
            data["memberCount"] = len(self.candidates)
        else:
            data["error"] = self.error
        if self.failures:
            data["failures"] = list(self.failures)
        return data


@dataclass(frozen=True)
class PlanRecord:
    id: Optional[str]
    name: str = UNNAMED_PLAN
    status: str = UNKNOWN_STATUS
    state: str = "other"  # 'active', 'inactive' or 'other'
    valid_from: Optional[str] = None
    valid_until: Optional[str] = None
    plan_id: Optional[str] = None
    auto_renew: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "planName": self.name,
            "status": self.status,
            "state": self.state,
            "validFrom": self.valid_from,
            "expiresAt": self.valid_until,
            "pricingPlanId": self.plan_id,
            "autoRenew": self.auto_renew,
        }


@dataclass(frozen=True)
class OrderRecord:
    id: Optional[str]
    plan_name: str = UNNAMED_ORDER
    status: str = UNKNOWN_STATUS
    created_date: Optional[str] = None
    end_date: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "_id": self.id,
            "planName": self.plan_name,
            "status": self.status,
            "createdDate": self.created_date,
            "endDate": self.end_date,
        }


@dataclass(frozen=True)
class ErrorResult:
    error: str
    kind: str = "Error"
    details: Optional[Dict[str, Any]] = None

    success = False

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": False, "error": self.error, "kind": self.kind}
        if self.details:
            data["details"] = self.details
        return data
