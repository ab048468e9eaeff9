"""
service.py - Check-in Service
==============================
The boundary the front end talks to. Four operations, each returning a plain
dict envelope:

    {"success": True, ...}                      on success
    {"success": False, "error": "...", ...}     on failure

- get_latest_scan()                      -> {"scan": {...}}
- find_member(first, last, dob)          -> {"source", "members", "memberCount", "query"}
- get_plans(member_id)                   -> {"plans", "planCount"}
- list_plan_orders(member_id)            -> {"orders", "orderCount"}

process_latest_scan() chains read -> normalize -> match for the watcher and
the "checkin" CLI command.

Exceptions from the core are turned into envelopes here and nowhere else.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from .config import Settings
from .errors import CheckinError
from .http_client import HttpClient
from .loader import get_latest_scan
from .matcher import Matcher
from .models import ErrorResult
from .normalizer import build_query
from .plans import PlanResolver
from .sources import default_sources

logger = logging.getLogger(__name__)


class CheckinService:
    """
    Facade over the reader, matcher and plan resolver.

    Usage:
        service = CheckinService.from_settings(load_settings())
        scan = service.get_latest_scan()
        match = service.find_member("JOHN", "SMITH", "03-22-1985")
        service.close()
    """

    def __init__(
        self,
        scan_path: str | Path,
        matcher: Optional[Matcher] = None,
        resolver: Optional[PlanResolver] = None,
        client: Optional[HttpClient] = None,
        config_error: Optional[str] = None,
    ):
        self.scan_path = Path(scan_path)
        self.matcher = matcher
        self.resolver = resolver
        self.client = client
        self.config_error = config_error

    @classmethod
    def from_settings(cls, settings: Settings) -> "CheckinService":
        """
        Wire up the default Wix sources from configuration.

        Missing credentials don't stop the service from reading scans; the
        remote operations answer with a configuration error instead.
        """
        try:
            client = HttpClient(settings)
        except RuntimeError as e:
            logger.warning(f"Wix API not configured: {e}")
            return cls(settings.scan_csv_path, config_error=str(e))

        return cls(
            settings.scan_csv_path,
            matcher=Matcher(default_sources(client, settings.page_limit)),
            resolver=PlanResolver(client, settings.page_limit),
            client=client,
        )

    # -------------------------------------------------------------------------
    # UI OPERATIONS
    # -------------------------------------------------------------------------

    def get_latest_scan(self) -> Dict[str, Any]:
        scan = get_latest_scan(self.scan_path)
        if isinstance(scan, ErrorResult):
            return scan.to_dict()
        return {"success": True, "scan": scan.to_dict()}

    def find_member(
        self,
        first_name: Optional[str],
        last_name: Optional[str],
        date_of_birth: Optional[str],
    ) -> Dict[str, Any]:
        query = build_query(first_name, last_name, date_of_birth)

        if self.matcher is None:
            return self._not_configured()

        try:
            result = self.matcher.find_member(query)
        except CheckinError as e:
            logger.warning(f"Member lookup rejected: {e}")
            envelope = e.to_result().to_dict()
        else:
            envelope = result.to_dict()

        envelope["query"] = query.to_dict()
        return envelope

    def get_plans(self, member_id: Optional[str]) -> Dict[str, Any]:
        if self.resolver is None:
            return self._not_configured()

        try:
            plans = self.resolver.get_plans(member_id or "")
        except CheckinError as e:
            logger.error(f"Error getting pricing plans: {e}")
            return e.to_result().to_dict()

        return {
            "success": True,
            "plans": [plan.to_dict() for plan in plans],
            "planCount": len(plans),
        }

    def list_plan_orders(self, member_id: Optional[str] = None) -> Dict[str, Any]:
        if self.resolver is None:
            return self._not_configured()

        try:
            orders = self.resolver.list_orders(member_id=member_id)
        except CheckinError as e:
            logger.error(f"Error listing orders: {e}")
            return e.to_result().to_dict()

        return {
            "success": True,
            "orders": [order.to_dict() for order in orders],
            "orderCount": len(orders),
        }

    # -------------------------------------------------------------------------
    # PIPELINE
    # -------------------------------------------------------------------------

    def process_latest_scan(self, include_plans: bool = False) -> Dict[str, Any]:
        """
        Read the newest scan and look its owner up on Wix.

        Args:
            include_plans: Also fetch plans and orders of the first candidate

        Returns:
            {"success", "scan", "match"} plus "plans"/"orders" when requested
            and a member was found
        """
        scan_envelope = self.get_latest_scan()
        if not scan_envelope["success"]:
            return scan_envelope

        scan = scan_envelope["scan"]
        match = self.find_member(scan["FirstName"], scan["LastName"], scan["DateOfBirth"])
        payload: Dict[str, Any] = {"success": match["success"], "scan": scan, "match": match}

        members = match.get("members") or []
        if include_plans and members and members[0].get("id"):
            member_id = members[0]["id"]
            payload["plans"] = self.get_plans(member_id)
            payload["orders"] = self.list_plan_orders(member_id)

        return payload

    # -------------------------------------------------------------------------
    # HELPERS
    # -------------------------------------------------------------------------

    def _not_configured(self) -> Dict[str, Any]:
        return ErrorResult(
            error=self.config_error or "Wix API not configured",
            kind="ConfigurationError",
        ).to_dict()

    def close(self):
        if self.client:
            self.client.close()
