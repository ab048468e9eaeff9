"""
plans.py - Membership Plans and Orders
=======================================
Fetches what a member has bought: their pricing-plan subscriptions and the
order history behind them. Nothing is cached, every call hits Wix.

The remote shape of a plan varies between sites and API versions, so every
field is read through a short list of candidate names and missing values fall
back to "Unnamed Plan" / "Unknown" rather than failing.
"""

import logging
from typing import Any, Dict, List, Optional

from .errors import InvalidArgumentError
from .http_client import HttpClient
from .models import UNKNOWN_STATUS, UNNAMED_ORDER, UNNAMED_PLAN, OrderRecord, PlanRecord
from .sources import first_present

logger = logging.getLogger(__name__)

SUBSCRIPTIONS_PATH = "/pricing-plans/v2/subscriptions/query"
ORDERS_PATH = "/pricing-plans/v2/orders/list"

# Where the plan list may sit in a subscriptions response
PLAN_LIST_KEYS = ("memberSubscriptions", "subscriptions", "orders", "items")

ACTIVE_STATUSES = {"ACTIVE"}
INACTIVE_STATUSES = {"ENDED", "CANCELED", "CANCELLED", "EXPIRED", "PAUSED", "INACTIVE"}


def classify_status(status: Optional[str]) -> str:
    """
    Map a remote status to 'active', 'inactive' or 'other'.

    Examples:
        classify_status("ACTIVE")   -> "active"
        classify_status("canceled") -> "inactive"
        classify_status("PENDING")  -> "other"
    """
    value = (status or "").strip().upper()
    if value in ACTIVE_STATUSES:
        return "active"
    if value in INACTIVE_STATUSES:
        return "inactive"
    return "other"


def _optional_text(value: Any) -> Optional[str]:
    """None for missing or empty values, otherwise the value as text."""
    return None if value in (None, "") else str(value)


def to_plan_record(plan: Dict[str, Any]) -> PlanRecord:
    """Map one remote subscription to a PlanRecord, with defaults for missing fields."""
    status = _optional_text(first_present(plan, ("status",))) or UNKNOWN_STATUS
    auto_renew = first_present(plan, ("autoRenew", "planDetails.autoRenew"))
    return PlanRecord(
        id=_optional_text(first_present(plan, ("_id", "id"))),
        name=_optional_text(first_present(plan, ("planName", "name", "planDetails.name"))) or UNNAMED_PLAN,
        status=status,
        state=classify_status(status),
        valid_from=_optional_text(first_present(plan, ("validFrom", "startDate", "currentCycle.startedDate"))),
        valid_until=_optional_text(first_present(plan, ("expiresAt", "endDate", "validUntil", "currentCycle.endedDate"))),
        plan_id=_optional_text(first_present(plan, ("pricingPlanId", "planId"))),
        auto_renew=auto_renew if isinstance(auto_renew, bool) else None,
    )


def to_order_record(order: Dict[str, Any]) -> OrderRecord:
    """Map one remote order to an OrderRecord."""
    return OrderRecord(
        id=_optional_text(first_present(order, ("_id", "id"))),
        plan_name=_optional_text(first_present(order, ("planName", "name"))) or UNNAMED_ORDER,
        status=_optional_text(first_present(order, ("status",))) or UNKNOWN_STATUS,
        created_date=_optional_text(first_present(order, ("createdDate", "_createdDate"))),
        end_date=_optional_text(first_present(order, ("endDate", "expiresAt"))),
    )


def extract_plan_list(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Find the plan list under whichever key this API version uses."""
    for key in PLAN_LIST_KEYS:
        value = data.get(key)
        if isinstance(value, list):
            return [item for item in value if isinstance(item, dict)]
    return []


class PlanResolver:
    """
    Reads pricing-plan subscriptions and orders for a member.

    Usage:
        resolver = PlanResolver(client)
        plans = resolver.get_plans("5d1c...")
        orders = resolver.list_orders(member_id="5d1c...")
    """

    def __init__(self, client: HttpClient, page_limit: int = 10):
        self.client = client
        self.page_limit = page_limit

    def get_plans(self, member_id: str) -> List[PlanRecord]:
        """
        Return the member's plan subscriptions.

        Raises:
            InvalidArgumentError: If member_id is empty
            TransportError: If the Wix call fails
        """
        member_id = (member_id or "").strip()
        if not member_id:
            raise InvalidArgumentError("Member ID is required")

        logger.info(f"Getting pricing plans for member: {member_id}")
        payload = {
            "filter": {"buyerInfo.memberId": member_id},
            "paging": {"limit": self.page_limit},
        }
        data = self.client.post_json(SUBSCRIPTIONS_PATH, payload)

        plans = [to_plan_record(plan) for plan in extract_plan_list(data)]
        logger.info(f"Found {len(plans)} plan(s) for member {member_id}")
        return plans

    def list_orders(
        self,
        member_id: Optional[str] = None,
        sort: Optional[Dict[str, str]] = None,
        paging: Optional[Dict[str, int]] = None,
    ) -> List[OrderRecord]:
        """
        List pricing-plan orders, newest first unless another sort is given.

        Args:
            member_id: Restrict to one buyer (all orders when omitted)
            sort: {"fieldName": "createdDate"|"endDate", "direction": "ASC"|"DESC"}
            paging: {"limit": n, "offset": n}

        Raises:
            TransportError: If the Wix call fails
        """
        member_id = (member_id or "").strip()
        payload = {
            "filter": {"memberId": member_id} if member_id else {},
            "sort": sort or {"fieldName": "createdDate", "direction": "DESC"},
            "paging": paging or {"limit": 50, "offset": 0},
        }
        logger.info(f"Listing pricing plan orders{' for member ' + member_id if member_id else ''}")
        data = self.client.post_json(ORDERS_PATH, payload)

        return [to_order_record(order) for order in data.get("orders") or [] if isinstance(order, dict)]
