"""Tests for pricing-plan subscriptions and orders."""

import pytest

from checkin.errors import InvalidArgumentError, TransportError
from checkin.plans import ORDERS_PATH, SUBSCRIPTIONS_PATH, PlanResolver, classify_status, extract_plan_list

from conftest import FakeClient


@pytest.mark.parametrize(
    "status, state",
    [
        ("ACTIVE", "active"),
        ("active", "active"),
        ("ENDED", "inactive"),
        ("CANCELED", "inactive"),
        ("CANCELLED", "inactive"),
        ("PAUSED", "inactive"),
        ("PENDING", "other"),
        ("", "other"),
        (None, "other"),
    ],
)
def test_classify_status(status, state):
    assert classify_status(status) == state


def test_extract_plan_list_tries_known_keys():
    assert extract_plan_list({"subscriptions": [{"id": "s"}]}) == [{"id": "s"}]
    assert extract_plan_list({"items": [{"id": "i"}, "junk"]}) == [{"id": "i"}]
    assert extract_plan_list({"unexpected": []}) == []


class TestGetPlans:
    @pytest.mark.parametrize("member_id", ["", "   ", None])
    def test_blank_member_id(self, member_id):
        client = FakeClient(lambda p, b: {})

        with pytest.raises(InvalidArgumentError, match="Member ID is required"):
            PlanResolver(client).get_plans(member_id)
        assert client.calls == []

    def test_request_shape(self):
        client = FakeClient(lambda p, b: {"memberSubscriptions": []})

        assert PlanResolver(client, page_limit=3).get_plans(" m-1 ") == []

        path, body = client.calls[0]
        assert path == SUBSCRIPTIONS_PATH
        assert body == {"filter": {"buyerInfo.memberId": "m-1"}, "paging": {"limit": 3}}

    def test_plan_fields(self):
        subscription = {
            "_id": "sub-1",
            "planName": "Gold",
            "status": "ACTIVE",
            "startDate": "2024-01-01",
            "endDate": "2025-01-01",
            "planId": "p-9",
            "autoRenew": True,
        }
        client = FakeClient(lambda p, b: {"memberSubscriptions": [subscription]})

        [plan] = PlanResolver(client).get_plans("m-1")

        assert plan.to_dict() == {
            "id": "sub-1",
            "planName": "Gold",
            "status": "ACTIVE",
            "state": "active",
            "validFrom": "2024-01-01",
            "expiresAt": "2025-01-01",
            "pricingPlanId": "p-9",
            "autoRenew": True,
        }

    def test_missing_name_and_status(self):
        client = FakeClient(lambda p, b: {"memberSubscriptions": [{"id": "sub-2"}]})

        [plan] = PlanResolver(client).get_plans("m-1")

        assert plan.name == "Unnamed Plan"
        assert plan.status == "Unknown"
        assert plan.state == "other"
        assert plan.auto_renew is None

    def test_transport_error_propagates(self):
        def responder(path, body):
            raise TransportError("Wix API error (403) calling path: forbidden", status=403)

        with pytest.raises(TransportError, match="forbidden"):
            PlanResolver(FakeClient(responder)).get_plans("m-1")


class TestListOrders:
    def test_defaults(self):
        client = FakeClient(lambda p, b: {})

        assert PlanResolver(client).list_orders() == []

        path, body = client.calls[0]
        assert path == ORDERS_PATH
        assert body == {
            "filter": {},
            "sort": {"fieldName": "createdDate", "direction": "DESC"},
            "paging": {"limit": 50, "offset": 0},
        }

    def test_member_filter_and_overrides(self):
        client = FakeClient(lambda p, b: {"orders": []})

        PlanResolver(client).list_orders(
            member_id="m-1",
            sort={"fieldName": "endDate", "direction": "ASC"},
            paging={"limit": 5, "offset": 10},
        )

        _, body = client.calls[0]
        assert body["filter"] == {"memberId": "m-1"}
        assert body["sort"] == {"fieldName": "endDate", "direction": "ASC"}
        assert body["paging"] == {"limit": 5, "offset": 10}

    def test_order_fields(self):
        orders = [
            {"_id": "o-1", "planName": "Gold", "status": "PAID", "createdDate": "2024-01-01", "endDate": "2025-01-01"},
            {"id": "o-2"},
        ]
        client = FakeClient(lambda p, b: {"orders": orders})

        first, second = PlanResolver(client).list_orders("m-1")

        assert first.to_dict() == {
            "_id": "o-1",
            "planName": "Gold",
            "status": "PAID",
            "createdDate": "2024-01-01",
            "endDate": "2025-01-01",
        }
        assert second.plan_name == "Unnamed Order"
        assert second.status == "Unknown"
