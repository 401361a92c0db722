"""Tests for the identifier edit and stack test views."""

import pytest
import requests
from rest_framework.test import APIClient

SHOP_DOMAIN = "test-shop.myshopify.com"
IDENTIFIERS_URL = "/discount-stacks/identifiers/"
TEST_URL = "/discount-stacks/stacks/stack-42/test/"


def _engine_returning(result=None, error=None):
    """Build a replacement for make_engine_tester that records calls."""
    calls = []

    def factory(stack_id, shop):
        async def on_test(request):
            calls.append((stack_id, shop, request))
            if error is not None:
                raise error
            return result

        return on_test

    factory.calls = calls
    return factory


def _post_test(client, data, shop=SHOP_DOMAIN):
    url = TEST_URL if shop is None else f"{TEST_URL}?shop={shop}"
    return client.post(url, data, format="json")


class TestIdentifierSetView:
    def setup_method(self):
        self.client = APIClient()

    def test_add_batch(self):
        response = self.client.post(
            IDENTIFIERS_URL,
            {"identifiers": ["1"], "action": "add", "raw": "2, 1\n3", "id_type": "Product ID"},
            format="json",
        )
        assert response.status_code == 200
        assert response.json() == {
            "identifiers": ["1", "2", "3"],
            "changed": True,
            "label": "Selected Product IDs (3)",
        }

    def test_blank_batch_is_unchanged(self):
        response = self.client.post(
            IDENTIFIERS_URL,
            {"identifiers": ["1"], "action": "add", "raw": "  "},
            format="json",
        )
        assert response.json()["identifiers"] == ["1"]
        assert response.json()["changed"] is False

    def test_remove(self):
        response = self.client.post(
            IDENTIFIERS_URL,
            {"identifiers": ["1", "2", "3"], "action": "remove", "identifier": "2"},
            format="json",
        )
        assert response.json()["identifiers"] == ["1", "3"]

    def test_remove_missing_is_noop(self):
        response = self.client.post(
            IDENTIFIERS_URL,
            {"identifiers": ["1"], "action": "remove", "identifier": "9"},
            format="json",
        )
        assert response.json()["changed"] is False

    def test_clear(self):
        response = self.client.post(
            IDENTIFIERS_URL,
            {"identifiers": ["1", "2"], "action": "clear"},
            format="json",
        )
        assert response.json()["identifiers"] == []
        assert response.json()["changed"] is True

    def test_unknown_action_returns_400(self):
        response = self.client.post(
            IDENTIFIERS_URL, {"identifiers": [], "action": "sort"}, format="json"
        )
        assert response.status_code == 400

    def test_identifiers_must_be_list(self):
        response = self.client.post(
            IDENTIFIERS_URL, {"identifiers": "1,2", "action": "clear"}, format="json"
        )
        assert response.status_code == 400

    @pytest.mark.parametrize(
        "payload, name",
        [
            ({"action": "add", "raw": 123}, "raw"),
            ({"action": "add", "raw": ["1", "2"]}, "raw"),
            ({"action": "remove", "identifier": 1}, "identifier"),
            ({"action": "clear", "id_type": {"label": "Product"}}, "id_type"),
        ],
    )
    def test_non_string_fields_return_400(self, payload, name):
        response = self.client.post(
            IDENTIFIERS_URL, {"identifiers": ["1"], **payload}, format="json"
        )
        assert response.status_code == 400
        assert response.json() == {"error": f"{name} must be a string"}


class TestDiscountStackTestView:
    def setup_method(self):
        self.client = APIClient()

    def test_missing_shop_returns_400(self):
        response = _post_test(self.client, {"cart_total": "100"}, shop=None)
        assert response.status_code == 400
        assert "shop" in response.json()["error"]

    def test_invalid_form_never_reaches_engine(self, mocker):
        factory = _engine_returning(result={})
        mocker.patch("discount_stacks.views.make_engine_tester", factory)
        response = _post_test(self.client, {"cart_total": "0", "item_quantity": "-1"})
        assert response.status_code == 400
        assert response.json() == {
            "errors": {
                "cart_total": "Cart total must be greater than 0",
                "item_quantity": "Quantity cannot be negative",
            }
        }
        assert factory.calls == []

    def test_success_returns_request_result_and_summary(self, mocker, engine_result):
        factory = _engine_returning(result=engine_result)
        mocker.patch("discount_stacks.views.make_engine_tester", factory)
        response = _post_test(
            self.client,
            {"cart_total": 100, "product_ids": "p1, p2 ,p3", "stack_name": "Summer"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Test Discount Stack: Summer"
        assert body["request"]["quantity"] == 1
        assert body["request"]["productIds"] == ["p1", "p2", "p3"]
        assert body["result"] == engine_result
        assert body["summary"]["applied_discounts"][1]["description"] == (
            "Buy 2 Get 1 Free (3 free items)"
        )
        stack_id, shop, _ = factory.calls[0]
        assert (stack_id, shop) == ("stack-42", SHOP_DOMAIN)

    def test_id_lists_are_accepted(self, mocker, engine_result):
        factory = _engine_returning(result=engine_result)
        mocker.patch("discount_stacks.views.make_engine_tester", factory)
        response = _post_test(
            self.client, {"cart_total": "50", "collection_ids": ["c1", "c2"]}
        )
        assert response.json()["request"]["collectionIds"] == ["c1", "c2"]

    @pytest.mark.parametrize(
        "error, message",
        [
            (RuntimeError("Engine unavailable"), "Engine unavailable"),
            (RuntimeError(), "Failed to run test. Please try again."),
        ],
    )
    def test_engine_failure_returns_502(self, mocker, error, message):
        mocker.patch(
            "discount_stacks.views.make_engine_tester", _engine_returning(error=error)
        )
        response = _post_test(self.client, {"cart_total": "100"})
        assert response.status_code == 502
        assert response.json() == {"error": message}

    def test_engine_structured_error(self, mocker):
        engine_response = requests.Response()
        engine_response.status_code = 404
        engine_response._content = b'{"error": "Discount stack not found"}'
        error = requests.HTTPError("404 Client Error", response=engine_response)
        mocker.patch(
            "discount_stacks.views.make_engine_tester", _engine_returning(error=error)
        )
        response = _post_test(self.client, {"cart_total": "100"})
        assert response.status_code == 502
        assert response.json() == {"error": "Discount stack not found"}

    def test_empty_discount_list_returns_banner(self, mocker, engine_result):
        engine_result["appliedDiscounts"] = []
        mocker.patch(
            "discount_stacks.views.make_engine_tester",
            _engine_returning(result=engine_result),
        )
        response = _post_test(self.client, {"cart_total": "100"})
        summary = response.json()["summary"]
        assert summary["applied_discounts"] == []
        assert summary["banner"]["status"] == "info"
