import pytest


@pytest.fixture(autouse=True)
def statsd(mocker):
    """Keep metrics off the network; tests can assert on the mock."""
    return mocker.patch("discount_stacks.services.simulation.statsd")


@pytest.fixture
def engine_result():
    """A populated engine result with one percentage and one BOGO discount."""
    return {
        "originalPrice": 100,
        "productDiscountAmount": 20,
        "shippingCost": 0,
        "originalShippingCost": 10,
        "freeShippingApplied": True,
        "subtotal": 80,
        "taxAmount": 6.6,
        "taxRate": 0.0825,
        "finalTotal": 86.6,
        "totalDiscountAmount": 30,
        "savingsPercentage": 27.27,
        "appliedDiscounts": [
            {
                "type": "percentage",
                "value": 10,
                "appliedAmount": 10,
                "isActive": True,
                "conditions": {"minimumAmount": 50, "minimumQuantity": 2},
                "priority": 1,
            },
            {
                "type": "buy_x_get_y",
                "value": 2,
                "appliedAmount": 10,
                "isActive": True,
                "freeItems": 3,
                "priority": 2,
                "bogoDetails": {
                    "buyQuantity": 2,
                    "getQuantity": 1,
                    "completeSets": 3,
                    "extraFreeItems": 0,
                    "limitApplied": True,
                },
            },
        ],
    }
