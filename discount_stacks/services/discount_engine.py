"""HTTP client for the discount calculation engine.

The engine owns every discount and BOGO calculation. This module only
posts a simulation request to its test endpoint and hands back the
decoded result; HTTP errors keep their response attached so the error
body's ``error`` field can be shown to the merchant.
"""

import logging

import requests
from asgiref.sync import sync_to_async
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_ENGINE_URL = "http://localhost:3001"
DEFAULT_TIMEOUT = 30


def get_engine_url():
    return getattr(settings, "DISCOUNT_ENGINE_URL", DEFAULT_ENGINE_URL).rstrip("/")


def get_timeout():
    return getattr(settings, "DISCOUNT_ENGINE_TIMEOUT", DEFAULT_TIMEOUT)


def run_stack_test(stack_id, shop, simulation_request):
    """POST a simulation to ``/api/discounts/<stack_id>/test``.

    Raises:
        requests.HTTPError: engine answered with a non-2xx status.
        requests.RequestException: transport failure.
    """
    url = f"{get_engine_url()}/api/discounts/{stack_id}/test"
    response = requests.post(
        url,
        params={"shop": shop},
        json={"testData": simulation_request.as_payload()},
        timeout=get_timeout(),
    )
    response.raise_for_status()
    logger.info(
        "Discount engine test call succeeded (stack=%s, shop=%s)", stack_id, shop
    )
    return response.json()


def make_engine_tester(stack_id, shop):
    """Return an async ``on_test`` callable bound to one stack and shop."""
    call = sync_to_async(run_stack_test, thread_sensitive=False)

    async def on_test(simulation_request):
        return await call(stack_id, shop, simulation_request)

    return on_test
