"""Discount stack test simulations.

Validates the "Test Discount Stack" form, turns it into a normalized
:class:`SimulationRequest`, delegates the calculation to an external
``on_test`` coroutine (the discount engine) and tracks the outcome as an
immutable :class:`SimulationState`.
"""

import dataclasses
import decimal
import enum
import logging
import time

from datadog import statsd

from ..utils import to_decimal

logger = logging.getLogger(__name__)

FORM_FIELDS = (
    "cart_total",
    "item_quantity",
    "product_ids",
    "collection_ids",
    "customer_segment",
    "shipping_cost",
    "tax_rate",
)

CART_TOTAL_ERROR = "Cart total must be greater than 0"
NEGATIVE_QUANTITY_ERROR = "Quantity cannot be negative"
QUANTITY_FORMAT_ERROR = "Quantity must be a whole number"
QUANTITY_TOO_LARGE_ERROR = "Quantity is too large"
CART_TOTAL_TOO_LARGE_ERROR = "Cart total is too large"
GENERIC_FAILURE_MESSAGE = "Failed to run test. Please try again."

MAX_CART_TOTAL = decimal.Decimal("1e15")
MAX_QUANTITY = 1_000_000_000


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class InvalidInput(Exception):
    """Raised by client-side validation; carries one message per field."""

    def __init__(self, errors):
        super().__init__(", ".join(f"{k}: {v}" for k, v in errors.items()))
        self.errors = dict(errors)


class ComputeFailure(Exception):
    """Raised when the discount engine call rejects or raises."""

    def __init__(self, message, cause=None):
        super().__init__(message)
        self.message = message
        self.cause = cause


def resolve_error_message(exc):
    """Pick the message shown to the merchant for a failed engine call.

    Precedence:
    1. ``error`` field of a structured server response attached to the
       exception (``exc.response.data`` or ``exc.response.json()``).
    2. The exception's own message.
    3. :data:`GENERIC_FAILURE_MESSAGE`.
    """
    response = getattr(exc, "response", None)
    if response is not None:
        data = getattr(response, "data", None)
        if not isinstance(data, dict) and callable(getattr(response, "json", None)):
            try:
                data = response.json()
            except ValueError:
                data = None
        if isinstance(data, dict) and data.get("error"):
            return str(data["error"])
    message = str(exc)
    if message:
        return message
    return GENERIC_FAILURE_MESSAGE


# ---------------------------------------------------------------------------
# Validation and normalization
# ---------------------------------------------------------------------------

def _field(form, name):
    value = form.get(name)
    if value is None:
        return ""
    return str(value).strip()


def _parse_quantity(raw):
    """Parse an item quantity, truncating fractions toward zero.

    Returns ``None`` for unparsable input or a magnitude above
    :data:`MAX_QUANTITY`.
    """
    number = to_decimal(raw)
    if number is None or abs(number) > MAX_QUANTITY:
        return None
    return int(number)


def _split_ids(raw):
    if not raw:
        return ()
    return tuple(token.strip() for token in raw.split(",") if token.strip())


def validate_form(form):
    """Raise :class:`InvalidInput` when the form cannot be submitted."""
    errors = {}

    cart_total = to_decimal(_field(form, "cart_total"))
    if cart_total is None or cart_total <= 0:
        errors["cart_total"] = CART_TOTAL_ERROR
    elif cart_total > MAX_CART_TOTAL:
        errors["cart_total"] = CART_TOTAL_TOO_LARGE_ERROR

    raw_quantity = _field(form, "item_quantity")
    if raw_quantity:
        number = to_decimal(raw_quantity)
        quantity = _parse_quantity(raw_quantity)
        if number is None:
            errors["item_quantity"] = QUANTITY_FORMAT_ERROR
        elif quantity is None:
            errors["item_quantity"] = QUANTITY_TOO_LARGE_ERROR
        elif quantity < 0:
            errors["item_quantity"] = NEGATIVE_QUANTITY_ERROR

    if errors:
        raise InvalidInput(errors)


@dataclasses.dataclass(frozen=True)
class SimulationRequest:
    cart_total: decimal.Decimal
    item_quantity: int = 1
    product_ids: tuple = ()
    collection_ids: tuple = ()
    customer_segment: str = ""
    shipping_cost: decimal.Decimal = decimal.Decimal(0)
    tax_rate: decimal.Decimal = decimal.Decimal(0)

    def as_payload(self):
        """Return the JSON body expected by the discount engine."""
        return {
            "originalPrice": float(self.cart_total),
            "quantity": self.item_quantity,
            "productIds": list(self.product_ids),
            "collectionIds": list(self.collection_ids),
            "customerSegment": self.customer_segment,
            "shippingCost": float(self.shipping_cost),
            "taxRate": float(self.tax_rate),
        }


def build_request(form):
    """Validate ``form`` and build a normalized :class:`SimulationRequest`.

    The tax rate is entered as a percentage and stored as a fraction.
    """
    validate_form(form)

    raw_quantity = _field(form, "item_quantity")
    quantity = _parse_quantity(raw_quantity) if raw_quantity else 1
    tax_percent = to_decimal(_field(form, "tax_rate"), default=decimal.Decimal(0))

    return SimulationRequest(
        cart_total=to_decimal(_field(form, "cart_total")),
        item_quantity=quantity,
        product_ids=_split_ids(_field(form, "product_ids")),
        collection_ids=_split_ids(_field(form, "collection_ids")),
        customer_segment=_field(form, "customer_segment"),
        shipping_cost=to_decimal(
            _field(form, "shipping_cost"), default=decimal.Decimal(0)
        ),
        tax_rate=tax_percent / 100,
    )


# ---------------------------------------------------------------------------
# State machine
# ---------------------------------------------------------------------------

class Status(enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


def _empty_form():
    return {name: "" for name in FORM_FIELDS}


@dataclasses.dataclass(frozen=True)
class SimulationState:
    """Immutable snapshot of a test modal.

    Transitions never mutate; each returns a new state.
    """

    status: Status = Status.IDLE
    form: dict = dataclasses.field(default_factory=_empty_form)
    field_errors: dict = dataclasses.field(default_factory=dict)
    general_error: str = None
    result: dict = None

    @classmethod
    def initial(cls):
        return cls()

    @property
    def is_busy(self):
        return self.status is Status.LOADING

    def with_field(self, name, value):
        if name not in FORM_FIELDS:
            raise KeyError(name)
        form = dict(self.form)
        form[name] = "" if value is None else str(value)
        errors = {k: v for k, v in self.field_errors.items() if k != name}
        return dataclasses.replace(self, form=form, field_errors=errors)

    def with_field_errors(self, errors):
        # Replaces the whole error map, including any general error.
        return dataclasses.replace(self.dismiss_error(), field_errors=dict(errors))

    def start(self):
        return dataclasses.replace(
            self, status=Status.LOADING, field_errors={}, general_error=None
        )

    def succeed(self, result):
        return dataclasses.replace(self, status=Status.SUCCESS, result=result)

    def fail(self, message):
        return dataclasses.replace(self, status=Status.ERROR, general_error=message)

    def dismiss_error(self):
        status = Status.SUCCESS if self.result is not None else Status.IDLE
        return dataclasses.replace(self, status=status, general_error=None)


class SimulationSession:
    """Controller for one "Test Discount Stack" modal instance.

    ``on_test`` is an async callable receiving a :class:`SimulationRequest`
    and returning the engine's result dict.
    """

    def __init__(self, is_open, on_close, discount_stack_label, on_test):
        self.is_open = is_open
        self.on_close = on_close
        self.discount_stack_label = discount_stack_label or ""
        self.on_test = on_test
        self.state = SimulationState.initial()
        self.last_request = None
        self._generation = 0

    @property
    def title(self):
        return f"Test Discount Stack: {self.discount_stack_label}"

    @property
    def metric_tags(self):
        return [f"discount_stack:{self.discount_stack_label}"]

    def update_field(self, name, value):
        self.state = self.state.with_field(name, value)
        return self.state

    def dismiss_error(self):
        self.state = self.state.dismiss_error()
        return self.state

    async def submit(self):
        """Validate the form and run the simulation.

        Returns the resulting state. Never raises for validation or
        engine failures; both are recorded on the state.
        """
        if self.state.is_busy:
            logger.debug("Ignoring submit while a test is in flight")
            return self.state

        try:
            request = build_request(self.state.form)
        except InvalidInput as exc:
            statsd.increment("discount_stacks.test.invalid", tags=self.metric_tags)
            self.state = self.state.with_field_errors(exc.errors)
            return self.state

        generation = self._generation
        self.last_request = request
        self.state = self.state.start()
        statsd.increment("discount_stacks.test.submitted", tags=self.metric_tags)

        start = time.monotonic()
        try:
            result = await self.on_test(request)
        except Exception as exc:
            failure = ComputeFailure(resolve_error_message(exc), cause=exc)
            logger.exception(
                "Discount stack test failed (stack=%s)", self.discount_stack_label
            )
            outcome = "failed"
            new_state = self.state.fail(failure.message)
        except BaseException:
            # Cancelled or interrupted: leave LOADING so later submits run.
            if generation == self._generation:
                self.state = self.state.dismiss_error()
            raise
        else:
            logger.info(
                "Discount stack test completed (stack=%s)", self.discount_stack_label
            )
            outcome = "succeeded"
            new_state = self.state.succeed(result)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        statsd.increment(f"discount_stacks.test.{outcome}", tags=self.metric_tags)
        statsd.histogram(
            "discount_stacks.test.duration_ms",
            elapsed_ms,
            tags=self.metric_tags + [f"status:{outcome}"],
        )

        if generation != self._generation:
            # Closed while the call was in flight.
            logger.debug("Discarding test result for a closed modal")
            return self.state
        self.state = new_state
        return self.state

    def close(self):
        """Reset every piece of transient state and notify the owner."""
        self._generation += 1
        self.state = SimulationState.initial()
        self.last_request = None
        self.is_open = False
        if self.on_close is not None:
            self.on_close()
