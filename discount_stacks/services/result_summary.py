"""Discount test result → human-readable breakdown.

The discount engine returns a camelCase result dict; this module maps it
onto a :class:`ResultSummary` that the admin UI renders line by line.
Nothing here recomputes a discount: every number shown comes straight
from the engine result.

Shape of a rendered summary::

    ResultSummary(
        order_lines=[SummaryLine("Items", "$100.00"), ...],
        savings_badge="20% Total Savings",
        applied_discounts=[AppliedDiscountRow(...), ...],
        banner=None,
    )
"""

import dataclasses
import enum
import logging

from ..enums import BadgeStatus, DiscountKind, Tone
from ..router import get_describer
from ..utils import format_currency, format_number, is_positive, to_decimal

logger = logging.getLogger(__name__)

CONDITION_SEPARATOR = " • "
NO_DISCOUNTS_MESSAGE = (
    "No discounts were applied. Check that the cart meets all discount conditions."
)


@dataclasses.dataclass(frozen=True)
class SummaryLine:
    label: str
    value: str
    tone: Tone = Tone.DEFAULT
    struck_value: str = None


@dataclasses.dataclass(frozen=True)
class Badge:
    label: str
    status: BadgeStatus


@dataclasses.dataclass(frozen=True)
class Banner:
    status: BadgeStatus
    message: str


@dataclasses.dataclass(frozen=True)
class AppliedDiscountRow:
    badge: Badge
    description: str
    applied_amount: str = None
    free_shipping_applied: bool = False
    conditions: str = None
    bogo_details: str = None


@dataclasses.dataclass(frozen=True)
class ResultSummary:
    order_lines: list
    savings_badge: str = None
    applied_discounts: list = dataclasses.field(default_factory=list)
    banner: Banner = None

    def line(self, label):
        """Return the order line with ``label``, or ``None``."""
        for line in self.order_lines:
            if line.label == label:
                return line
        return None

    def as_dict(self):
        return dataclasses.asdict(self, dict_factory=_json_dict)


def _json_dict(items):
    return {
        key: value.value if isinstance(value, enum.Enum) else value
        for key, value in items
    }


# ---------------------------------------------------------------------------
# BOGO quantity resolution
# ---------------------------------------------------------------------------

def resolve_bogo_quantities(discount):
    """Return ``(buy_quantity, get_quantity)`` for a buy-X-get-Y record.

    Precedence for the buy quantity:
    1. ``bogoDetails.buyQuantity``
    2. the record's scalar ``value``
    3. ``1``

    Precedence for the get quantity:
    1. ``bogoDetails.getQuantity``
    2. ``1``

    Missing, ``None`` and zero values all fall through to the next source.
    """
    details = discount.get("bogoDetails") or {}
    buy_quantity = details.get("buyQuantity") or discount.get("value") or 1
    get_quantity = details.get("getQuantity") or 1
    return buy_quantity, get_quantity


# ---------------------------------------------------------------------------
# Per-discount rendering
# ---------------------------------------------------------------------------

def kind_label(raw_type):
    """Badge text for a discount type: underscores become spaces."""
    return str(raw_type or DiscountKind.OTHER.value).replace("_", " ")


def describe_discount(discount):
    """Return the one-line description for an applied-discount record."""
    kind = DiscountKind.from_value(discount.get("type"))
    describer = get_describer(kind)
    if describer is None:
        raise LookupError(f"No describer registered for discount kind '{kind.value}'")
    return describer(discount)


def format_conditions(discount):
    """Join whichever of min amount, min quantity and priority are present."""
    conditions = discount.get("conditions") or {}
    parts = []
    if conditions.get("minimumAmount"):
        parts.append(f"Min: {format_currency(conditions['minimumAmount'])}")
    if conditions.get("minimumQuantity"):
        parts.append(f"Min Qty: {format_number(conditions['minimumQuantity'])}")
    if discount.get("priority") is not None:
        parts.append(f"Priority: {format_number(discount['priority'])}")
    if not parts:
        return None
    return CONDITION_SEPARATOR.join(parts)


def format_bogo_details(discount):
    details = discount.get("bogoDetails")
    if not details:
        return None
    parts = [
        f"Buy {format_number(details.get('buyQuantity'))} "
        f"Get {format_number(details.get('getQuantity'))}",
        f"Complete Sets: {format_number(details.get('completeSets'))}",
        f"Extra Free: {format_number(details.get('extraFreeItems'))}",
    ]
    if details.get("limitApplied"):
        parts.append("Limit Applied")
    return CONDITION_SEPARATOR.join(parts)


def render_discount(discount):
    kind = DiscountKind.from_value(discount.get("type"))
    status = BadgeStatus.SUCCESS if discount.get("isActive") else BadgeStatus.NEUTRAL

    applied_amount = None
    if is_positive(discount.get("appliedAmount")):
        applied_amount = f"-{format_currency(discount['appliedAmount'])}"

    bogo_details = None
    if kind is DiscountKind.BUY_X_GET_Y:
        bogo_details = format_bogo_details(discount)

    return AppliedDiscountRow(
        badge=Badge(label=kind_label(discount.get("type")), status=status),
        description=describe_discount(discount),
        applied_amount=applied_amount,
        free_shipping_applied=bool(discount.get("freeShipping")),
        conditions=format_conditions(discount),
        bogo_details=bogo_details,
    )


# ---------------------------------------------------------------------------
# Order summary
# ---------------------------------------------------------------------------

def _shipping_line(result):
    if result.get("freeShippingApplied"):
        return SummaryLine(
            "Shipping",
            "FREE",
            tone=Tone.SUCCESS,
            struck_value=format_currency(result.get("originalShippingCost")),
        )
    return SummaryLine("Shipping", format_currency(result.get("shippingCost")))


def _tax_label(result):
    rate = to_decimal(result.get("taxRate"), default=0) * 100
    return f"Tax ({rate:.2f}%)"


def render_order_lines(result):
    lines = [SummaryLine("Items", format_currency(result.get("originalPrice")))]

    if is_positive(result.get("productDiscountAmount")):
        lines.append(
            SummaryLine(
                "Product Discounts",
                f"-{format_currency(result['productDiscountAmount'])}",
                tone=Tone.SUCCESS,
            )
        )

    lines.append(_shipping_line(result))
    lines.append(SummaryLine("Subtotal", format_currency(result.get("subtotal"))))

    if is_positive(result.get("taxAmount")):
        lines.append(SummaryLine(_tax_label(result), format_currency(result["taxAmount"])))

    lines.append(SummaryLine("Total", format_currency(result.get("finalTotal"))))

    if is_positive(result.get("totalDiscountAmount")):
        savings = format_number(result.get("savingsPercentage", 0))
        lines.append(
            SummaryLine(
                "You saved",
                f"{format_currency(result['totalDiscountAmount'])} ({savings}%)",
                tone=Tone.SUCCESS,
            )
        )
    return lines


def render_summary(result):
    """Map an engine result onto a :class:`ResultSummary`.

    Returns ``None`` when there is no result yet.
    """
    if not result:
        return None

    applied = result.get("appliedDiscounts")
    rows = []
    banner = None
    if applied is not None and len(applied) == 0:
        banner = Banner(status=BadgeStatus.INFO, message=NO_DISCOUNTS_MESSAGE)
    elif applied:
        rows = [render_discount(discount) for discount in applied]

    # The badge sits in the applied-discounts header, so it needs rows.
    savings_badge = None
    if rows and is_positive(result.get("savingsPercentage")):
        savings_badge = f"{format_number(result['savingsPercentage'])}% Total Savings"

    logger.debug("Rendered test result with %d applied discount(s)", len(rows))
    return ResultSummary(
        order_lines=render_order_lines(result),
        savings_badge=savings_badge,
        applied_discounts=rows,
        banner=banner,
    )
