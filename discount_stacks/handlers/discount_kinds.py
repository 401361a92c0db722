import logging

from ..enums import DiscountKind
from ..router import register_describer
from ..services.result_summary import resolve_bogo_quantities
from ..utils import format_number, is_positive

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Describers, one per DiscountKind
# ---------------------------------------------------------------------------

def describe_percentage(discount):
    """``percentage`` → ``"15% off"``."""
    return f"{format_number(discount.get('value'))}% off"


def describe_fixed_amount(discount):
    """``fixed_amount`` → ``"$5 off"``.

    The engine's raw value is shown as-is rather than currency formatted.
    """
    return f"${format_number(discount.get('value'))} off"


def describe_free_shipping(discount):
    return "Free Shipping"


def describe_buy_x_get_y(discount):
    """``buy_x_get_y`` → ``"Buy 2 Get 1 Free (3 free items)"``.

    Quantities come from :func:`resolve_bogo_quantities`; the suffix is
    only added when the engine reports free items.
    """
    buy_quantity, get_quantity = resolve_bogo_quantities(discount)
    description = f"Buy {format_number(buy_quantity)} Get {format_number(get_quantity)} Free"
    free_items = discount.get("freeItems")
    if is_positive(free_items):
        description += f" ({format_number(free_items)} free items)"
    return description


def describe_other(discount):
    """Any type the engine adds later → ``"{value} discount"``."""
    logger.debug("Describing unrecognised discount type: %s", discount.get("type"))
    return f"{format_number(discount.get('value'))} discount"


# ---------------------------------------------------------------------------
# Describer registration: called when this module is imported via apps.ready()
# ---------------------------------------------------------------------------
register_describer(DiscountKind.PERCENTAGE, describe_percentage)
register_describer(DiscountKind.FIXED_AMOUNT, describe_fixed_amount)
register_describer(DiscountKind.FREE_SHIPPING, describe_free_shipping)
register_describer(DiscountKind.BUY_X_GET_Y, describe_buy_x_get_y)
register_describer(DiscountKind.OTHER, describe_other)
