"""Utility helpers for the discount stacks app."""

import decimal

CENT = decimal.Decimal("0.01")


def to_decimal(value, default=None):
    """Coerce a JSON number or numeric string to :class:`~decimal.Decimal`.

    Returns ``default`` for ``None``, blank strings, booleans and anything
    that does not parse as a finite number.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = decimal.Decimal(str(value).strip())
    except decimal.InvalidOperation:
        return default
    if not number.is_finite():
        return default
    return number


def format_currency(amount):
    """Format an amount as US dollars the way the admin UI displays money.

    Examples::

        >>> format_currency(1234.5)
        '$1,234.50'
        >>> format_currency("-5")
        '-$5.00'
        >>> format_currency(None)
        '$0.00'
    """
    number = to_decimal(amount, default=decimal.Decimal(0))
    with decimal.localcontext() as context:
        # quantize needs one digit of precision per integer digit plus cents.
        context.prec = max(context.prec, number.adjusted() + 3)
        number = number.quantize(CENT, rounding=decimal.ROUND_HALF_UP)
    sign = "-" if number < 0 else ""
    return f"{sign}${abs(number):,.2f}"


def format_number(value):
    """Render a JSON number without a trailing ``.0`` for whole values."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, decimal.Decimal) and value == value.to_integral_value():
        return str(int(value))
    return str(value)


def is_positive(value):
    """Return ``True`` when ``value`` is a number strictly greater than zero."""
    number = to_decimal(value)
    return number is not None and number > 0
