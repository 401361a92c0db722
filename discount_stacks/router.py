import logging

logger = logging.getLogger(__name__)

# DiscountKind -> callable(discount_record) -> description string.
# Filled in by handlers/discount_kinds.py when the app loads; every
# member of DiscountKind is expected to have an entry.
_kind_describers = {}


def register_describer(kind, describer):
    """Register a describer callable for a discount kind."""
    _kind_describers[kind] = describer
    logger.debug("Registered describer for discount kind: %s", kind.value)


def get_describer(kind):
    """Return the describer callable for the given kind, or None."""
    return _kind_describers.get(kind)


def missing_kinds(kinds):
    """Return the kinds in ``kinds`` that have no registered describer."""
    return [kind for kind in kinds if kind not in _kind_describers]
