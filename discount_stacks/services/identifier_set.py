"""Identifier set editing for product and collection selectors.

Merchants paste Shopify IDs into the discount rule forms as free text.
This module turns that text into an ordered, de-duplicated list and
reports every change to the owner of the list through a callback::

    editor = IdentifierSetEditor(current_ids, on_change=form.set_product_ids,
                                 id_type="Product ID")
    editor.submit_raw("123, 456\\n789")
"""

import logging
import re

logger = logging.getLogger(__name__)

# Any run of commas and/or whitespace (spaces, tabs, newlines).
SEPARATOR_PATTERN = re.compile(r"[,\s]+")


def parse_identifiers(text):
    """Split free-form text into trimmed, non-empty identifier tokens.

    Order is preserved and duplicates inside ``text`` are kept; callers
    merging into an existing set use :func:`merge_identifiers`.
    """
    if not text:
        return []
    return [token.strip() for token in SEPARATOR_PATTERN.split(text) if token.strip()]


def merge_identifiers(current, tokens):
    """Append ``tokens`` not already present to ``current``.

    Comparison is exact and case-sensitive. Existing entries keep their
    positions; new entries follow in their original relative order.
    """
    merged = list(current)
    seen = set(merged)
    for token in tokens:
        if token in seen:
            continue
        seen.add(token)
        merged.append(token)
    return merged


class IdentifierSetEditor:
    """Editor for a caller-owned, ordered set of identifiers.

    The editor never stores the set itself beyond the snapshot it was
    given; every mutation produces a new list passed to ``on_change``.
    The only state it owns is the raw-text entry buffer.
    """

    def __init__(self, value, on_change, id_type="ID"):
        self.value = list(value) if isinstance(value, (list, tuple)) else []
        self.on_change = on_change
        self.id_type = id_type
        self.raw_input = ""
        self.show_raw_input = False

    # ------------------------------------------------------------------
    # Raw entry buffer
    # ------------------------------------------------------------------

    def toggle_raw_input(self):
        self.show_raw_input = not self.show_raw_input

    def set_raw_input(self, text):
        self.raw_input = text or ""

    def cancel_raw_input(self):
        self.raw_input = ""
        self.show_raw_input = False

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def submit_raw(self, text=None):
        """Add every new identifier found in ``text`` (or the raw buffer).

        Returns the new list, or ``None`` when nothing was submitted.
        """
        if text is None:
            text = self.raw_input
        if not isinstance(text, str):
            text = str(text)
        if not text.strip():
            return None

        tokens = parse_identifiers(text)
        new_value = merge_identifiers(self.value, tokens)
        skipped = len(tokens) - (len(new_value) - len(self.value))
        if skipped:
            logger.debug("Skipped %d duplicate %s(s)", skipped, self.id_type)

        self.cancel_raw_input()
        return self._emit(new_value)

    def remove(self, identifier):
        """Remove ``identifier`` if present. Returns the new list or ``None``."""
        identifier = str(identifier)
        if identifier not in self.value:
            return None
        return self._emit([item for item in self.value if item != identifier])

    def clear(self):
        """Drop every identifier. Always notifies the caller."""
        return self._emit([])

    def _emit(self, new_value):
        self.value = new_value
        self.on_change(list(new_value))
        return new_value

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    @property
    def selected_label(self):
        return f"Selected {self.id_type}s ({len(self.value)})"

    def item_label(self, identifier):
        return f"{self.id_type}: {identifier}"
