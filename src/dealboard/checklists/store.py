"""Checklist sequence operations.

Pure functions over lists of ChecklistItem. They never mutate their input;
each returns the new full sequence, which callers persist wholesale. Both
the server service and the client store use them.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from src.dealboard.checklists.schemas import ChecklistItem, ChecklistOwnerKind

DEFAULT_MATCH_ITEMS: list[tuple[str, str]] = [
    ("nda_sent", "NDA sent"),
    ("nda_signed", "NDA signed"),
    ("cim_sent", "CIM sent"),
    ("cim_viewed", "CIM viewed"),
    ("intro_call", "Intro call held"),
    ("share_financials", "Shared financials"),
    ("receive_ioi", "Received IOI"),
]

DEFAULT_DEAL_STAGE_ITEMS: list[tuple[str, str]] = [
    ("fs1_received", "Financial statement 1 received"),
    ("fs2_received", "Financial statement 2 received"),
    ("fs3_received", "Financial statement 3 received"),
    ("docs_reviewed", "Docs reviewed"),
    ("valuation_made", "Valuation made"),
    ("listing_price_set", "Listing price set"),
]

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


class ChecklistItemNotFound(LookupError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Checklist item not found: {key}")


class DuplicateChecklistKey(ValueError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Checklist already has an item with key '{key}'")


class InvalidChecklistLabel(ValueError):
    pass


def default_items(owner_kind: ChecklistOwnerKind) -> list[ChecklistItem]:
    """Fresh, all-undone default sequence for an owner kind."""
    pairs = (
        DEFAULT_MATCH_ITEMS
        if ChecklistOwnerKind(owner_kind) is ChecklistOwnerKind.MATCH
        else DEFAULT_DEAL_STAGE_ITEMS
    )
    return [ChecklistItem(key=key, label=label) for key, label in pairs]


def derive_item_key(label: str) -> str:
    """Lower-case the label and collapse each non-alphanumeric run to ``_``.

    >>> derive_item_key("NDA Signed!")
    'nda_signed'
    """
    return _NON_ALNUM.sub("_", label.lower()).strip("_")


def validate_unique_keys(items: Sequence[ChecklistItem]) -> None:
    """Raise DuplicateChecklistKey on the first key that repeats."""
    seen: set[str] = set()
    for item in items:
        if item.key in seen:
            raise DuplicateChecklistKey(item.key)
        seen.add(item.key)


def toggle_item(items: Sequence[ChecklistItem], key: str) -> list[ChecklistItem]:
    """Flip ``done`` on the item with ``key``.

    Raises:
        ChecklistItemNotFound: If no item has that key.
    """
    if not any(item.key == key for item in items):
        raise ChecklistItemNotFound(key)
    return [
        item.model_copy(update={"done": not item.done}) if item.key == key else item
        for item in items
    ]


def append_item(items: Sequence[ChecklistItem], label: str) -> list[ChecklistItem]:
    """Append a not-done item whose key is derived from ``label``.

    Raises:
        InvalidChecklistLabel: If the label yields an empty key.
        DuplicateChecklistKey: If the derived key is already taken.
    """
    key = derive_item_key(label)
    if not key:
        raise InvalidChecklistLabel(f"Label {label!r} has no letters or digits")
    if any(item.key == key for item in items):
        raise DuplicateChecklistKey(key)
    return [*items, ChecklistItem(key=key, label=label.strip(), done=False)]
