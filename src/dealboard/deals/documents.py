"""Pinned deal documents, found by naming convention.

Documents carry no type tag, so the deal page pins the usual deliverables
by looking for well-known substrings in their names. Matching is
case-insensitive and the first document that matches wins.
"""

from __future__ import annotations

from collections.abc import Sequence

from src.dealboard.deals.schemas import DocumentRead, PinnedDocuments

# Each slot lists alternatives; an alternative is a tuple of substrings
# that must all appear in the name.
PINNED_DOCUMENT_RULES: dict[str, list[tuple[str, ...]]] = {
    "valuation_excel": [("valuation", ".xlsx")],
    "valuation_ppt": [("valuation", ".ppt")],
    "cim_ppt": [("cim",), ("confidential information memorandum",)],
    "nda_pdf": [("nda",), ("non-disclosure",)],
}


def find_document(
    documents: Sequence[DocumentRead], *needles: str
) -> DocumentRead | None:
    """First document whose name contains every needle (case-insensitive)."""
    lowered = [n.lower() for n in needles]
    for document in documents:
        name = (document.name or "").lower()
        if all(n in name for n in lowered):
            return document
    return None


def pin_documents(documents: Sequence[DocumentRead]) -> PinnedDocuments:
    """Resolve every pinned slot against a deal's documents."""
    pinned: dict[str, DocumentRead | None] = {}
    for slot, alternatives in PINNED_DOCUMENT_RULES.items():
        match = None
        for needles in alternatives:
            match = find_document(documents, *needles)
            if match is not None:
                break
        pinned[slot] = match
    return PinnedDocuments(**pinned)
