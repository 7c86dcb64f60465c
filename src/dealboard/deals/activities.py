"""Quick-add activity templates for the deal timeline."""

from __future__ import annotations

from src.dealboard.deals.schemas import ActivityCreate, ActivityType

# key -> (type, title, status)
ACTIVITY_TEMPLATES: dict[str, tuple[ActivityType, str, str]] = {
    "email": (ActivityType.EMAIL, "Email drafted", "pending"),
    "meeting": (ActivityType.MEETING, "Meeting scheduled", "pending"),
    "request_docs": (ActivityType.TASK, "Requested documents", "pending"),
    "send_cim": (ActivityType.DOCUMENT, "CIM sent", "completed"),
    "send_nda": (ActivityType.DOCUMENT, "NDA sent", "completed"),
    "buyer_outreach": (ActivityType.TASK, "Buyer outreach logged", "pending"),
    "note": (ActivityType.SYSTEM, "Internal note added", "completed"),
}

_FALLBACK_TEMPLATE = (ActivityType.TASK, "Activity", "pending")


def activity_from_template(key: str, deal_id: str) -> ActivityCreate:
    """Build the timeline entry for a template key.

    Unknown keys produce a generic pending task rather than an error.
    """
    activity_type, title, status = ACTIVITY_TEMPLATES.get(key, _FALLBACK_TEMPLATE)
    return ActivityCreate(
        deal_id=deal_id,
        type=activity_type,
        title=title,
        status=status,
    )
