"""
Leave classification from request reasons.

Requests should carry an explicit ``category``. Keyword matching on the free
text reason is a best-effort fallback for untagged historical records and is
not authoritative.
"""

from typing import Dict, Tuple

from .models import MATERNITY, PATERNITY, LeaveRequest

BEREAVEMENT = "bereavement"
SICK = "sick"
MEDICAL = "medical"
FAMILY_EMERGENCY = "family_emergency"
EMERGENCY = "emergency"
OTHER = "other"

PARENTAL_CATEGORIES = (MATERNITY, PATERNITY)
COMPASSIONATE_CATEGORIES = (
    MATERNITY,
    PATERNITY,
    BEREAVEMENT,
    SICK,
    MEDICAL,
    FAMILY_EMERGENCY,
    EMERGENCY,
)
CATEGORIES = COMPASSIONATE_CATEGORIES + (OTHER,)

# Checked in order; the first family with a matching keyword wins.
# Parental families come first because they draw from a separate pool.
KEYWORD_FAMILIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    (MATERNITY, ("maternity",)),
    (PATERNITY, ("paternity",)),
    (BEREAVEMENT, ("bereavement", "death", "funeral")),
    (SICK, ("sick", "illness")),
    (MEDICAL, ("medical", "doctor", "hospital")),
    (FAMILY_EMERGENCY, ("family emergency", "family crisis")),
    (EMERGENCY, ("emergency", "personal crisis")),
)

EMERGENCY_REASONS = (
    "Medical Emergency",
    "Family Emergency",
    "Personal Crisis",
    "Other Emergency",
)

REASON_LABELS: Dict[str, str] = {
    "vacation": "Vacation",
    "sick": "Sick Leave",
    "personal": "Personal",
    "family": "Family Emergency",
    "medical": "Medical Appointment",
    "bereavement": "Bereavement",
    "maternity": "Maternity/Paternity",
    "study": "Study/Education",
    "religious": "Religious Holiday",
    "other": "Other",
}


def classify(reason: str) -> str:
    """Map a free-text reason to a leave category; unmatched text is ``other``."""
    if not reason:
        return OTHER

    text = reason.lower()
    for category, keywords in KEYWORD_FAMILIES:
        if any(keyword in text for keyword in keywords):
            return category

    # A bare "family" reason is the family-emergency option in the request form.
    if text.strip() == "family":
        return FAMILY_EMERGENCY
    return OTHER


def category_of(request: LeaveRequest) -> str:
    """Category for a request, preferring its explicit tag."""
    if request.category:
        return request.category
    return classify(request.reason)


def is_parental(category: str) -> bool:
    return category in PARENTAL_CATEGORIES


def is_compassionate(category: str) -> bool:
    """Categories that justify going over allocated leave."""
    return category in COMPASSIONATE_CATEGORIES


def is_emergency_reason(reason: str) -> bool:
    """Only the exact emergency reason values count, not any mention of one."""
    return reason in EMERGENCY_REASONS


def reason_label(value: str) -> str:
    return REASON_LABELS.get(value, value)
