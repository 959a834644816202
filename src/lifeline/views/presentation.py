"""Display helpers shared by the list pages: ages, badge colours, icons."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Union


PRIORITY_COLORS = {
    "critical": "emergency",
    "high": "warning",
    "medium": "info",
    "low": "success",
}

STATUS_COLORS = {
    "active": "emergency",
    "responded": "warning",
    "resolved": "success",
}

BLOOD_TYPE_COLORS = {
    "A+": "red-100",
    "A-": "red-200",
    "B+": "blue-100",
    "B-": "blue-200",
    "AB+": "purple-100",
    "AB-": "purple-200",
    "O+": "green-100",
    "O-": "yellow-100",
}

ALERT_ICONS = {
    "emergency_call": "phone",
    "medical_alert": "heart",
    "system_alert": "activity",
}

MUTED = "muted"


def _key(value: object) -> str:
    return str(getattr(value, "value", value) or "")


def priority_color(priority: object) -> str:
    return PRIORITY_COLORS.get(_key(priority), MUTED)


def status_color(status: object) -> str:
    return STATUS_COLORS.get(_key(status), MUTED)


def blood_type_color(blood_type: object) -> str:
    return BLOOD_TYPE_COLORS.get(_key(blood_type), MUTED)


def alert_icon(alert_type: object) -> Optional[str]:
    return ALERT_ICONS.get(_key(alert_type))


def calculate_age(date_of_birth: Union[date, str], today: Optional[date] = None) -> int:
    """Whole years since ``date_of_birth``; the birthday itself counts."""

    if isinstance(date_of_birth, str):
        date_of_birth = date.fromisoformat(date_of_birth)
    elif isinstance(date_of_birth, datetime):
        date_of_birth = date_of_birth.date()
    today = today or date.today()

    age = today.year - date_of_birth.year
    if (today.month, today.day) < (date_of_birth.month, date_of_birth.day):
        age -= 1
    return age
