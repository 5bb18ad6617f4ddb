"""
Deadline resolution and deadline arithmetic.

A university stores one deadline per admission track, keyed by the snake_case
track name. The resolved deadline is copied onto the application when it is
created and never re-derived afterwards.
"""
import math
from datetime import datetime, timedelta
from typing import Mapping, Optional, Union

from unitrack.errors import ValidationError
from unitrack.models import ApplicationStatus, ApplicationType
from unitrack.timeutils import as_utc, parse_iso_datetime

SECONDS_PER_DAY = 24 * 60 * 60


def deadline_key_for(application_type: Union[ApplicationType, str]) -> str:
    """Map a track label ("Early Decision") to its deadline key ("early_decision")"""
    try:
        return ApplicationType(application_type).deadline_key
    except ValueError:
        raise ValidationError(f"Unknown application type: {application_type}")


def resolve_deadline(deadlines: Optional[Mapping[str, str]], application_type: Union[ApplicationType, str]) -> datetime:
    """
    Resolve the concrete deadline for a track from a university deadline map.

    There is no fallback to another track: a missing key is a validation error.
    """
    if not deadlines or not isinstance(deadlines, Mapping):
        raise ValidationError("University deadline information not available")

    label = ApplicationType(application_type).value if isinstance(application_type, ApplicationType) else application_type
    raw = deadlines.get(deadline_key_for(application_type))
    if not raw:
        raise ValidationError(f"No {label} deadline found for this application type")

    try:
        return parse_iso_datetime(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {label} deadline for this university: {raw}")


def days_until(deadline: datetime, now: datetime) -> int:
    """Whole days until the deadline, rounded up (negative once it has passed)"""
    delta = as_utc(deadline) - as_utc(now)
    return math.ceil(delta.total_seconds() / SECONDS_PER_DAY)


def within_window(deadline: datetime, now: datetime, days: int) -> bool:
    deadline = as_utc(deadline)
    now = as_utc(now)
    return now <= deadline <= now + timedelta(days=days)


def deadline_urgency(deadline: datetime, status: ApplicationStatus, now: datetime) -> str:
    if ApplicationStatus(status).is_submitted:
        return "closed"

    remaining = days_until(deadline, now)
    if remaining < 0:
        return "overdue"
    if remaining <= 7:
        return "very_urgent"
    if remaining <= 30:
        return "urgent"
    return "normal"
