"""
Filtering, sorting and paging for a student's application list.
"""
import enum
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from unitrack.models import Application, ApplicationStatus, ApplicationType, DecisionType
from unitrack.services.dashboard import DashboardContext
from unitrack.services.deadlines import days_until
from unitrack.timeutils import as_utc


class DeadlineRange(str, enum.Enum):
    ALL = "all"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"
    OVERDUE = "overdue"


class SortBy(str, enum.Enum):
    DEADLINE = "deadline"
    UNIVERSITY_NAME = "university_name"
    STATUS = "status"
    CREATED_AT = "created_at"


class SortOrder(str, enum.Enum):
    ASC = "asc"
    DESC = "desc"


def matches_deadline_range(application: Application, deadline_range: DeadlineRange, now: datetime) -> bool:
    if deadline_range == DeadlineRange.ALL:
        return True
    remaining = days_until(application.deadline, now)
    if deadline_range == DeadlineRange.THIS_WEEK:
        return 0 <= remaining <= 7
    if deadline_range == DeadlineRange.THIS_MONTH:
        return 0 <= remaining <= 30
    # Overdue only matters while the application is still open
    return remaining < 0 and not application.status.is_submitted


def filter_applications(
    context: DashboardContext,
    now: datetime,
    status: Optional[ApplicationStatus] = None,
    application_type: Optional[ApplicationType] = None,
    decision_type: Optional[DecisionType] = None,
    deadline_range: DeadlineRange = DeadlineRange.ALL,
) -> List[Application]:
    result = []
    for app in context.applications:
        if status is not None and app.status != status:
            continue
        if application_type is not None and app.application_type != application_type:
            continue
        if decision_type is not None and app.decision_type != decision_type:
            continue
        if not matches_deadline_range(app, deadline_range, now):
            continue
        result.append(app)
    return result


def sort_applications(
    context: DashboardContext,
    applications: Sequence[Application],
    sort_by: SortBy = SortBy.DEADLINE,
    sort_order: SortOrder = SortOrder.ASC,
) -> List[Application]:
    if sort_by == SortBy.UNIVERSITY_NAME:
        key = lambda app: context.university_name(app).lower()
    elif sort_by == SortBy.STATUS:
        key = lambda app: app.status.rank
    elif sort_by == SortBy.CREATED_AT:
        key = lambda app: as_utc(app.created_at) if app.created_at else datetime.min.replace(tzinfo=timezone.utc)
    else:
        key = lambda app: as_utc(app.deadline)
    return sorted(applications, key=key, reverse=sort_order == SortOrder.DESC)


def paginate(items: Sequence, page: int, limit: int) -> Tuple[List, int]:
    start = (page - 1) * limit
    return list(items[start:start + limit]), len(items)
