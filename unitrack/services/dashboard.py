"""
Dashboard aggregation.

All numbers are derived per request from raw rows; nothing is stored. Related
rows are fetched with one "id IN (...)" query per table and joined in memory,
so the query count does not grow with the number of applications.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.orm import Session

from unitrack.models import (
    Application, ApplicationRequirement, ApplicationStatus, DecisionType, ParentNote, Student, University
)
from unitrack.serializers import serialize_notes, serialize_student
from unitrack.services.deadlines import days_until, deadline_urgency, within_window
from unitrack.services.requirement_tracker import RequirementTracker, summarize_progress
from unitrack.timeutils import as_utc, isoformat_z, utcnow

logger = logging.getLogger(__name__)

UNKNOWN_UNIVERSITY = "Unknown"
SUBMITTED_OR_LATER = (ApplicationStatus.SUBMITTED, ApplicationStatus.UNDER_REVIEW, ApplicationStatus.DECIDED)


@dataclass
class DashboardContext:
    """Applications of one student with their universities and requirements"""
    applications: List[Application] = field(default_factory=list)
    universities: Dict[int, University] = field(default_factory=dict)
    requirements: Dict[int, List[ApplicationRequirement]] = field(default_factory=dict)

    def university_name(self, application: Application) -> str:
        university = self.universities.get(application.university_id)
        return university.name if university else UNKNOWN_UNIVERSITY


def compute_stats(applications: Iterable[Application]) -> dict:
    applications = list(applications)
    return {
        "total_applications": len(applications),
        "submitted": sum(1 for a in applications if a.status in SUBMITTED_OR_LATER),
        "in_progress": sum(1 for a in applications if a.status == ApplicationStatus.IN_PROGRESS),
        "decisions": sum(1 for a in applications if a.status == ApplicationStatus.DECIDED),
        # Decision counts ignore status on purpose: they count whatever was recorded
        "acceptances": sum(1 for a in applications if a.decision_type == DecisionType.ACCEPTED),
        "rejections": sum(1 for a in applications if a.decision_type == DecisionType.REJECTED),
        "waitlisted": sum(1 for a in applications if a.decision_type == DecisionType.WAITLISTED),
    }


def upcoming_deadlines(context: DashboardContext, now: datetime, window_days: int = 30) -> List[dict]:
    entries = [
        {
            "id": app.id,
            "university_name": context.university_name(app),
            "application_type": app.application_type.value,
            "deadline": isoformat_z(app.deadline),
            "status": app.status.value,
            "days_until_deadline": days_until(app.deadline, now),
            "urgency": deadline_urgency(app.deadline, app.status, now),
        }
        for app in context.applications
        if within_window(app.deadline, now, window_days) and app.status != ApplicationStatus.SUBMITTED
    ]
    return sorted(entries, key=lambda entry: entry["days_until_deadline"])


def recent_action(application: Application, now: datetime, window_days: int = 7) -> str:
    """submitted beats decision_received beats updated"""
    since = as_utc(now) - timedelta(days=window_days)
    if application.submitted_date and as_utc(application.submitted_date) >= since:
        return "submitted"
    if (
        application.status == ApplicationStatus.DECIDED
        and application.decision_date
        and as_utc(application.decision_date) >= since
    ):
        return "decision_received"
    return "updated"


def recent_activity(context: DashboardContext, now: datetime, window_days: int = 7) -> List[dict]:
    since = as_utc(now) - timedelta(days=window_days)
    recent = [
        app for app in context.applications
        if app.updated_at is not None and as_utc(app.updated_at) >= since
    ]
    recent.sort(key=lambda app: as_utc(app.updated_at), reverse=True)
    return [
        {
            "id": app.id,
            "university_name": context.university_name(app),
            "application_type": app.application_type.value,
            "status": app.status.value,
            "updated_at": isoformat_z(app.updated_at),
            "action": recent_action(app, now, window_days),
        }
        for app in recent
    ]


def _positive(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if value > 0 else None


def financial_estimates(context: DashboardContext) -> dict:
    total_fees = 0.0
    low_figures = []
    high_figures = []
    for app in context.applications:
        university = context.universities.get(app.university_id)
        if university is None:
            continue
        total_fees += float(university.application_fee or 0)

        in_state = _positive(university.tuition_in_state)
        out_state = _positive(university.tuition_out_state)
        high = out_state if out_state is not None else in_state
        if in_state is not None:
            low_figures.append(in_state)
        if high is not None:
            high_figures.append(high)

    return {
        "total_application_fees": total_fees,
        "estimated_tuition_range": {
            "min": min(low_figures) if low_figures else None,
            "max": max(high_figures) if high_figures else None,
        },
    }


def progress_overview(context: DashboardContext) -> dict:
    all_requirements = [r for rows in context.requirements.values() for r in rows]
    return summarize_progress(all_requirements)


def application_summary(context: DashboardContext, application: Application) -> dict:
    progress = summarize_progress(context.requirements.get(application.id, []))
    return {
        "id": application.id,
        "university_name": context.university_name(application),
        "application_type": application.application_type.value,
        "status": application.status.value,
        "status_label": application.status.label,
        "deadline": isoformat_z(application.deadline),
        "decision_type": application.decision_type.value if application.decision_type else None,
        "submitted_date": isoformat_z(application.submitted_date),
        "progress_percentage": progress["progress_percentage"],
    }


class DashboardAggregator:
    def __init__(self, db: Session, upcoming_window_days: int = 30, recent_window_days: int = 7):
        self.db = db
        self.upcoming_window_days = upcoming_window_days
        self.recent_window_days = recent_window_days
        self.tracker = RequirementTracker(db)

    def universities_by_id(self, university_ids: Sequence[int]) -> Dict[int, University]:
        ids = list(set(university_ids))
        if not ids:
            return {}
        rows = self.db.query(University).filter(University.id.in_(ids)).all()
        return {row.id: row for row in rows}

    def load(self, student_id: int) -> DashboardContext:
        applications = self.db.query(Application).filter(
            Application.student_id == student_id
        ).order_by(Application.deadline).all()
        if not applications:
            return DashboardContext()

        return DashboardContext(
            applications=applications,
            universities=self.universities_by_id([app.university_id for app in applications]),
            requirements=self.tracker.list_for_applications([app.id for app in applications]),
        )

    def student_dashboard(self, student: Student, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        context = self.load(student.id)
        recent = sorted(
            context.applications,
            key=lambda app: as_utc(app.updated_at or app.created_at or now),
            reverse=True,
        )[:5]
        return {
            "stats": compute_stats(context.applications),
            "upcoming_deadlines": upcoming_deadlines(context, now, self.upcoming_window_days),
            "recent_applications": [application_summary(context, app) for app in recent],
            "progress_overview": progress_overview(context),
            "financial_estimates": financial_estimates(context),
        }

    def parent_dashboard(self, student: Student, parent_id: int, now: Optional[datetime] = None) -> dict:
        now = now or utcnow()
        context = self.load(student.id)
        notes = self.db.query(ParentNote).filter(
            ParentNote.parent_id == parent_id,
            ParentNote.student_id == student.id,
        ).order_by(ParentNote.created_at.desc(), ParentNote.id.desc()).limit(5).all()

        return {
            "student": serialize_student(student),
            "stats": compute_stats(context.applications),
            "financial_estimates": financial_estimates(context),
            "upcoming_deadlines": upcoming_deadlines(context, now, self.upcoming_window_days),
            "recent_activity": recent_activity(context, now, self.recent_window_days),
            "parent_notes": serialize_notes(notes),
            "applications_overview": [application_summary(context, app) for app in context.applications],
        }
