from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import Optional
import logging
from unitrack.config import Settings, get_app_settings
from unitrack.database import get_db
from unitrack.models import ApplicationStatus, ApplicationType, DecisionType, Student, UserRole
from unitrack.responses import respond, respond_paginated
from unitrack.routers.auth import get_guard
from unitrack.schemas.students import StudentProfileUpdate
from unitrack.serializers import serialize_application, serialize_student
from unitrack.services.access_guard import AccessGuard, Action, Resource
from unitrack.services.application_filters import (
    DeadlineRange, SortBy, SortOrder, filter_applications, paginate, sort_applications
)
from unitrack.services.dashboard import DashboardAggregator
from unitrack.services.deadlines import days_until, deadline_urgency
from unitrack.services.requirement_tracker import summarize_progress
from unitrack.timeutils import utcnow

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/profile")
async def get_profile(request: Request, guard: AccessGuard = Depends(get_guard)):
    """Get the caller's academic profile"""
    student = guard.require_student()
    guard.authorize(Resource.STUDENT, Action.READ, student.id)
    return respond(request, serialize_student(student))


@router.put("/profile")
async def update_profile(
    request: Request,
    payload: StudentProfileUpdate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Update the caller's academic profile, creating it on first edit"""
    guard.require_role(UserRole.STUDENT)
    student = guard.own_student()
    if student is None:
        principal = guard.principal
        student = Student(
            user_id=principal.id,
            name=f"{principal.first_name} {principal.last_name}".strip(),
            email=principal.email,
            target_countries=[],
            intended_majors=[],
        )
        db.add(student)
        logger.info(f"Created student profile for user {principal.id}")
    else:
        guard.authorize(Resource.STUDENT, Action.UPDATE, student.id)

    update_data = payload.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if value is None and field in ("target_countries", "intended_majors"):
            value = []
        setattr(student, field, value)

    db.commit()
    db.refresh(student)
    return respond(request, serialize_student(student))


@router.get("/applications")
async def list_applications(
    request: Request,
    status: Optional[ApplicationStatus] = None,
    application_type: Optional[ApplicationType] = None,
    decision_type: Optional[DecisionType] = None,
    deadline_range: DeadlineRange = DeadlineRange.ALL,
    sort_by: SortBy = SortBy.DEADLINE,
    sort_order: SortOrder = SortOrder.ASC,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """List the caller's applications with filters, sorting and pagination"""
    student = guard.require_student()
    guard.authorize(Resource.APPLICATION, Action.READ, student.id)

    now = utcnow()
    context = DashboardAggregator(db).load(student.id)
    matching = filter_applications(
        context, now,
        status=status,
        application_type=application_type,
        decision_type=decision_type,
        deadline_range=deadline_range,
    )
    ordered = sort_applications(context, matching, sort_by, sort_order)
    page_items, total = paginate(ordered, page, limit)

    items = []
    for app in page_items:
        data = serialize_application(app, university=context.universities.get(app.university_id))
        data["progress"] = summarize_progress(context.requirements.get(app.id, []))
        data["days_until_deadline"] = days_until(app.deadline, now)
        data["urgency"] = deadline_urgency(app.deadline, app.status, now)
        items.append(data)
    return respond_paginated(request, items, page, limit, total)


@router.get("/dashboard")
async def student_dashboard(
    request: Request,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    """Summary statistics, upcoming deadlines and progress for the caller"""
    student = guard.require_student()
    guard.authorize(Resource.DASHBOARD, Action.READ, student.id)
    aggregator = DashboardAggregator(
        db,
        upcoming_window_days=settings.UPCOMING_DEADLINE_WINDOW_DAYS,
        recent_window_days=settings.RECENT_ACTIVITY_WINDOW_DAYS,
    )
    return respond(request, aggregator.student_dashboard(student))
