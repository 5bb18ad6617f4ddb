from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
import logging
from unitrack.config import Settings, get_app_settings
from unitrack.database import get_db
from unitrack.errors import NotFoundError
from unitrack.models import ParentNote, Student, University, UserRole
from unitrack.responses import respond
from unitrack.routers.auth import get_guard
from unitrack.routers.applications import load_application
from unitrack.schemas.applications import ParentNoteCreate
from unitrack.serializers import serialize_application, serialize_note, serialize_notes, serialize_student
from unitrack.services.access_guard import AccessGuard, Action, Resource
from unitrack.services.dashboard import DashboardAggregator
from unitrack.services.requirement_tracker import RequirementTracker, summarize_progress

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/students")
async def list_linked_students(
    request: Request,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Students linked to the calling parent"""
    guard.require_role(UserRole.PARENT)
    student_ids = guard.linked_student_ids()
    students = []
    if student_ids:
        students = db.query(Student).filter(Student.id.in_(student_ids)).order_by(Student.name).all()
    return respond(request, [serialize_student(s) for s in students])


@router.get("/dashboard")
async def parent_dashboard(
    request: Request,
    student_id: int = Query(..., description="Linked student to summarise"),
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
):
    guard.require_role(UserRole.PARENT)
    guard.authorize(Resource.DASHBOARD, Action.READ, student_id)

    student = db.query(Student).filter(Student.id == student_id).first()
    if not student:
        raise NotFoundError("Student")

    aggregator = DashboardAggregator(
        db,
        upcoming_window_days=settings.UPCOMING_DEADLINE_WINDOW_DAYS,
        recent_window_days=settings.RECENT_ACTIVITY_WINDOW_DAYS,
    )
    return respond(request, aggregator.parent_dashboard(student, guard.principal.id))


@router.get("/applications/{application_id}")
async def get_student_application(
    request: Request,
    application_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """A linked student's application with this parent's notes on it"""
    guard.require_role(UserRole.PARENT)
    application = load_application(db, guard, application_id, Action.READ)

    university = db.query(University).filter(University.id == application.university_id).first()
    student = db.query(Student).filter(Student.id == application.student_id).first()
    requirements = RequirementTracker(db).list_for(application.id)
    notes = db.query(ParentNote).filter(
        ParentNote.application_id == application.id,
        ParentNote.parent_id == guard.principal.id,
    ).order_by(ParentNote.created_at.desc(), ParentNote.id.desc()).all()

    data = serialize_application(application, university=university, requirements=requirements)
    data["student"] = serialize_student(student) if student else None
    data["progress"] = summarize_progress(requirements)
    return respond(request, {"application": data, "parent_notes": serialize_notes(notes)})


@router.post("/applications/{application_id}", status_code=status.HTTP_201_CREATED)
async def add_note(
    request: Request,
    application_id: int,
    payload: ParentNoteCreate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Leave a note on a linked student's application"""
    guard.require_role(UserRole.PARENT)
    application = load_application(db, guard, application_id, Action.CREATE, Resource.PARENT_NOTE)

    note = ParentNote(
        parent_id=guard.principal.id,
        student_id=application.student_id,
        application_id=application.id,
        note=payload.note,
    )
    db.add(note)
    db.commit()
    db.refresh(note)
    logger.info(f"Parent {guard.principal.id} added note {note.id} to application {application.id}")
    return respond(request, serialize_note(note), status_code=status.HTTP_201_CREATED)
