from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from unitrack.database import get_db
from unitrack.models import Application, ParentNote, University
from unitrack.responses import respond
from unitrack.routers.auth import get_guard
from unitrack.schemas.applications import ApplicationCreate, ApplicationUpdate
from unitrack.serializers import serialize_application, serialize_notes
from unitrack.services.access_guard import AccessGuard, Action, Resource
from unitrack.services.application_service import ApplicationService
from unitrack.services.requirement_tracker import RequirementTracker, summarize_progress

router = APIRouter()


def load_application(
    db: Session,
    guard: AccessGuard,
    application_id: int,
    action: Action,
    resource: Resource = Resource.APPLICATION,
) -> Application:
    """Fetch an application and check the caller may perform `action` on it"""
    application = ApplicationService(db).get(application_id)
    guard.authorize(resource, action, application.student_id)
    return application


def _with_university(db: Session, application: Application) -> dict:
    university = db.query(University).filter(University.id == application.university_id).first()
    return serialize_application(application, university=university)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_application(
    request: Request,
    payload: ApplicationCreate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Create an application; its requirements are seeded from the university templates"""
    student = guard.require_student()
    guard.authorize(Resource.APPLICATION, Action.CREATE, student.id)

    application = ApplicationService(db).create(
        student,
        university_id=payload.university_id,
        application_type=payload.application_type,
        notes=payload.notes,
    )
    university = db.query(University).filter(University.id == application.university_id).first()
    requirements = RequirementTracker(db).list_for(application.id)
    data = serialize_application(application, university=university, requirements=requirements)
    return respond(request, data, status_code=status.HTTP_201_CREATED)


@router.get("/{application_id}")
async def get_application(
    request: Request,
    application_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Get application details with university, requirements and progress"""
    application = load_application(db, guard, application_id, Action.READ)
    university = db.query(University).filter(University.id == application.university_id).first()
    requirements = RequirementTracker(db).list_for(application.id)

    parent_notes = []
    if guard.principal.is_parent:
        parent_notes = db.query(ParentNote).filter(
            ParentNote.application_id == application.id,
            ParentNote.parent_id == guard.principal.id,
        ).order_by(ParentNote.created_at.desc(), ParentNote.id.desc()).all()

    data = serialize_application(application, university=university, requirements=requirements)
    data["progress"] = summarize_progress(requirements)
    data["parent_notes"] = serialize_notes(parent_notes)
    return respond(request, data)


@router.put("/{application_id}")
async def update_application(
    request: Request,
    application_id: int,
    payload: ApplicationUpdate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Update status, dates, decision or notes (owning student only)"""
    guard.require_student()
    application = load_application(db, guard, application_id, Action.UPDATE)
    application = ApplicationService(db).update(application, payload.model_dump(exclude_unset=True))
    return respond(request, _with_university(db, application))


@router.post("/{application_id}")
async def submit_application(
    request: Request,
    application_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Submit an application"""
    guard.require_student()
    application = load_application(db, guard, application_id, Action.SUBMIT)
    application = ApplicationService(db).submit(application)
    return respond(request, _with_university(db, application))


@router.delete("/{application_id}")
async def delete_application(
    request: Request,
    application_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Delete an application together with its requirements and parent notes"""
    guard.require_student()
    application = load_application(db, guard, application_id, Action.DELETE)
    ApplicationService(db).delete(application)
    return respond(request, {"message": "Application deleted successfully"})
