from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session
from unitrack.database import get_db
from unitrack.responses import respond
from unitrack.routers.auth import get_guard
from unitrack.routers.applications import load_application
from unitrack.schemas.applications import RequirementCreate, RequirementUpdate
from unitrack.serializers import serialize_requirement
from unitrack.services.access_guard import AccessGuard, Action, Resource
from unitrack.services.requirement_tracker import RequirementTracker

router = APIRouter()


@router.get("/{application_id}/requirements")
async def list_requirements(
    request: Request,
    application_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    application = load_application(db, guard, application_id, Action.READ, Resource.REQUIREMENT)
    requirements = RequirementTracker(db).list_for(application.id)
    return respond(request, [serialize_requirement(r) for r in requirements])


@router.post("/{application_id}/requirements", status_code=status.HTTP_201_CREATED)
async def add_requirement(
    request: Request,
    application_id: int,
    payload: RequirementCreate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    """Add a requirement; locked once the application is submitted"""
    guard.require_student()
    application = load_application(db, guard, application_id, Action.CREATE, Resource.REQUIREMENT)
    requirement = RequirementTracker(db).add(
        application,
        requirement_type=payload.requirement_type,
        status=payload.status,
        deadline=payload.deadline,
        notes=payload.notes,
    )
    return respond(request, serialize_requirement(requirement), status_code=status.HTTP_201_CREATED)


@router.put("/{application_id}/requirements/{requirement_id}")
async def update_requirement(
    request: Request,
    application_id: int,
    requirement_id: int,
    payload: RequirementUpdate,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    guard.require_student()
    application = load_application(db, guard, application_id, Action.UPDATE, Resource.REQUIREMENT)
    requirement = RequirementTracker(db).update(
        application, requirement_id, payload.model_dump(exclude_unset=True)
    )
    return respond(request, serialize_requirement(requirement))


@router.delete("/{application_id}/requirements/{requirement_id}")
async def delete_requirement(
    request: Request,
    application_id: int,
    requirement_id: int,
    guard: AccessGuard = Depends(get_guard),
    db: Session = Depends(get_db),
):
    guard.require_student()
    application = load_application(db, guard, application_id, Action.DELETE, Resource.REQUIREMENT)
    RequirementTracker(db).delete(application, requirement_id)
    return respond(request, {"message": "Requirement deleted successfully"})
