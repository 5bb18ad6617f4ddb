from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import func
from sqlalchemy.orm import Session
from typing import Optional
from unitrack.database import get_db
from unitrack.errors import NotFoundError
from unitrack.models import ApplicationSystem, University, UniversityRequirement
from unitrack.responses import respond, respond_paginated
from unitrack.serializers import serialize_university, serialize_university_requirement

router = APIRouter()


def _get_university(db: Session, university_id: int) -> University:
    university = db.query(University).filter(University.id == university_id).first()
    if not university:
        raise NotFoundError("University")
    return university


@router.get("/search")
async def search_universities(
    request: Request,
    query: Optional[str] = None,
    country: Optional[str] = None,
    state: Optional[str] = None,
    application_system: Optional[ApplicationSystem] = None,
    min_ranking: Optional[int] = Query(None, ge=1),
    max_ranking: Optional[int] = Query(None, ge=1),
    max_tuition: Optional[float] = Query(None, ge=0),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    db: Session = Depends(get_db),
):
    """Search the university catalogue"""
    q = db.query(University)

    if query and query.strip():
        q = q.filter(University.name.ilike(f"%{query.strip()}%"))
    if country:
        q = q.filter(University.country.ilike(country.strip()))
    if state:
        q = q.filter(University.state.ilike(state.strip()))
    if application_system is not None:
        q = q.filter(University.application_system == application_system)
    if min_ranking is not None:
        q = q.filter(University.us_news_ranking >= min_ranking)
    if max_ranking is not None:
        q = q.filter(University.us_news_ranking <= max_ranking)
    if max_tuition is not None:
        # Out-of-state tuition is what most applicants pay
        tuition = func.coalesce(University.tuition_out_state, University.tuition_in_state)
        q = q.filter(tuition <= max_tuition)

    total = q.count()
    universities = q.order_by(
        University.us_news_ranking.is_(None),
        University.us_news_ranking,
        University.name,
    ).offset((page - 1) * limit).limit(limit).all()

    return respond_paginated(request, [serialize_university(u) for u in universities], page, limit, total)


@router.get("/{university_id}")
async def get_university(request: Request, university_id: int, db: Session = Depends(get_db)):
    """Get a specific university by ID"""
    return respond(request, serialize_university(_get_university(db, university_id)))


@router.get("/{university_id}/requirements")
async def get_university_requirements(request: Request, university_id: int, db: Session = Depends(get_db)):
    """Requirement templates new applications to this university start with"""
    university = _get_university(db, university_id)
    templates = db.query(UniversityRequirement).filter(
        UniversityRequirement.university_id == university.id
    ).order_by(UniversityRequirement.requirement_type).all()
    return respond(request, {
        "university": {"id": university.id, "name": university.name},
        "requirements": [serialize_university_requirement(t) for t in templates],
    })
