from fastapi import APIRouter, Request
from unitrack.models import (
    ApplicationStatus, ApplicationSystem, ApplicationType, DecisionType, RequirementStatus, RequirementType
)
from unitrack.responses import respond

router = APIRouter()


@router.get("/enums")
async def list_enums(request: Request):
    """Status and decision display metadata, so clients never keep their own copy"""
    return respond(request, {
        "application_statuses": [
            {
                "value": s.value,
                "label": s.label,
                "badge_variant": s.badge_variant,
                "rank": s.rank,
                "is_submitted": s.is_submitted,
            }
            for s in ApplicationStatus
        ],
        "decision_types": [
            {"value": d.value, "label": d.label, "badge_variant": d.badge_variant}
            for d in DecisionType
        ],
        "application_types": [
            {"value": t.value, "deadline_key": t.deadline_key} for t in ApplicationType
        ],
        "requirement_statuses": [s.value for s in RequirementStatus],
        "requirement_types": [t.value for t in RequirementType],
        "application_systems": [s.value for s in ApplicationSystem],
    })
