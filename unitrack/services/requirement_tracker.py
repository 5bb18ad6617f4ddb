"""
Per-application requirement tracking and progress.
"""
import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from unitrack.errors import AuthorizationError, ConflictError, NotFoundError
from unitrack.models import (
    Application, ApplicationRequirement, RequirementStatus, RequirementType, UniversityRequirement
)
from unitrack.services.status_rules import requirements_editable, status_after_requirement_change

logger = logging.getLogger(__name__)

LOCKED_MESSAGE = "Cannot update requirements for submitted applications"


def progress_percentage(completed: int, total: int) -> int:
    """round(100 * completed / total), halves rounded up; 0 when there is nothing to track"""
    if total <= 0:
        return 0
    return int(math.floor(100 * completed / total + 0.5))


def summarize_progress(requirements: Iterable[ApplicationRequirement]) -> dict:
    requirements = list(requirements)
    completed = sum(1 for r in requirements if r.status == RequirementStatus.COMPLETED)
    return {
        "total_requirements": len(requirements),
        "completed_requirements": completed,
        "progress_percentage": progress_percentage(completed, len(requirements)),
    }


class RequirementTracker:
    """Owns the ApplicationRequirement rows of applications"""

    def __init__(self, db: Session):
        self.db = db

    def seed_from_templates(self, application: Application, templates: Sequence[UniversityRequirement]) -> List[ApplicationRequirement]:
        """Copy university templates onto a new application; the caller owns the transaction"""
        rows = []
        seen = set()
        for template in templates:
            # One row per type, first template wins
            if template.requirement_type in seen:
                continue
            seen.add(template.requirement_type)
            rows.append(ApplicationRequirement(
                application_id=application.id,
                requirement_type=template.requirement_type,
                status=RequirementStatus.NOT_STARTED,
                notes=template.description or None,
            ))
        self.db.add_all(rows)
        return rows

    def list_for(self, application_id: int) -> List[ApplicationRequirement]:
        return self.db.query(ApplicationRequirement).filter(
            ApplicationRequirement.application_id == application_id
        ).order_by(ApplicationRequirement.requirement_type).all()

    def list_for_applications(self, application_ids: Sequence[int]) -> Dict[int, List[ApplicationRequirement]]:
        """Requirements for many applications in one query, grouped by application id"""
        grouped: Dict[int, List[ApplicationRequirement]] = defaultdict(list)
        if not application_ids:
            return grouped
        rows = self.db.query(ApplicationRequirement).filter(
            ApplicationRequirement.application_id.in_(list(application_ids))
        ).order_by(ApplicationRequirement.requirement_type).all()
        for row in rows:
            grouped[row.application_id].append(row)
        return grouped

    def get(self, application: Application, requirement_id: int) -> ApplicationRequirement:
        requirement = self.db.query(ApplicationRequirement).filter(
            ApplicationRequirement.id == requirement_id,
            ApplicationRequirement.application_id == application.id,
        ).first()
        if not requirement:
            raise NotFoundError("Requirement")
        return requirement

    def add(
        self,
        application: Application,
        requirement_type: RequirementType,
        status: RequirementStatus = RequirementStatus.NOT_STARTED,
        deadline: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> ApplicationRequirement:
        self._ensure_editable(application)
        requirement_type = RequirementType(requirement_type).value

        existing = self.db.query(ApplicationRequirement).filter(
            ApplicationRequirement.application_id == application.id,
            ApplicationRequirement.requirement_type == requirement_type,
        ).first()
        if existing:
            raise ConflictError("Requirement already exists for this type")

        requirement = ApplicationRequirement(
            application_id=application.id,
            requirement_type=requirement_type,
            status=RequirementStatus(status),
            deadline=deadline,
            notes=notes,
        )
        self.db.add(requirement)
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent insert of the same type
            self.db.rollback()
            raise ConflictError("Requirement already exists for this type")

        self._refresh_status(application)
        self.db.commit()
        self.db.refresh(requirement)
        logger.info(f"Added {requirement_type} requirement to application {application.id}")
        return requirement

    def update(self, application: Application, requirement_id: int, changes: dict) -> ApplicationRequirement:
        requirement = self.get(application, requirement_id)
        self._ensure_editable(application)

        if changes.get("status") is not None:
            requirement.status = RequirementStatus(changes["status"])
        for field in ("deadline", "notes"):
            if field in changes:
                setattr(requirement, field, changes[field])

        self.db.flush()
        self._refresh_status(application)
        self.db.commit()
        self.db.refresh(requirement)
        logger.info(f"Updated requirement {requirement.id} on application {application.id}")
        return requirement

    def delete(self, application: Application, requirement_id: int) -> None:
        requirement = self.get(application, requirement_id)
        self._ensure_editable(application)

        self.db.delete(requirement)
        self.db.flush()
        self._refresh_status(application)
        self.db.commit()
        logger.info(f"Deleted requirement {requirement_id} from application {application.id}")

    def _ensure_editable(self, application: Application) -> None:
        if not requirements_editable(application.status):
            raise AuthorizationError(LOCKED_MESSAGE)

    def _refresh_status(self, application: Application) -> None:
        statuses = [
            row[0] for row in self.db.query(ApplicationRequirement.status).filter(
                ApplicationRequirement.application_id == application.id
            ).all()
        ]
        new_status = status_after_requirement_change(application.status, statuses)
        if new_status != application.status:
            logger.info(f"Application {application.id} auto-advanced {application.status.value} -> {new_status.value}")
            application.status = new_status
