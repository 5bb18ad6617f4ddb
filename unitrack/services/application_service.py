"""
Application lifecycle: create, read, update, submit, delete.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from unitrack.errors import ConflictError, NotFoundError, ValidationError
from unitrack.models import (
    Application, ApplicationRequirement, ApplicationStatus, ApplicationType, DecisionType,
    ParentNote, Student, University, UniversityRequirement
)
from unitrack.services.deadlines import resolve_deadline
from unitrack.services.requirement_tracker import RequirementTracker
from unitrack.services.status_rules import ensure_can_submit, transition, validate_decision
from unitrack.timeutils import utcnow

logger = logging.getLogger(__name__)

DUPLICATE_MESSAGE = "Application for this university and type already exists"


class ApplicationService:
    def __init__(self, db: Session, tracker: Optional[RequirementTracker] = None):
        self.db = db
        self.tracker = tracker or RequirementTracker(db)

    def get(self, application_id: int) -> Application:
        application = self.db.query(Application).filter(Application.id == application_id).first()
        if not application:
            raise NotFoundError("Application")
        return application

    def list_for_student(self, student_id: int) -> List[Application]:
        return self.db.query(Application).filter(
            Application.student_id == student_id
        ).order_by(Application.deadline).all()

    def create(
        self,
        student: Student,
        university_id: int,
        application_type: ApplicationType,
        notes: Optional[str] = None,
    ) -> Application:
        """
        Create an application and seed its requirements from the university's
        templates in a single transaction.
        """
        application_type = ApplicationType(application_type)

        university = self.db.query(University).filter(University.id == university_id).first()
        if not university:
            raise ValidationError("University not found")

        deadline = resolve_deadline(university.deadlines, application_type)

        existing = self.db.query(Application).filter(
            Application.student_id == student.id,
            Application.university_id == university_id,
            Application.application_type == application_type,
        ).first()
        if existing:
            raise ConflictError(DUPLICATE_MESSAGE)

        templates = self.db.query(UniversityRequirement).filter(
            UniversityRequirement.university_id == university_id
        ).order_by(UniversityRequirement.requirement_type).all()

        try:
            application = Application(
                student_id=student.id,
                university_id=university_id,
                application_type=application_type,
                deadline=deadline,
                status=ApplicationStatus.NOT_STARTED,
                notes=notes or None,
            )
            self.db.add(application)
            self.db.flush()
            self.tracker.seed_from_templates(application, templates)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(DUPLICATE_MESSAGE)
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(application)
        logger.info(
            f"Created application {application.id} for student {student.id} "
            f"({university.name}, {application_type.value}) with {len(templates)} requirements"
        )
        return application

    def update(self, application: Application, changes: dict, now: Optional[datetime] = None) -> Application:
        """
        Apply an explicit update. Status may only move forward and a decision
        is only accepted on a decided application.
        """
        now = now or utcnow()
        new_status = application.status
        if changes.get("status") is not None:
            new_status = transition(application.status, ApplicationStatus(changes["status"]))

        decision_type = changes.get("decision_type")
        if decision_type is not None:
            decision_type = DecisionType(decision_type)
            validate_decision(new_status, decision_type)
            application.decision_type = decision_type

        if "submitted_date" in changes and changes["submitted_date"] is not None:
            application.submitted_date = changes["submitted_date"]
        elif new_status.is_submitted and application.submitted_date is None:
            application.submitted_date = now

        if "decision_date" in changes and changes["decision_date"] is not None:
            application.decision_date = changes["decision_date"]
        if "notes" in changes:
            application.notes = changes["notes"]

        application.status = new_status
        self.db.commit()
        self.db.refresh(application)
        return application

    def submit(self, application: Application, now: Optional[datetime] = None) -> Application:
        ensure_can_submit(application.status)
        application.status = transition(application.status, ApplicationStatus.SUBMITTED)
        application.submitted_date = now or utcnow()
        self.db.commit()
        self.db.refresh(application)
        logger.info(f"Application {application.id} submitted")
        return application

    def delete(self, application: Application) -> None:
        """Remove requirements and parent notes first, then the application"""
        application_id = application.id
        try:
            self.db.query(ApplicationRequirement).filter(
                ApplicationRequirement.application_id == application_id
            ).delete(synchronize_session=False)
            self.db.query(ParentNote).filter(
                ParentNote.application_id == application_id
            ).delete(synchronize_session=False)
            self.db.delete(application)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        logger.info(f"Deleted application {application_id}")
