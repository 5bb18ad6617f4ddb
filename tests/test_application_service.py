"""
Tests for the application lifecycle service
"""
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from unitrack.errors import ConflictError, NotFoundError, ValidationError
from unitrack.models import (
    Application, ApplicationRequirement, ApplicationStatus, ApplicationType, DecisionType,
    ParentNote, RequirementStatus
)
from unitrack.services.application_service import ApplicationService
from unitrack.services.requirement_tracker import RequirementTracker
from unitrack.timeutils import as_utc

DEADLINES = {
    "early_action": "2025-09-01T00:00:00Z",
    "regular_decision": "2025-12-01T00:00:00Z",
}


@pytest.fixture
def service(db):
    return ApplicationService(db)


@pytest.fixture
def student(factory):
    return factory.student()


@pytest.fixture
def university(factory):
    return factory.university(deadlines=DEADLINES, templates=["transcript", "essay", "recommendation_letter"])


class TestCreate:
    def test_seeds_requirements_from_templates(self, service, student, university, db):
        application = service.create(student, university.id, ApplicationType.EARLY_ACTION, notes="dream school")

        assert application.status == ApplicationStatus.NOT_STARTED
        assert as_utc(application.deadline) == datetime(2025, 9, 1, tzinfo=timezone.utc)
        assert application.notes == "dream school"

        rows = RequirementTracker(db).list_for(application.id)
        assert [r.requirement_type for r in rows] == ["essay", "recommendation_letter", "transcript"]
        assert all(r.status == RequirementStatus.NOT_STARTED for r in rows)
        assert rows[0].notes == f"essay for {university.name}"

    def test_no_templates_means_no_requirements(self, service, student, factory, db):
        bare = factory.university(deadlines=DEADLINES)
        application = service.create(student, bare.id, ApplicationType.REGULAR_DECISION)
        assert RequirementTracker(db).list_for(application.id) == []

    def test_missing_track_deadline(self, service, student, university, db):
        with pytest.raises(ValidationError):
            service.create(student, university.id, ApplicationType.EARLY_DECISION)
        assert db.query(Application).count() == 0

    def test_unknown_university(self, service, student):
        with pytest.raises(ValidationError) as exc:
            service.create(student, 9999, ApplicationType.EARLY_ACTION)
        assert exc.value.message == "University not found"

    def test_one_application_per_track(self, service, student, university):
        service.create(student, university.id, ApplicationType.EARLY_ACTION)
        with pytest.raises(ConflictError):
            service.create(student, university.id, ApplicationType.EARLY_ACTION)
        # A different track for the same university is fine
        other = service.create(student, university.id, ApplicationType.REGULAR_DECISION)
        assert other.application_type == ApplicationType.REGULAR_DECISION

    def test_seeding_failure_rolls_back_the_application(self, db, student, university):
        tracker = RequirementTracker(db)
        service = ApplicationService(db, tracker=tracker)
        with patch.object(tracker, "seed_from_templates", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                service.create(student, university.id, ApplicationType.EARLY_ACTION)
        assert db.query(Application).count() == 0
        assert db.query(ApplicationRequirement).count() == 0


class TestUpdate:
    @pytest.fixture
    def application(self, service, student, university):
        return service.create(student, university.id, ApplicationType.EARLY_ACTION)

    def test_forward_status_change(self, service, application):
        updated = service.update(application, {"status": ApplicationStatus.IN_PROGRESS})
        assert updated.status == ApplicationStatus.IN_PROGRESS
        assert updated.submitted_date is None

    def test_backward_status_change_rejected(self, service, application):
        service.update(application, {"status": ApplicationStatus.SUBMITTED})
        with pytest.raises(ValidationError):
            service.update(application, {"status": ApplicationStatus.NOT_STARTED})

    def test_moving_to_submitted_stamps_date(self, service, application):
        now = datetime(2025, 8, 20, 9, 30, tzinfo=timezone.utc)
        updated = service.update(application, {"status": ApplicationStatus.SUBMITTED}, now=now)
        assert as_utc(updated.submitted_date) == now

    def test_explicit_submitted_date_wins(self, service, application):
        supplied = datetime(2025, 8, 1, tzinfo=timezone.utc)
        updated = service.update(application, {"status": ApplicationStatus.SUBMITTED, "submitted_date": supplied})
        assert as_utc(updated.submitted_date) == supplied

    def test_decision_requires_decided_status(self, service, application):
        with pytest.raises(ValidationError):
            service.update(application, {"decision_type": DecisionType.ACCEPTED})

    def test_record_decision(self, service, application):
        decided_on = datetime(2025, 12, 15, tzinfo=timezone.utc)
        updated = service.update(application, {
            "status": ApplicationStatus.DECIDED,
            "decision_type": DecisionType.ACCEPTED,
            "decision_date": decided_on,
        })
        assert updated.status == ApplicationStatus.DECIDED
        assert updated.decision_type == DecisionType.ACCEPTED
        assert as_utc(updated.decision_date) == decided_on
        # Jumping straight to decided still records a submission time
        assert updated.submitted_date is not None

    def test_notes_can_be_cleared(self, service, application):
        service.update(application, {"notes": "call counselor"})
        assert service.update(application, {"notes": None}).notes is None


class TestSubmitAndDelete:
    @pytest.fixture
    def application(self, service, student, university):
        return service.create(student, university.id, ApplicationType.EARLY_ACTION)

    def test_submit(self, service, application):
        now = datetime(2025, 8, 25, tzinfo=timezone.utc)
        submitted = service.submit(application, now=now)
        assert submitted.status == ApplicationStatus.SUBMITTED
        assert as_utc(submitted.submitted_date) == now

    def test_submit_twice_is_a_conflict(self, service, application):
        service.submit(application)
        with pytest.raises(ConflictError):
            service.submit(application)

    def test_delete_cascades(self, service, application, factory, db):
        parent = factory.parent()
        db.add(ParentNote(
            parent_id=parent.id,
            student_id=application.student_id,
            application_id=application.id,
            note="Proud of you",
        ))
        db.commit()
        application_id = application.id

        service.delete(application)

        assert db.query(Application).filter(Application.id == application_id).count() == 0
        assert db.query(ApplicationRequirement).filter(ApplicationRequirement.application_id == application_id).count() == 0
        assert db.query(ParentNote).filter(ParentNote.application_id == application_id).count() == 0

    def test_get_missing(self, service):
        with pytest.raises(NotFoundError) as exc:
            service.get(12345)
        assert exc.value.message == "Application not found"

    def test_list_for_student_ordered_by_deadline(self, service, student, university):
        regular = service.create(student, university.id, ApplicationType.REGULAR_DECISION)
        early = service.create(student, university.id, ApplicationType.EARLY_ACTION)
        assert [a.id for a in service.list_for_student(student.id)] == [early.id, regular.id]
