"""
Endpoint tests for the parent views and notes
"""
from datetime import timedelta

import pytest

from unitrack.models import ApplicationStatus, ApplicationType, DecisionType, ParentNote
from unitrack.timeutils import utcnow


@pytest.fixture
def student(factory):
    return factory.student()


@pytest.fixture
def parent(factory, student):
    return factory.parent(student)


@pytest.fixture
def parent_headers(factory, parent):
    return factory.auth_headers(parent)


@pytest.fixture
def application(factory, student):
    university = factory.university(name="Harbor College", application_fee=70,
                                    tuition_in_state=12000, tuition_out_state=38000)
    return factory.application(student, university, deadline=utcnow() + timedelta(days=12))


class TestLinkedStudents:
    def test_lists_only_linked(self, client, factory, student, parent_headers):
        factory.student()
        response = client.get("/api/parent/students", headers=parent_headers)
        assert response.status_code == 200
        assert [s["id"] for s in response.json()["data"]] == [student.id]

    def test_students_cannot_use_parent_views(self, client, factory, student):
        response = client.get("/api/parent/students", headers=factory.auth_headers(student.user))
        assert response.status_code == 403


class TestParentDashboard:
    def test_dashboard(self, client, factory, student, parent_headers, application):
        other_university = factory.university(name="Summit University", application_fee=90)
        factory.application(
            student, other_university,
            application_type=ApplicationType.EARLY_DECISION,
            status=ApplicationStatus.DECIDED,
            decision_type=DecisionType.ACCEPTED,
            submitted_date=utcnow() - timedelta(days=30),
            decision_date=utcnow() - timedelta(days=1),
        )

        response = client.get(f"/api/parent/dashboard?student_id={student.id}", headers=parent_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["student"]["id"] == student.id
        assert data["stats"]["total_applications"] == 2
        assert data["stats"]["acceptances"] == 1
        assert data["financial_estimates"]["total_application_fees"] == 160
        assert data["financial_estimates"]["estimated_tuition_range"] == {"min": 12000, "max": 38000}
        assert [u["university_name"] for u in data["upcoming_deadlines"]] == ["Harbor College"]
        actions = {a["university_name"]: a["action"] for a in data["recent_activity"]}
        assert actions["Summit University"] == "decision_received"
        assert len(data["applications_overview"]) == 2

    def test_unlinked_student_is_forbidden(self, client, factory, parent_headers):
        stranger = factory.student()
        response = client.get(f"/api/parent/dashboard?student_id={stranger.id}", headers=parent_headers)
        assert response.status_code == 403
        assert response.json()["error"]["message"] == "Access denied to this student"

    def test_student_id_required(self, client, parent_headers):
        response = client.get("/api/parent/dashboard", headers=parent_headers)
        assert response.status_code == 422


class TestParentApplications:
    def test_view_application(self, client, parent_headers, application, student):
        response = client.get(f"/api/parent/applications/{application.id}", headers=parent_headers)
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["application"]["id"] == application.id
        assert data["application"]["student"]["id"] == student.id
        assert data["application"]["university"]["name"] == "Harbor College"
        assert data["parent_notes"] == []

    def test_add_note(self, client, parent_headers, application, parent, db):
        response = client.post(
            f"/api/parent/applications/{application.id}",
            json={"note": "  Remember the essay draft  "},
            headers=parent_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["note"] == "Remember the essay draft"

        note = db.query(ParentNote).one()
        assert note.parent_id == parent.id
        assert note.student_id == application.student_id

        detail = client.get(f"/api/parent/applications/{application.id}", headers=parent_headers).json()["data"]
        assert [n["note"] for n in detail["parent_notes"]] == ["Remember the essay draft"]

    @pytest.mark.parametrize("note,message", [
        ("   ", "Note content is required"),
        ("x" * 1001, "Note is too long (maximum 1000 characters)"),
    ])
    def test_invalid_note(self, client, parent_headers, application, note, message):
        response = client.post(f"/api/parent/applications/{application.id}", json={"note": note}, headers=parent_headers)
        assert response.status_code == 422
        assert message in response.json()["error"]["details"][0]["message"]

    def test_unlinked_parent_cannot_note(self, client, factory, application, db):
        stranger = factory.parent()
        response = client.post(
            f"/api/parent/applications/{application.id}",
            json={"note": "hello"},
            headers=factory.auth_headers(stranger),
        )
        assert response.status_code == 403
        assert db.query(ParentNote).count() == 0

    def test_parent_cannot_update_application(self, client, parent_headers, application):
        response = client.put(f"/api/applications/{application.id}", json={"status": "submitted"}, headers=parent_headers)
        assert response.status_code == 403

    def test_student_sees_no_parent_notes(self, client, factory, parent_headers, application, student):
        client.post(f"/api/parent/applications/{application.id}", json={"note": "private"}, headers=parent_headers)
        data = client.get(f"/api/applications/{application.id}", headers=factory.auth_headers(student.user)).json()["data"]
        assert data["parent_notes"] == []
