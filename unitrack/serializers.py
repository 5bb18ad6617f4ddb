"""
Plain-dict views of ORM rows for API responses.
"""
from typing import Iterable, List, Optional

from unitrack.models import (
    Application, ApplicationRequirement, ParentNote, Student, University, UniversityRequirement, User
)
from unitrack.timeutils import isoformat_z


def _enum_value(value):
    return value.value if value is not None and hasattr(value, "value") else value


def serialize_user(user: User) -> dict:
    # Never include password_hash
    return {
        "id": user.id,
        "email": user.email,
        "first_name": user.first_name,
        "last_name": user.last_name,
        "role": _enum_value(user.role),
        "created_at": isoformat_z(user.created_at),
    }


def serialize_student(student: Student) -> dict:
    return {
        "id": student.id,
        "user_id": student.user_id,
        "name": student.name,
        "email": student.email,
        "graduation_year": student.graduation_year,
        "gpa": float(student.gpa) if student.gpa is not None else None,
        "sat_score": student.sat_score,
        "act_score": student.act_score,
        "target_countries": student.target_countries or [],
        "intended_majors": student.intended_majors or [],
    }


def serialize_university_summary(university: Optional[University]) -> Optional[dict]:
    if university is None:
        return None
    return {
        "id": university.id,
        "name": university.name,
        "country": university.country,
        "state": university.state,
        "city": university.city,
        "us_news_ranking": university.us_news_ranking,
        "acceptance_rate": university.acceptance_rate,
        "application_fee": university.application_fee,
    }


def serialize_university(university: University) -> dict:
    data = serialize_university_summary(university)
    data.update({
        "application_system": _enum_value(university.application_system),
        "tuition_in_state": university.tuition_in_state,
        "tuition_out_state": university.tuition_out_state,
        "deadlines": university.deadlines or {},
        "available_majors": university.available_majors or [],
    })
    return data


def serialize_university_requirement(template: UniversityRequirement) -> dict:
    return {
        "id": template.id,
        "university_id": template.university_id,
        "requirement_type": template.requirement_type,
        "is_required": bool(template.is_required),
        "description": template.description,
    }


def serialize_requirement(requirement: ApplicationRequirement) -> dict:
    return {
        "id": requirement.id,
        "application_id": requirement.application_id,
        "requirement_type": requirement.requirement_type,
        "status": _enum_value(requirement.status),
        "deadline": isoformat_z(requirement.deadline),
        "notes": requirement.notes,
        "created_at": isoformat_z(requirement.created_at),
        "updated_at": isoformat_z(requirement.updated_at),
    }


def serialize_application(
    application: Application,
    university: Optional[University] = None,
    requirements: Optional[Iterable[ApplicationRequirement]] = None,
) -> dict:
    data = {
        "id": application.id,
        "student_id": application.student_id,
        "university_id": application.university_id,
        "application_type": _enum_value(application.application_type),
        "deadline": isoformat_z(application.deadline),
        "status": _enum_value(application.status),
        "submitted_date": isoformat_z(application.submitted_date),
        "decision_date": isoformat_z(application.decision_date),
        "decision_type": _enum_value(application.decision_type),
        "notes": application.notes,
        "created_at": isoformat_z(application.created_at),
        "updated_at": isoformat_z(application.updated_at),
    }
    if university is not None:
        data["university"] = serialize_university_summary(university)
    if requirements is not None:
        data["requirements"] = [serialize_requirement(r) for r in requirements]
    return data


def serialize_note(note: ParentNote) -> dict:
    return {
        "id": note.id,
        "application_id": note.application_id,
        "note": note.note,
        "created_at": isoformat_z(note.created_at),
        "updated_at": isoformat_z(note.updated_at),
    }


def serialize_notes(notes: Iterable[ParentNote]) -> List[dict]:
    return [serialize_note(note) for note in notes]
