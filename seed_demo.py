"""
Script to load demo accounts and universities
Run: python seed_demo.py
"""
from unitrack.config import get_settings
from unitrack.database import Base, build_engine, build_session_factory
from unitrack.models import (
    ApplicationSystem, Student, StudentParentRelationship, University, UniversityRequirement, User, UserRole
)
from unitrack.routers.auth import get_password_hash

DEMO_PASSWORD = "password123"

UNIVERSITIES = [
    {
        "name": "Harvard University", "state": "Massachusetts", "city": "Cambridge",
        "us_news_ranking": 3, "acceptance_rate": 3.4, "application_system": ApplicationSystem.COMMON_APP,
        "tuition_in_state": 59076, "tuition_out_state": 59076, "application_fee": 85,
        "deadlines": {"early_action": "2025-09-01T00:00:00Z", "regular_decision": "2025-12-01T00:00:00Z"},
        "available_majors": ["Computer Science", "Economics", "Biology", "Psychology", "Mathematics"],
    },
    {
        "name": "Stanford University", "state": "California", "city": "Stanford",
        "us_news_ranking": 3, "acceptance_rate": 3.9, "application_system": ApplicationSystem.COMMON_APP,
        "tuition_in_state": 61731, "tuition_out_state": 61731, "application_fee": 90,
        "deadlines": {"early_action": "2025-09-15T00:00:00Z", "regular_decision": "2025-12-15T00:00:00Z"},
        "available_majors": ["Computer Science", "Engineering", "Business", "Medicine", "Law"],
    },
    {
        "name": "Massachusetts Institute of Technology (MIT)", "state": "Massachusetts", "city": "Cambridge",
        "us_news_ranking": 2, "acceptance_rate": 4.1, "application_system": ApplicationSystem.DIRECT,
        "tuition_in_state": 59750, "tuition_out_state": 59750, "application_fee": 85,
        "deadlines": {"early_action": "2025-09-30T00:00:00Z", "regular_decision": "2025-12-31T00:00:00Z"},
        "available_majors": ["Computer Science", "Engineering", "Mathematics", "Physics", "Economics"],
    },
    {
        "name": "Princeton University", "state": "New Jersey", "city": "Princeton",
        "us_news_ranking": 1, "acceptance_rate": 5.8, "application_system": ApplicationSystem.COMMON_APP,
        "tuition_in_state": 59710, "tuition_out_state": 59710, "application_fee": 75,
        "deadlines": {"early_decision": "2025-09-01T00:00:00Z", "regular_decision": "2025-11-01T00:00:00Z"},
        "available_majors": ["Computer Science", "Economics", "Politics", "Engineering", "Mathematics"],
    },
    {
        "name": "University of Michigan", "state": "Michigan", "city": "Ann Arbor",
        "us_news_ranking": 21, "acceptance_rate": 17.7, "application_system": ApplicationSystem.COMMON_APP,
        "tuition_in_state": 17228, "tuition_out_state": 57273, "application_fee": 75,
        "deadlines": {"early_action": "2025-11-01T00:00:00Z", "regular_decision": "2026-02-01T00:00:00Z"},
        "available_majors": ["Engineering", "Business", "Computer Science", "Psychology", "Economics"],
    },
    {
        "name": "New York University (NYU)", "state": "New York", "city": "New York",
        "us_news_ranking": 35, "acceptance_rate": 12.2, "application_system": ApplicationSystem.COMMON_APP,
        "tuition_in_state": 60438, "tuition_out_state": 60438, "application_fee": 80,
        "deadlines": {"early_decision": "2025-11-01T00:00:00Z", "regular_decision": "2026-01-05T00:00:00Z"},
        "available_majors": ["Business", "Film", "Computer Science", "Economics", "Psychology"],
    },
    {
        "name": "Arizona State University", "state": "Arizona", "city": "Tempe",
        "us_news_ranking": 105, "acceptance_rate": 88.0, "application_system": ApplicationSystem.DIRECT,
        "tuition_in_state": 12051, "tuition_out_state": 31251, "application_fee": 50,
        "deadlines": {"rolling_admission": "2026-05-01T00:00:00Z"},
        "available_majors": ["Business", "Engineering", "Journalism", "Computer Science", "Sustainability"],
    },
]

COMMON_REQUIREMENTS = [
    ("essay", True, "Personal statement or supplemental essays"),
    ("transcript", True, "Official high school transcript"),
    ("recommendation_letter", True, "Letters of recommendation from teachers/counselors"),
]


def requirement_templates(university_name: str):
    templates = list(COMMON_REQUIREMENTS)
    if any(tag in university_name for tag in ("MIT", "Stanford", "Caltech")):
        templates.append(("portfolio", False, "STEM research portfolio or projects"))
    if any(tag in university_name for tag in ("NYU", "USC")):
        templates.append(("interview", False, "Optional alumni interview"))
    return templates


def get_or_create_user(db, email: str, first_name: str, last_name: str, role: UserRole) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        print(f"User {email} already exists")
        return user
    user = User(
        email=email,
        password_hash=get_password_hash(DEMO_PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role,
    )
    db.add(user)
    db.flush()
    print(f"✓ Created {role.value} {email}")
    return user


def seed_demo():
    settings = get_settings()
    engine = build_engine(settings)
    Base.metadata.create_all(bind=engine)
    db = build_session_factory(engine)()
    try:
        student_user = get_or_create_user(db, "student@demo.com", "Sarah", "Johnson", UserRole.STUDENT)
        parent_user = get_or_create_user(db, "parent@demo.com", "Michael", "Johnson", UserRole.PARENT)

        student = db.query(Student).filter(Student.user_id == student_user.id).first()
        if not student:
            student = Student(
                user_id=student_user.id,
                name="Sarah Johnson",
                email=student_user.email,
                graduation_year=2025,
                gpa=3.85,
                sat_score=1450,
                act_score=32,
                target_countries=["United States"],
                intended_majors=["Computer Science", "Data Science", "Mathematics"],
            )
            db.add(student)
            db.flush()

        link = db.query(StudentParentRelationship).filter(
            StudentParentRelationship.student_id == student.id,
            StudentParentRelationship.parent_id == parent_user.id,
        ).first()
        if not link:
            db.add(StudentParentRelationship(student_id=student.id, parent_id=parent_user.id))

        created = 0
        for data in UNIVERSITIES:
            if db.query(University).filter(University.name == data["name"]).first():
                continue
            university = University(country="United States", **data)
            db.add(university)
            db.flush()
            for requirement_type, is_required, description in requirement_templates(university.name):
                db.add(UniversityRequirement(
                    university_id=university.id,
                    requirement_type=requirement_type,
                    is_required=is_required,
                    description=description,
                ))
            created += 1

        db.commit()
        print(f"✓ Demo data ready ({created} new universities)")
        print(f"  Student: student@demo.com / {DEMO_PASSWORD}")
        print(f"  Parent: parent@demo.com / {DEMO_PASSWORD}")
    except Exception as e:
        print(f"Error seeding demo data: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()


if __name__ == "__main__":
    seed_demo()
