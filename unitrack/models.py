from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey, JSON, Float, Enum as SQLEnum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from unitrack.database import Base
import enum


class UserRole(str, enum.Enum):
    STUDENT = "student"
    PARENT = "parent"


class ApplicationStatus(str, enum.Enum):
    """Application lifecycle, declared in lifecycle order"""
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    DECIDED = "decided"

    @property
    def rank(self) -> int:
        return list(ApplicationStatus).index(self)

    @property
    def label(self) -> str:
        return self.value.replace("_", " ").title()

    @property
    def badge_variant(self) -> str:
        return {
            ApplicationStatus.NOT_STARTED: "secondary",
            ApplicationStatus.IN_PROGRESS: "default",
            ApplicationStatus.SUBMITTED: "outline",
            ApplicationStatus.UNDER_REVIEW: "default",
            ApplicationStatus.DECIDED: "default",
        }[self]

    @property
    def is_submitted(self) -> bool:
        """True once the application has been handed to the university"""
        return self.rank >= ApplicationStatus.SUBMITTED.rank


class ApplicationType(str, enum.Enum):
    EARLY_DECISION = "Early Decision"
    EARLY_ACTION = "Early Action"
    REGULAR_DECISION = "Regular Decision"
    ROLLING_ADMISSION = "Rolling Admission"

    @property
    def deadline_key(self) -> str:
        return self.value.lower().replace(" ", "_")


class DecisionType(str, enum.Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WAITLISTED = "waitlisted"

    @property
    def label(self) -> str:
        return self.value.title()

    @property
    def badge_variant(self) -> str:
        return {
            DecisionType.ACCEPTED: "default",
            DecisionType.REJECTED: "destructive",
            DecisionType.WAITLISTED: "secondary",
        }[self]


class RequirementStatus(str, enum.Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RequirementType(str, enum.Enum):
    ESSAY = "essay"
    TRANSCRIPT = "transcript"
    RECOMMENDATION_LETTER = "recommendation_letter"
    TEST_SCORES = "test_scores"
    PORTFOLIO = "portfolio"
    INTERVIEW = "interview"
    APPLICATION_FEE = "application_fee"
    OTHER = "other"


class ApplicationSystem(str, enum.Enum):
    COMMON_APP = "Common App"
    COALITION = "Coalition"
    DIRECT = "Direct"


# Users table
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)  # Fixed at registration
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    student = relationship("Student", back_populates="user", uselist=False)


# Students table - academic profile, one per student user
class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, nullable=False)
    name = Column(String)
    email = Column(String)
    graduation_year = Column(Integer, nullable=True)
    gpa = Column(Float, nullable=True)
    sat_score = Column(Integer, nullable=True)
    act_score = Column(Integer, nullable=True)
    target_countries = Column(JSON, nullable=False, default=list)
    intended_majors = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="student")


# Parent access is granted only through these rows
class StudentParentRelationship(Base):
    __tablename__ = "student_parent_relationships"
    __table_args__ = (
        UniqueConstraint("student_id", "parent_id", name="uq_student_parent"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


# Universities table (reference data)
class University(Base):
    __tablename__ = "universities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    country = Column(String)
    state = Column(String, nullable=True)
    city = Column(String, nullable=True)
    us_news_ranking = Column(Integer, nullable=True)
    acceptance_rate = Column(Float, nullable=True)  # Percent, e.g. 3.4
    application_system = Column(SQLEnum(ApplicationSystem), nullable=True)
    tuition_in_state = Column(Float, nullable=True)
    tuition_out_state = Column(Float, nullable=True)
    application_fee = Column(Float, nullable=True)
    deadlines = Column(JSON, nullable=False, default=dict)  # {"early_action": "2025-09-01T00:00:00Z", ...}
    available_majors = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    requirement_templates = relationship("UniversityRequirement", back_populates="university")


# Requirement templates copied onto each new application
class UniversityRequirement(Base):
    __tablename__ = "university_requirements"

    id = Column(Integer, primary_key=True, index=True)
    university_id = Column(Integer, ForeignKey("universities.id"), nullable=False, index=True)
    requirement_type = Column(String(50), nullable=False)
    is_required = Column(Boolean, default=True)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    university = relationship("University", back_populates="requirement_templates")


# Applications table - one per (student, university, track)
class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        UniqueConstraint("student_id", "university_id", "application_type", name="uq_application_track"),
    )

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    university_id = Column(Integer, ForeignKey("universities.id"), nullable=False, index=True)
    application_type = Column(SQLEnum(ApplicationType), nullable=False)
    deadline = Column(DateTime(timezone=True), nullable=False)  # Snapshot of the university deadline at creation
    status = Column(SQLEnum(ApplicationStatus), nullable=False, default=ApplicationStatus.NOT_STARTED)
    submitted_date = Column(DateTime(timezone=True), nullable=True)
    decision_date = Column(DateTime(timezone=True), nullable=True)
    decision_type = Column(SQLEnum(DecisionType), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


class ApplicationRequirement(Base):
    __tablename__ = "application_requirements"
    __table_args__ = (
        UniqueConstraint("application_id", "requirement_type", name="uq_application_requirement_type"),
    )

    id = Column(Integer, primary_key=True, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    requirement_type = Column(String(50), nullable=False)
    status = Column(SQLEnum(RequirementStatus), nullable=False, default=RequirementStatus.NOT_STARTED)
    deadline = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# Parent notes are append-only
class ParentNote(Base):
    __tablename__ = "parent_notes"

    id = Column(Integer, primary_key=True, index=True)
    parent_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("students.id"), nullable=False, index=True)
    application_id = Column(Integer, ForeignKey("applications.id"), nullable=False, index=True)
    note = Column(String(1000), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
