"""
Request bodies for application and requirement endpoints
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from unitrack.models import ApplicationStatus, ApplicationType, DecisionType, RequirementStatus, RequirementType
from unitrack.timeutils import as_utc


def _empty_to_none(value):
    if isinstance(value, str) and value.strip() == '':
        return None
    return value


class ApplicationCreate(BaseModel):
    university_id: int = Field(..., description="University to apply to")
    application_type: ApplicationType = Field(..., description="Admission track, e.g. 'Early Action'")
    notes: Optional[str] = None

    @field_validator('notes', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        return _empty_to_none(v)


class ApplicationUpdate(BaseModel):
    status: Optional[ApplicationStatus] = None
    submitted_date: Optional[datetime] = None
    decision_date: Optional[datetime] = None
    decision_type: Optional[DecisionType] = None
    notes: Optional[str] = None

    @field_validator('submitted_date', 'decision_date')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class RequirementCreate(BaseModel):
    requirement_type: RequirementType
    status: RequirementStatus = RequirementStatus.NOT_STARTED
    deadline: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator('deadline')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class RequirementUpdate(BaseModel):
    status: Optional[RequirementStatus] = None
    deadline: Optional[datetime] = None
    notes: Optional[str] = None

    @field_validator('deadline')
    @classmethod
    def to_utc(cls, v):
        return as_utc(v)


class ParentNoteCreate(BaseModel):
    note: str = Field(..., description="Free-text note, 1-1000 characters after trimming")

    @field_validator('note')
    @classmethod
    def trimmed_note(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Note content is required")
        if len(v) > 1000:
            raise ValueError("Note is too long (maximum 1000 characters)")
        return v
