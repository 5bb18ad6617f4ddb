"""
Request bodies for the student profile
"""
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


class StudentProfileUpdate(BaseModel):
    name: Optional[str] = None
    graduation_year: Optional[int] = Field(None, ge=2020, le=2030)
    gpa: Optional[float] = Field(None, ge=0, le=4)
    sat_score: Optional[int] = Field(None, ge=400, le=1600)
    act_score: Optional[int] = Field(None, ge=1, le=36)
    target_countries: Optional[List[str]] = None
    intended_majors: Optional[List[str]] = None

    @field_validator('name', mode='before')
    @classmethod
    def empty_str_to_none(cls, v):
        """Convert empty strings to None for optional string fields"""
        if isinstance(v, str) and v.strip() == '':
            return None
        return v

    @field_validator('target_countries', 'intended_majors')
    @classmethod
    def strip_entries(cls, v):
        if v is None:
            return v
        return [item.strip() for item in v if item and item.strip()]
