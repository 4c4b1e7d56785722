"""
Pydantic schemas shared by the record store, the analytics engine and the
HTTP routes.

Python attributes are snake_case; JSON uses camelCase (createdAt,
studentId, totalStudents, averageCGPA, ...).
"""

import math
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RecordSchema(BaseModel):
    """Base for every record schema: camelCase aliases, ORM loading."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _cgpa_text(value):
    """Accept CGPA as text or number; store it as decimal text."""
    if isinstance(value, bool):
        raise ValueError("cgpa must be a decimal number")
    if isinstance(value, (int, float)):
        return str(value)
    return value


def _check_cgpa(value: str) -> str:
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        raise ValueError("cgpa must be a decimal number")
    if not math.isfinite(parsed):
        raise ValueError("cgpa must be a finite decimal number")
    return value.strip()


# Decimal text that parses to a finite float
CgpaText = Annotated[str, BeforeValidator(_cgpa_text), AfterValidator(_check_cgpa)]


# ── Inbound payloads ─────────────────────────────────────────

class StudentCreate(RecordSchema):
    """Payload for creating (or overwriting) a student."""
    id: str = Field(..., min_length=1, description="Student ID token, used as the record key")
    name: str
    email: str
    intake: str = Field(..., description="Semester/cohort key, e.g. 'Jun-25'")
    programme: str
    cgpa: CgpaText = Field(..., description="CGPA as decimal text, e.g. '3.50'")
    credits: Optional[int] = Field(None, ge=0, description="Credit load, defaults to 0")


class StudentUpdate(RecordSchema):
    """Partial update; the key and createdAt cannot be changed."""
    name: Optional[str] = None
    email: Optional[str] = None
    intake: Optional[str] = None
    programme: Optional[str] = None
    cgpa: Optional[CgpaText] = None
    credits: Optional[int] = Field(None, ge=0)


class SubjectCreate(RecordSchema):
    """Payload for creating a subject."""
    code: str
    name: str
    grade: Optional[str] = None
    status: str
    student_id: Optional[str] = None


# ── Outbound records ─────────────────────────────────────────

class Subject(RecordSchema):
    id: str
    code: str
    name: str
    grade: Optional[str] = None
    status: str
    student_id: Optional[str] = None


class Student(RecordSchema):
    id: str
    name: str
    email: str
    intake: str
    programme: str
    cgpa: str
    credits: int = 0
    created_at: datetime


class StudentWithSubjects(Student):
    """A student with its subjects joined at read time."""
    subjects: List[Subject] = Field(default_factory=list)


class DashboardMetrics(RecordSchema):
    total_students: int
    deans_list_count: int
    probation_count: int
    average_cgpa: float = Field(..., alias="averageCGPA")


class PerformanceData(RecordSchema):
    """Students segmented by academic standing."""
    deans_list_students: List[StudentWithSubjects]
    probation_students: List[StudentWithSubjects]
    good_standing_students: List[StudentWithSubjects]
