# lawrepo/schemas/assignment.py
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class AssignmentBase(BaseModel):
    title: str
    description: str | None = None
    instructions: str | None = None
    due_date: datetime
    max_points: int = 100
    is_published: bool = False
    allow_late_submissions: bool = False


class AssignmentCreate(AssignmentBase):
    course_id: str


class AssignmentPublic(AssignmentBase):
    id: str
    course_id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class SubmissionCreate(BaseModel):
    content: str


class GradeRequest(BaseModel):
    grade: Decimal = Field(ge=0, le=999.99)
    feedback: str | None = None


class SubmissionPublic(BaseModel):
    id: str
    assignment_id: str
    student_id: str
    content: str | None = None
    submitted_at: datetime | None = None
    is_late: bool
    status: str
    grade: Decimal | None = None
    feedback: str | None = None
    graded_at: datetime | None = None
    graded_by: str | None = None

    model_config = {"from_attributes": True}
