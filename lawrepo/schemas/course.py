# lawrepo/schemas/course.py
from datetime import datetime

from pydantic import BaseModel


class CourseBase(BaseModel):
    name: str
    code: str
    semester: str
    year: int
    description: str | None = None


class CourseCreate(CourseBase):
    pass


class CourseUpdate(BaseModel):
    name: str | None = None
    description: str | None = None
    is_active: bool | None = None


class CoursePublic(CourseBase):
    id: str
    professor_id: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class EnrollmentRequest(BaseModel):
    student_id: str


class EnrollmentPublic(BaseModel):
    id: str
    course_id: str
    student_id: str
    status: str
    enrolled_at: datetime | None = None

    model_config = {"from_attributes": True}


class EnrolledStudent(BaseModel):
    id: str
    email: str
    name: str
    enrolled_at: datetime | None = None
    status: str
