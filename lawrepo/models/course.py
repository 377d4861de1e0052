# lawrepo/models/course.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, new_uuid

ENROLLMENT_STATUSES = ("active", "dropped", "completed")


class Course(Base):
    __tablename__ = "courses"
    __table_args__ = (UniqueConstraint("code", "semester", "year", name="uq_courses_code_term"),)

    id = Column(GUID, primary_key=True, default=new_uuid)
    name = Column(String(255), nullable=False)
    code = Column(String(20), nullable=False)
    semester = Column(String(20), nullable=False)
    year = Column(Integer, nullable=False)
    professor_id = Column(GUID, ForeignKey("users.id"), nullable=False, index=True)
    description = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class CourseEnrollment(Base):
    __tablename__ = "course_enrollments"
    __table_args__ = (
        UniqueConstraint("course_id", "student_id", name="uq_course_enrollments_course_student"),
        CheckConstraint(
            "status IN ('active', 'dropped', 'completed')",
            name="ck_course_enrollments_status",
        ),
    )

    id = Column(GUID, primary_key=True, default=new_uuid)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    enrolled_at = Column(DateTime(timezone=True), server_default=func.now())
    status = Column(String(20), nullable=False, default="active")
