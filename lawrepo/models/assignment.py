# lawrepo/models/assignment.py
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.sql import func

from lawrepo.db.base_class import Base
from lawrepo.db.types import GUID, new_uuid


class Assignment(Base):
    __tablename__ = "assignments"

    id = Column(GUID, primary_key=True, default=new_uuid)
    course_id = Column(GUID, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    instructions = Column(Text, nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=False)
    max_points = Column(Integer, nullable=False, default=100)
    is_published = Column(Boolean, nullable=False, default=False)
    allow_late_submissions = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )


class AssignmentSubmission(Base):
    __tablename__ = "assignment_submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_assignment_submissions_student"),
        CheckConstraint(
            "status IN ('draft', 'submitted', 'graded', 'returned')",
            name="ck_assignment_submissions_status",
        ),
    )

    id = Column(GUID, primary_key=True, default=new_uuid)
    assignment_id = Column(
        GUID, ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    student_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    content = Column(Text, nullable=True)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    is_late = Column(Boolean, nullable=False, default=False)

    # draft / submitted / graded / returned
    status = Column(String(20), nullable=False, default="submitted")

    grade = Column(Numeric(5, 2), nullable=True)
    feedback = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    graded_by = Column(GUID, ForeignKey("users.id"), nullable=True)
