# lawrepo/services/assignment_service.py
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.assignment import Assignment, AssignmentSubmission
from lawrepo.models.user import User
from lawrepo.schemas.assignment import AssignmentCreate, GradeRequest


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def create_assignment(db: Session, *, obj_in: AssignmentCreate) -> Assignment:
    assignment = Assignment(**obj_in.model_dump())
    db.add(assignment)
    db.commit()
    db.refresh(assignment)
    return assignment


def get_assignment(db: Session, assignment_id: str) -> Optional[Assignment]:
    if not is_valid_uuid(assignment_id):
        return None
    return db.get(Assignment, assignment_id)


def list_assignments_for_course(
    db: Session,
    *,
    course_id: str,
    published_only: bool = False,
) -> List[Assignment]:
    query = db.query(Assignment).filter(Assignment.course_id == course_id)
    if published_only:
        query = query.filter(Assignment.is_published.is_(True))
    return query.order_by(Assignment.due_date.asc()).all()


def submit_assignment(
    db: Session,
    *,
    assignment: Assignment,
    student: User,
    content: str,
    now: datetime | None = None,
) -> AssignmentSubmission:
    """
    Create or replace the student's submission. A resubmission overwrites the
    content and timestamp and resets the status to submitted.
    """
    submitted_at = now or datetime.now(timezone.utc)
    is_late = submitted_at > _as_utc(assignment.due_date)

    submission = (
        db.query(AssignmentSubmission)
        .filter(
            AssignmentSubmission.assignment_id == assignment.id,
            AssignmentSubmission.student_id == student.id,
        )
        .first()
    )
    if submission is None:
        submission = AssignmentSubmission(assignment_id=assignment.id, student_id=student.id)

    submission.content = content
    submission.submitted_at = submitted_at
    submission.is_late = is_late
    submission.status = "submitted"
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission


def get_submission(db: Session, submission_id: str) -> Optional[AssignmentSubmission]:
    if not is_valid_uuid(submission_id):
        return None
    return db.get(AssignmentSubmission, submission_id)


def list_submissions(db: Session, *, assignment_id: str) -> List[AssignmentSubmission]:
    return (
        db.query(AssignmentSubmission)
        .filter(AssignmentSubmission.assignment_id == assignment_id)
        .order_by(AssignmentSubmission.submitted_at.asc())
        .all()
    )


def grade_submission(
    db: Session,
    *,
    submission: AssignmentSubmission,
    grader: User,
    obj_in: GradeRequest,
) -> AssignmentSubmission:
    submission.grade = obj_in.grade
    submission.feedback = obj_in.feedback
    submission.status = "graded"
    submission.graded_at = datetime.now(timezone.utc)
    submission.graded_by = grader.id
    db.add(submission)
    db.commit()
    db.refresh(submission)
    return submission
