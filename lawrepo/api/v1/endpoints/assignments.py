# lawrepo/api/v1/endpoints/assignments.py
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from lawrepo.core.security import (
    get_current_user,
    get_user_permissions,
    has_permission,
    require_permission,
)
from lawrepo.db.session import get_db
from lawrepo.models.user import User
from lawrepo.schemas.assignment import (
    AssignmentCreate,
    AssignmentPublic,
    GradeRequest,
    SubmissionCreate,
    SubmissionPublic,
)
from lawrepo.services import assignment_service, course_service

router = APIRouter(prefix="/assignments", tags=["assignments"])


def _get_assignment_or_404(db: Session, assignment_id: str):
    assignment = assignment_service.get_assignment(db, assignment_id)
    if not assignment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Assignment not found")
    return assignment


def _ensure_teaches(db: Session, course_id: str, user: User) -> None:
    course = course_service.get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    if course.professor_id != user.id and not has_permission(
        get_user_permissions(user), "courses:manage"
    ):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not allowed to manage this course",
        )


@router.post("", response_model=AssignmentPublic, status_code=status.HTTP_201_CREATED)
def create_assignment(
    obj_in: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("assignments:create")),
):
    _ensure_teaches(db, obj_in.course_id, current_user)
    return assignment_service.create_assignment(db, obj_in=obj_in)


@router.get("/{assignment_id}", response_model=AssignmentPublic)
def get_assignment(
    assignment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return _get_assignment_or_404(db, assignment_id)


@router.post("/{assignment_id}/submit", response_model=SubmissionPublic)
def submit_assignment(
    assignment_id: str,
    payload: SubmissionCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("assignments:submit")),
):
    assignment = _get_assignment_or_404(db, assignment_id)
    if not assignment.is_published:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Assignment is not published")
    if not course_service.is_enrolled(db, course_id=assignment.course_id, student_id=current_user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enrolled in this course")
    return assignment_service.submit_assignment(
        db, assignment=assignment, student=current_user, content=payload.content
    )


@router.get("/{assignment_id}/submissions", response_model=List[SubmissionPublic])
def list_submissions(
    assignment_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("assignments:grade")),
):
    assignment = _get_assignment_or_404(db, assignment_id)
    _ensure_teaches(db, assignment.course_id, current_user)
    return assignment_service.list_submissions(db, assignment_id=assignment.id)


@router.post("/submissions/{submission_id}/grade", response_model=SubmissionPublic)
def grade_submission(
    submission_id: str,
    payload: GradeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("assignments:grade")),
):
    submission = assignment_service.get_submission(db, submission_id)
    if not submission:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Submission not found")
    assignment = _get_assignment_or_404(db, submission.assignment_id)
    _ensure_teaches(db, assignment.course_id, current_user)
    return assignment_service.grade_submission(
        db, submission=submission, grader=current_user, obj_in=payload
    )
