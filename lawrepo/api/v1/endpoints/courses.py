# lawrepo/api/v1/endpoints/courses.py
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
from lawrepo.schemas.assignment import AssignmentPublic
from lawrepo.schemas.course import (
    CourseCreate,
    CoursePublic,
    CourseUpdate,
    EnrolledStudent,
    EnrollmentPublic,
    EnrollmentRequest,
)
from lawrepo.services import assignment_service, course_service, user_service
from lawrepo.services.course_service import DuplicateCourseError

router = APIRouter(prefix="/courses", tags=["courses"])


def _get_course_or_404(db: Session, course_id: str):
    course = course_service.get_course(db, course_id)
    if not course:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return course


def _ensure_can_manage(course, user: User) -> None:
    if course.professor_id == user.id:
        return
    if has_permission(get_user_permissions(user), "courses:manage"):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Not allowed to manage this course",
    )


@router.post("", response_model=CoursePublic, status_code=status.HTTP_201_CREATED)
def create_course(
    obj_in: CourseCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("courses:create")),
):
    try:
        return course_service.create_course(db, professor=current_user, obj_in=obj_in)
    except DuplicateCourseError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.get("", response_model=List[CoursePublic])
def list_courses(
    professor_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    return course_service.list_courses(db, professor_id=professor_id, skip=skip, limit=limit)


@router.get("/{course_id}", response_model=CoursePublic)
def get_course(course_id: str, db: Session = Depends(get_db)):
    return _get_course_or_404(db, course_id)


@router.put("/{course_id}", response_model=CoursePublic)
def update_course(
    course_id: str,
    obj_in: CourseUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_course_or_404(db, course_id)
    _ensure_can_manage(course, current_user)
    return course_service.update_course(db, db_obj=course, obj_in=obj_in)


@router.post("/{course_id}/enroll", response_model=EnrollmentPublic)
def enroll_student(
    course_id: str,
    payload: EnrollmentRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_course_or_404(db, course_id)
    if payload.student_id != current_user.id:
        _ensure_can_manage(course, current_user)
    if not user_service.get_user(db, payload.student_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found")
    return course_service.enroll_student(db, course=course, student_id=payload.student_id)


@router.get("/{course_id}/students", response_model=List[EnrolledStudent])
def list_students(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_course_or_404(db, course_id)
    _ensure_can_manage(course, current_user)
    return course_service.list_enrolled_students(db, course_id=course.id)


@router.get("/{course_id}/assignments", response_model=List[AssignmentPublic])
def list_course_assignments(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    course = _get_course_or_404(db, course_id)
    can_manage = course.professor_id == current_user.id or has_permission(
        get_user_permissions(current_user), "courses:manage"
    )
    return assignment_service.list_assignments_for_course(
        db, course_id=course.id, published_only=not can_manage
    )
