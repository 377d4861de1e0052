# lawrepo/services/course_service.py
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from lawrepo.db.types import is_valid_uuid
from lawrepo.models.course import Course, CourseEnrollment
from lawrepo.models.user import User
from lawrepo.schemas.course import CourseCreate, CourseUpdate


class DuplicateCourseError(Exception):
    pass


def create_course(db: Session, *, professor: User, obj_in: CourseCreate) -> Course:
    course = Course(
        name=obj_in.name,
        code=obj_in.code,
        semester=obj_in.semester,
        year=obj_in.year,
        description=obj_in.description,
        professor_id=professor.id,
    )
    db.add(course)
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise DuplicateCourseError(
            f"Course {obj_in.code} already exists for {obj_in.semester} {obj_in.year}"
        ) from e
    db.refresh(course)
    return course


def get_course(db: Session, course_id: str) -> Optional[Course]:
    if not is_valid_uuid(course_id):
        return None
    return db.get(Course, course_id)


def list_courses(
    db: Session,
    *,
    professor_id: str | None = None,
    skip: int = 0,
    limit: int = 100,
) -> List[Course]:
    """
    Courses taught by `professor_id`, or every active course when omitted.
    """
    query = db.query(Course)
    if professor_id:
        query = query.filter(Course.professor_id == professor_id)
    else:
        query = query.filter(Course.is_active.is_(True))
    return (
        query.order_by(Course.year.desc(), Course.semester, Course.code)
        .offset(skip)
        .limit(limit)
        .all()
    )


def update_course(db: Session, *, db_obj: Course, obj_in: CourseUpdate) -> Course:
    update_data = obj_in.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        setattr(db_obj, field, value)
    db.add(db_obj)
    db.commit()
    db.refresh(db_obj)
    return db_obj


def enroll_student(db: Session, *, course: Course, student_id: str) -> CourseEnrollment:
    """
    Enrolling twice returns the existing enrollment untouched.
    """
    existing = (
        db.query(CourseEnrollment)
        .filter(
            CourseEnrollment.course_id == course.id,
            CourseEnrollment.student_id == student_id,
        )
        .first()
    )
    if existing is not None:
        return existing

    enrollment = CourseEnrollment(course_id=course.id, student_id=student_id)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        # lost a race with a concurrent enrollment
        db.rollback()
        return (
            db.query(CourseEnrollment)
            .filter(
                CourseEnrollment.course_id == course.id,
                CourseEnrollment.student_id == student_id,
            )
            .one()
        )
    db.refresh(enrollment)
    return enrollment


def list_enrolled_students(db: Session, *, course_id: str) -> List[dict]:
    rows = (
        db.query(User, CourseEnrollment)
        .join(CourseEnrollment, CourseEnrollment.student_id == User.id)
        .filter(CourseEnrollment.course_id == course_id)
        .order_by(User.name)
        .all()
    )
    return [
        {
            "id": user.id,
            "email": user.email,
            "name": user.name,
            "enrolled_at": enrollment.enrolled_at,
            "status": enrollment.status,
        }
        for user, enrollment in rows
    ]


def is_enrolled(db: Session, *, course_id: str, student_id: str) -> bool:
    return (
        db.query(CourseEnrollment)
        .filter(
            CourseEnrollment.course_id == course_id,
            CourseEnrollment.student_id == student_id,
            CourseEnrollment.status == "active",
        )
        .first()
        is not None
    )
