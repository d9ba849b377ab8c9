"""
Grade Ingestion Service - applies grade batches to one course.

Pipeline for each row, in file order:
1. Build a validated GradeRow from the raw record
2. Resolve the student by numeric id, or by email when no id is given,
   and check the student is enrolled in the course
3. Classify the grade token (letter + numeric score)
4. Upsert the (student, course) grade
5. Reconcile resit registration: a student whose new letter is no longer
   resit-eligible is removed from the course's resit exam

Each row is committed on its own. A failing row is rolled back, recorded
in the batch errors and the loop moves on; the batch itself never fails
because of a single row.
"""

import time
from typing import Iterable, NamedTuple, Optional

from resit_portal.errors import PortalError, NotFoundError, RejectedError, ValidationError
from resit_portal.logging_config import get_logger, log_with_context
from resit_portal.models import Course, Role, User
from resit_portal.repository import ResitRepository
from resit_portal.services.grading import classify_grade, is_resit_eligible
from resit_portal.services.records import BatchResult, GradeRow

logger = get_logger("grading")


class GradeOutcome(NamedTuple):
    student_id: int
    course_id: int
    score: Optional[float]
    letter: str
    created: bool
    registration_removed: bool


def resolve_student(repo: ResitRepository, row: GradeRow) -> User:
    """Find the student a grade row refers to."""
    if row.student_id is not None:
        user = repo.get_user(row.student_id)
    else:
        matches = repo.users_by_email(row.email)
        user = matches[0] if len(matches) == 1 else None

    if user is None or user.role != Role.STUDENT:
        raise NotFoundError("no user with identifier {}".format(row.identifier))
    return user


def ensure_enrolled(repo: ResitRepository, student: User, course: Course):
    """Only students enrolled in a course may receive a grade for it."""
    if not repo.is_enrolled(student.id, course.id):
        raise RejectedError("student {} is not enrolled in course {}".format(student.id, course.code))


def apply_grade(repo: ResitRepository, student: User, course: Course, token) -> GradeOutcome:
    """
    Classify a grade token, upsert the grade and reconcile resit registration.

    Does not commit; the caller owns the transaction.
    """
    try:
        result = classify_grade(token)
    except ValidationError:
        raise ValidationError('invalid grade "{}"'.format(token))

    _, created = repo.upsert_grade(student.id, course.id, result.score, result.letter)

    registration_removed = False
    if not is_resit_eligible(result.letter):
        exam = repo.get_resit_exam(course.id)
        if exam is not None and repo.delete_registration(student.id, exam.id):
            registration_removed = True
            repo.add_notification(
                student.id,
                "Your grade for {} ({}) is now {}. You are no longer eligible for its resit exam "
                "and your resit registration has been withdrawn.".format(
                    course.code, course.name, result.letter)
            )
            log_with_context(logger, "INFO",
                "Withdrew resit registration after regrade",
                context={"student_id": student.id, "course_id": course.id, "exam_id": exam.id},
                extra_data={"letter_grade": result.letter})

    return GradeOutcome(
        student_id=student.id,
        course_id=course.id,
        score=result.score,
        letter=result.letter,
        created=created,
        registration_removed=registration_removed,
    )


def ingest_grades(repo: ResitRepository, course_id: int, rows: Iterable[dict]) -> BatchResult:
    """
    Apply a batch of raw grade rows to a course.

    Raises NotFoundError before touching any row when the course does not
    exist. Otherwise always returns a BatchResult.
    """
    start_time = time.time()

    course = repo.get_course(course_id)
    if course is None:
        raise NotFoundError("course {} not found".format(course_id))

    rows = list(rows)
    result = BatchResult()

    log_with_context(logger, "INFO", "Starting grade ingestion of {} rows".format(len(rows)),
                     context={"course_id": course.id})

    for row_number, raw in enumerate(rows, 1):
        try:
            record = GradeRow.from_mapping(raw)
            student = resolve_student(repo, record)
            ensure_enrolled(repo, student, course)
            apply_grade(repo, student, course, record.grade)
            repo.commit()
            result.record_success()
        except PortalError as e:
            repo.rollback()
            result.record_error(row_number, e.message)
            log_with_context(logger, "WARNING",
                "Grade row {} rejected: {}".format(row_number, e.message),
                context={"course_id": course.id, "row": row_number})

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Grade ingestion complete: {} processed, {} errors".format(
            result.processed, len(result.errors)),
        context={"course_id": course.id},
        extra_data={"duration_ms": round(duration_ms, 2), "total_rows": len(rows)})

    return result


def submit_single_grade(repo: ResitRepository, student_id: int, course_id: int, grade) -> GradeOutcome:
    """Record one grade the same way a single ingestion row would."""
    course = repo.get_course(course_id)
    if course is None:
        raise NotFoundError("course {} not found".format(course_id))

    student = resolve_student(repo, GradeRow(student_id=student_id))
    ensure_enrolled(repo, student, course)
    try:
        outcome = apply_grade(repo, student, course, grade)
        repo.commit()
    except PortalError:
        repo.rollback()
        raise

    log_with_context(logger, "INFO",
        "Grade {} for student {}: {}".format(
            "created" if outcome.created else "updated", student.id, outcome.letter),
        context={"student_id": student.id, "course_id": course.id})
    return outcome
