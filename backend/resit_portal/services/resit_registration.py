"""
Resit Registration Service - student self-registration and exam logistics.

Covers:
- a student registering for a course's resit exam
- the instructor's exam details (question count, allowed tools, notes)
- the faculty secretary's date/location updates, one course at a time or
  as an uploaded schedule that notifies every registrant and the instructor
"""

import time
from datetime import date
from typing import Iterable, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from resit_portal.errors import (
    PortalError, ConflictError, ForbiddenError, NotFoundError, RejectedError,
)
from resit_portal.logging_config import get_logger, log_with_context
from resit_portal.models import Exam, User
from resit_portal.repository import ResitRepository
from resit_portal.services import notifications
from resit_portal.services.grading import is_resit_eligible
from resit_portal.services.records import BatchResult, ScheduleRow

logger = get_logger("resit")


def register_for_resit(repo: ResitRepository, student: User, course_id: int):
    """Register a student for the resit exam of a course they are eligible for."""
    if not repo.is_enrolled(student.id, course_id):
        raise ForbiddenError("not enrolled")

    grade = repo.get_grade(student.id, course_id)
    if grade is None or not is_resit_eligible(grade.letter_grade):
        raise RejectedError("not eligible")

    exam = repo.get_resit_exam(course_id)
    if exam is None:
        raise RejectedError("no resit exam scheduled yet")

    if repo.get_registration(student.id, exam.id) is not None:
        raise ConflictError("already registered")

    course = exam.course
    try:
        registration = repo.add_registration(student.id, exam.id)
        repo.add_notification(
            student.id,
            "You have registered for the resit exam of {} ({}).".format(course.code, course.name)
        )
        repo.commit()
    except IntegrityError:
        # a concurrent request registered the same pair first
        repo.rollback()
        raise ConflictError("already registered")

    log_with_context(logger, "INFO", "Student registered for resit",
                     context={"student_id": student.id, "course_id": course_id, "exam_id": exam.id})
    return registration


def set_resit_details(repo: ResitRepository, course_id: int,
                      no_of_questions: Optional[int] = None,
                      allowed_tools: Optional[str] = None,
                      notes: Optional[str] = None) -> Tuple[Exam, bool]:
    """
    Create the course's resit exam or update its logistics fields.

    Only the fields given are written. Returns (exam, created).
    """
    course = repo.get_course(course_id)
    if course is None:
        raise NotFoundError("course {} not found".format(course_id))

    fields = {
        "no_of_questions": no_of_questions,
        "allowed_tools": allowed_tools,
        "notes": notes,
    }
    fields = {name: value for name, value in fields.items() if value is not None}

    exam = repo.get_resit_exam(course_id)
    created = exam is None
    if created:
        exam = repo.create_resit_exam(course_id, **fields)
    else:
        for name, value in fields.items():
            setattr(exam, name, value)
    repo.commit()

    log_with_context(logger, "INFO",
        "Resit exam {}".format("created" if created else "updated"),
        context={"course_id": course_id, "exam_id": exam.id},
        extra_data={"fields": sorted(fields)})
    return exam, created


def update_resit_info(repo: ResitRepository, course_id: int,
                      exam_date: Optional[date] = None,
                      location: Optional[str] = None) -> Exam:
    """Overwrite the date and/or location of an existing resit exam."""
    exam = repo.get_resit_exam(course_id)
    if exam is None:
        raise NotFoundError("no resit exam found for course {}".format(course_id))

    if exam_date is not None:
        exam.exam_date = exam_date
    if location is not None:
        exam.location = location
    repo.commit()

    log_with_context(logger, "INFO", "Resit exam info updated",
                     context={"course_id": course_id, "exam_id": exam.id})
    return exam


def _apply_schedule_row(repo: ResitRepository, row: ScheduleRow) -> int:
    course = repo.get_course_by_code(row.course_code)
    if course is None:
        raise NotFoundError("no course with code {}".format(row.course_code))

    exam = repo.get_resit_exam(course.id)
    if exam is None:
        raise NotFoundError("no resit exam scheduled for course {}".format(course.code))

    exam.exam_date = row.exam_date
    exam.location = row.location

    when = row.exam_date.isoformat()
    students = repo.registered_student_ids(exam.id)
    notifications.send(
        repo, students,
        "The resit exam for {} ({}) is scheduled on {} in {}.".format(
            course.code, course.name, when, row.location)
    )
    sent = len(students)
    if course.instructor_id is not None:
        notifications.send(
            repo, [course.instructor_id],
            "The resit exam for your course {} is scheduled on {} in {} ({} registered student(s)).".format(
                course.code, when, row.location, len(students))
        )
        sent += 1

    log_with_context(logger, "INFO", "Resit schedule applied",
                     context={"course_id": course.id, "exam_id": exam.id},
                     extra_data={"notifications": sent})
    return sent


def upload_resit_schedule(repo: ResitRepository, rows: Iterable[dict]) -> BatchResult:
    """
    Apply a batch of (course_code, exam_date, location) rows.

    Each row's exam update and its notifications are committed together.
    """
    start_time = time.time()
    rows = list(rows)
    result = BatchResult()

    log_with_context(logger, "INFO", "Starting schedule upload of {} rows".format(len(rows)))

    for row_number, raw in enumerate(rows, 1):
        try:
            record = ScheduleRow.from_mapping(raw)
            _apply_schedule_row(repo, record)
            repo.commit()
            result.record_success()
        except PortalError as e:
            repo.rollback()
            result.record_error(row_number, e.message)
            log_with_context(logger, "WARNING",
                "Schedule row {} rejected: {}".format(row_number, e.message),
                context={"row": row_number})

    duration_ms = (time.time() - start_time) * 1000
    log_with_context(logger, "INFO",
        "Schedule upload complete: {} processed, {} errors".format(
            result.processed, len(result.errors)),
        extra_data={"duration_ms": round(duration_ms, 2), "total_rows": len(rows)})
    return result
