"""
Participant Service - who is registered for a course's resit exam, as
JSON rows or as a CSV download.

Instructors only see their own courses; faculty secretaries see all.
"""

import csv
import io
from typing import List

from resit_portal.errors import ForbiddenError, NotFoundError
from resit_portal.models import Course, Role, User
from resit_portal.repository import ResitRepository

EXPORT_FIELDS = ["email", "grade", "letter_grade", "course_code", "course_name", "exam_date"]


def ensure_course_access(repo: ResitRepository, user: User, course_id: int) -> Course:
    course = repo.get_course(course_id)
    if course is None:
        raise NotFoundError("course {} not found".format(course_id))
    if Role(user.role) is Role.INSTRUCTOR and course.instructor_id != user.id:
        raise ForbiddenError("not your course")
    return course


def list_resit_participants(repo: ResitRepository, user: User, course_id: int) -> List[dict]:
    ensure_course_access(repo, user, course_id)
    return repo.resit_participants(course_id)


def export_resit_participants(repo: ResitRepository, user: User, course_id: int) -> bytes:
    """Render every student registered for the course's resit exam as CSV."""
    participants = list_resit_participants(repo, user, course_id)
    if not participants:
        raise NotFoundError("no registered students found for this course")

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, extrasaction="ignore",
                            lineterminator="\n")
    writer.writeheader()
    for row in participants:
        writer.writerow({
            **row,
            "grade": "" if row["grade"] is None else row["grade"],
            "exam_date": row["exam_date"] or "",
        })
    return buffer.getvalue().encode("utf-8")
