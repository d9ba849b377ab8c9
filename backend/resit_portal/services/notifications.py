"""
Notification Service - fan-out of messages into the per-user notification log.

Recipients are resolved completely before anything is written, so a
rejected request leaves the log untouched.
"""

from typing import List, Optional

from resit_portal.errors import RejectedError, ValidationError
from resit_portal.logging_config import get_logger, log_with_context
from resit_portal.models import Course
from resit_portal.repository import ResitRepository

logger = get_logger("notify")


def course_recipients(repo: ResitRepository, course: Course) -> List[int]:
    """Students registered for the course's resit exam, then its instructor."""
    recipients = []
    exam = repo.get_resit_exam(course.id)
    if exam is not None:
        recipients.extend(repo.registered_student_ids(exam.id))
    if course.instructor_id is not None:
        recipients.append(course.instructor_id)
    return recipients


def send(repo: ResitRepository, recipients: List[int], message: str) -> List[int]:
    """Append one notification per recipient. Duplicates are not collapsed."""
    for user_id in recipients:
        repo.add_notification(user_id, message)
    return list(recipients)


def notify(repo: ResitRepository, message: str,
           target_user_id: Optional[int] = None,
           course_id: Optional[int] = None) -> List[int]:
    """
    Notify a single user, every party of a course's resit exam, or both.

    Returns the recipient ids in insertion order. Raises RejectedError
    when no recipient could be resolved.
    """
    if not message or not message.strip():
        raise ValidationError("message is required")
    if target_user_id is None and course_id is None:
        raise ValidationError("target_user_id or course_id is required")

    recipients = []
    if target_user_id is not None and repo.get_user(target_user_id) is not None:
        recipients.append(target_user_id)

    if course_id is not None:
        course = repo.get_course(course_id)
        if course is not None:
            recipients.extend(course_recipients(repo, course))

    if not recipients:
        raise RejectedError("no valid recipient")

    send(repo, recipients, message.strip())
    repo.commit()

    log_with_context(logger, "INFO", "Sent notification to {} recipient(s)".format(len(recipients)),
                     context={"target_user_id": target_user_id, "course_id": course_id})
    return recipients


def list_notifications(repo: ResitRepository, user_id: int) -> List[dict]:
    return [
        {
            "id": n.id,
            "message": n.message,
            "created_at": n.created_at.isoformat() if n.created_at else None,
        }
        for n in repo.notifications_for(user_id)
    ]
