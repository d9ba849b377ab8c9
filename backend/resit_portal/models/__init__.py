from resit_portal.models.user import User, Role
from resit_portal.models.course import Course, Enrollment
from resit_portal.models.grade import Grade
from resit_portal.models.exam import Exam, ResitRegistration, RESIT_EXAM_TYPE
from resit_portal.models.notification import Notification

__all__ = [
    "User", "Role", "Course", "Enrollment", "Grade", "Exam",
    "ResitRegistration", "RESIT_EXAM_TYPE", "Notification",
]
