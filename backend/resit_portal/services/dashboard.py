"""
Dashboard Service - read-only, role-shaped summaries for the landing page.
"""

from resit_portal.models import Role, User
from resit_portal.repository import ResitRepository
from resit_portal.services.grading import compute_gpa


def student_dashboard(repo: ResitRepository, student: User) -> dict:
    return {
        "role": Role.STUDENT.value,
        "total_courses": repo.enrollment_count_for_student(student.id),
        "registered_resits": repo.registration_count_for_student(student.id),
        "gpa": compute_gpa(repo.letters_for_student(student.id)),
    }


def instructor_dashboard(repo: ResitRepository, instructor: User) -> dict:
    courses = repo.courses_for_instructor(instructor.id)
    registrants = repo.resit_registrant_counts([c.id for c in courses])
    return {
        "role": Role.INSTRUCTOR.value,
        "courses": [
            {
                "course_id": c.id,
                "course_code": c.code,
                "course_name": c.name,
                "total_students": repo.enrollment_count_for_course(c.id),
                "resit_students": registrants.get(c.id, 0),
            }
            for c in courses
        ],
    }


def faculty_dashboard(repo: ResitRepository) -> dict:
    return {
        "role": Role.FACULTY_SECRETARY.value,
        "total_resit_registrations": repo.registration_count(),
        "total_resit_exams": repo.resit_exam_count(),
    }


def build_dashboard(repo: ResitRepository, user: User) -> dict:
    role = Role(user.role)
    if role is Role.STUDENT:
        return student_dashboard(repo, user)
    if role is Role.INSTRUCTOR:
        return instructor_dashboard(repo, user)
    if role is Role.FACULTY_SECRETARY:
        return faculty_dashboard(repo)
    raise AssertionError("unhandled role {!r}".format(role))
