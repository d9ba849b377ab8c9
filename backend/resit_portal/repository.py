"""
Data access for the resit workflows.

ResitRepository wraps one SQLAlchemy session and is handed to every
workflow function, so workflows never reach for a global session. Each
method is a single query or a single row mutation; transaction
boundaries (commit/rollback) are decided by the caller.
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select, delete
from sqlalchemy.orm import Session

from resit_portal.models import (
    User, Role, Course, Enrollment, Grade, Exam, ResitRegistration,
    Notification, RESIT_EXAM_TYPE,
)
from resit_portal.services.grading import RESIT_ELIGIBLE_LETTERS


class ResitRepository:

    def __init__(self, db: Session):
        self.db = db

    # ── Transaction control ───────────────────────────────────

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    # ── Users ─────────────────────────────────────────────────

    def get_user(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)

    def users_by_email(self, email: str) -> List[User]:
        """All users whose email matches ignoring case. More than one means the
        address is ambiguous and callers must not pick one."""
        normalized = email.strip().lower()
        return list(self.db.execute(
            select(User).where(func.lower(User.email) == normalized).order_by(User.id)
        ).scalars())

    # ── Courses & enrollments ─────────────────────────────────

    def get_course(self, course_id: int) -> Optional[Course]:
        return self.db.get(Course, course_id)

    def get_course_by_code(self, code: str) -> Optional[Course]:
        return self.db.execute(
            select(Course).where(Course.code == code.strip())
        ).scalar_one_or_none()

    def courses_for_instructor(self, instructor_id: int) -> List[Course]:
        return list(self.db.execute(
            select(Course).where(Course.instructor_id == instructor_id).order_by(Course.code)
        ).scalars())

    def is_enrolled(self, student_id: int, course_id: int) -> bool:
        return self.db.execute(
            select(Enrollment.id).where(
                Enrollment.student_id == student_id,
                Enrollment.course_id == course_id,
            )
        ).first() is not None

    def enrollment_count_for_student(self, student_id: int) -> int:
        return self.db.execute(
            select(func.count(Enrollment.id)).where(Enrollment.student_id == student_id)
        ).scalar_one()

    def enrollment_count_for_course(self, course_id: int) -> int:
        return self.db.execute(
            select(func.count(Enrollment.id)).where(Enrollment.course_id == course_id)
        ).scalar_one()

    # ── Grades ────────────────────────────────────────────────

    def get_grade(self, student_id: int, course_id: int) -> Optional[Grade]:
        return self.db.execute(
            select(Grade).where(Grade.student_id == student_id, Grade.course_id == course_id)
        ).scalar_one_or_none()

    def upsert_grade(self, student_id: int, course_id: int,
                     score: Optional[float], letter: str) -> Tuple[Grade, bool]:
        """Update the (student, course) grade or insert it. Returns (grade, created)."""
        grade = self.get_grade(student_id, course_id)
        if grade is not None:
            grade.grade = score
            grade.letter_grade = letter
            grade.updated_at = datetime.now(timezone.utc)
            self.db.flush()
            return grade, False

        grade = Grade(student_id=student_id, course_id=course_id,
                      grade=score, letter_grade=letter)
        self.db.add(grade)
        self.db.flush()
        return grade, True

    def letters_for_student(self, student_id: int) -> List[str]:
        return list(self.db.execute(
            select(Grade.letter_grade).where(Grade.student_id == student_id)
        ).scalars())

    def grades_for_student(self, student_id: int) -> List[dict]:
        rows = self.db.execute(
            select(Course.id, Course.code, Course.name, Grade.grade, Grade.letter_grade)
            .select_from(Grade)
            .join(Course, Grade.course_id == Course.id)
            .where(Grade.student_id == student_id)
            .order_by(Course.code)
        ).all()
        return [
            {
                "course_id": r.id,
                "course_code": r.code,
                "course_name": r.name,
                "grade": r.grade,
                "letter_grade": r.letter_grade,
            }
            for r in rows
        ]

    # ── Resit exams ───────────────────────────────────────────

    def get_resit_exam(self, course_id: int) -> Optional[Exam]:
        return self.db.execute(
            select(Exam).where(Exam.course_id == course_id, Exam.exam_type == RESIT_EXAM_TYPE)
        ).scalar_one_or_none()

    def create_resit_exam(self, course_id: int, **fields) -> Exam:
        exam = Exam(course_id=course_id, exam_type=RESIT_EXAM_TYPE, **fields)
        self.db.add(exam)
        self.db.flush()
        return exam

    def resit_exam_count(self) -> int:
        return self.db.execute(
            select(func.count(Exam.id)).where(Exam.exam_type == RESIT_EXAM_TYPE)
        ).scalar_one()

    def all_resit_exams(self) -> List[dict]:
        registrants = (
            select(ResitRegistration.exam_id, func.count(ResitRegistration.id).label("registrants"))
            .group_by(ResitRegistration.exam_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Exam, Course, func.coalesce(registrants.c.registrants, 0))
            .select_from(Exam)
            .join(Course, Exam.course_id == Course.id)
            .outerjoin(registrants, registrants.c.exam_id == Exam.id)
            .where(Exam.exam_type == RESIT_EXAM_TYPE)
            .order_by(Course.code)
        ).all()
        return [
            {
                "exam_id": exam.id,
                "course_id": course.id,
                "course_code": course.code,
                "course_name": course.name,
                "exam_date": exam.exam_date.isoformat() if exam.exam_date else None,
                "location": exam.location,
                "no_of_questions": exam.no_of_questions,
                "allowed_tools": exam.allowed_tools,
                "notes": exam.notes,
                "registered_students": count,
            }
            for exam, course, count in rows
        ]

    # ── Resit registrations ───────────────────────────────────

    def get_registration(self, student_id: int, exam_id: int) -> Optional[ResitRegistration]:
        return self.db.execute(
            select(ResitRegistration).where(
                ResitRegistration.student_id == student_id,
                ResitRegistration.exam_id == exam_id,
            )
        ).scalar_one_or_none()

    def add_registration(self, student_id: int, exam_id: int) -> ResitRegistration:
        registration = ResitRegistration(student_id=student_id, exam_id=exam_id)
        self.db.add(registration)
        self.db.flush()
        return registration

    def delete_registration(self, student_id: int, exam_id: int) -> int:
        """Delete the (student, exam) registration if present. Returns rows deleted."""
        result = self.db.execute(
            delete(ResitRegistration).where(
                ResitRegistration.student_id == student_id,
                ResitRegistration.exam_id == exam_id,
            )
        )
        return result.rowcount

    def registered_student_ids(self, exam_id: int) -> List[int]:
        return list(self.db.execute(
            select(ResitRegistration.student_id)
            .where(ResitRegistration.exam_id == exam_id)
            .order_by(ResitRegistration.id)
        ).scalars())

    def registration_count(self) -> int:
        return self.db.execute(select(func.count(ResitRegistration.id))).scalar_one()

    def registration_count_for_student(self, student_id: int) -> int:
        return self.db.execute(
            select(func.count(ResitRegistration.id))
            .select_from(ResitRegistration)
            .join(Exam, ResitRegistration.exam_id == Exam.id)
            .where(ResitRegistration.student_id == student_id, Exam.exam_type == RESIT_EXAM_TYPE)
        ).scalar_one()

    def resit_exams_for_student(self, student_id: int) -> List[dict]:
        rows = self.db.execute(
            select(Course, Exam)
            .select_from(Course)
            .join(Exam, Exam.course_id == Course.id)
            .join(ResitRegistration, ResitRegistration.exam_id == Exam.id)
            .where(ResitRegistration.student_id == student_id, Exam.exam_type == RESIT_EXAM_TYPE)
            .order_by(Course.code)
        ).all()
        return [
            {
                "course_id": course.id,
                "course_code": course.code,
                "course_name": course.name,
                "exam_date": exam.exam_date.isoformat() if exam.exam_date else None,
                "location": exam.location,
                "no_of_questions": exam.no_of_questions,
                "allowed_tools": exam.allowed_tools,
                "notes": exam.notes,
            }
            for course, exam in rows
        ]

    def eligible_unregistered_courses(self, student_id: int) -> List[dict]:
        """Courses with a resit exam where the student is enrolled, holds an
        eligible letter, and is not registered yet."""
        already_registered = (
            select(ResitRegistration.exam_id)
            .where(ResitRegistration.student_id == student_id)
        )
        rows = self.db.execute(
            select(Course, Grade.letter_grade, Exam)
            .select_from(Course)
            .join(Grade, Grade.course_id == Course.id)
            .join(Enrollment, (Enrollment.course_id == Course.id)
                  & (Enrollment.student_id == student_id))
            .join(Exam, (Exam.course_id == Course.id) & (Exam.exam_type == RESIT_EXAM_TYPE))
            .where(
                Grade.student_id == student_id,
                Grade.letter_grade.in_(sorted(RESIT_ELIGIBLE_LETTERS)),
                Exam.id.not_in(already_registered),
            )
            .order_by(Course.code)
        ).all()
        return [
            {
                "course_id": course.id,
                "course_code": course.code,
                "course_name": course.name,
                "letter_grade": letter,
                "exam_date": exam.exam_date.isoformat() if exam.exam_date else None,
            }
            for course, letter, exam in rows
        ]

    def resit_participants(self, course_id: int) -> List[dict]:
        rows = self.db.execute(
            select(User.id, User.email, Grade.grade, Grade.letter_grade,
                   Course.code, Course.name, Exam.exam_date)
            .select_from(ResitRegistration)
            .join(User, ResitRegistration.student_id == User.id)
            .join(Exam, ResitRegistration.exam_id == Exam.id)
            .join(Course, Exam.course_id == Course.id)
            .outerjoin(Grade, (Grade.student_id == User.id) & (Grade.course_id == Course.id))
            .where(Course.id == course_id, Exam.exam_type == RESIT_EXAM_TYPE)
            .order_by(User.email)
        ).all()
        return [
            {
                "student_id": r[0],
                "email": r[1],
                "grade": r[2],
                "letter_grade": r[3],
                "course_code": r[4],
                "course_name": r[5],
                "exam_date": r[6].isoformat() if r[6] else None,
            }
            for r in rows
        ]

    def resit_registrant_counts(self, course_ids: List[int]) -> dict:
        if not course_ids:
            return {}
        rows = self.db.execute(
            select(Exam.course_id, func.count(ResitRegistration.id))
            .select_from(Exam)
            .join(ResitRegistration, ResitRegistration.exam_id == Exam.id)
            .where(Exam.course_id.in_(course_ids), Exam.exam_type == RESIT_EXAM_TYPE)
            .group_by(Exam.course_id)
        ).all()
        return {course_id: count for course_id, count in rows}

    # ── Notifications ─────────────────────────────────────────

    def add_notification(self, user_id: int, message: str) -> Notification:
        notification = Notification(user_id=user_id, message=message,
                                    created_at=datetime.now(timezone.utc))
        self.db.add(notification)
        self.db.flush()
        return notification

    def notifications_for(self, user_id: int) -> List[Notification]:
        return list(self.db.execute(
            select(Notification)
            .where(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        ).scalars())
