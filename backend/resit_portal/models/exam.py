"""
Exam and ResitRegistration models.

A course has at most one exam row per exam type; the resit workflows only
ever touch rows with exam_type = "resit". Date and location are set by
the faculty secretary, the remaining logistics fields by the instructor.
"""

from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, Text, Date, DateTime, ForeignKey, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from resit_portal.database import Base

RESIT_EXAM_TYPE = "resit"


class Exam(Base):
    """SQLAlchemy model for the exams table."""
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, autoincrement=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    exam_type = Column(Text, nullable=False, default=RESIT_EXAM_TYPE)
    exam_date = Column(Date, nullable=True,
                       doc="Scheduled date, NULL until the secretary sets it")
    location = Column(Text, nullable=True)
    no_of_questions = Column(Integer, nullable=True)
    allowed_tools = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    course = relationship("Course", back_populates="exams")
    registrations = relationship("ResitRegistration", back_populates="exam")

    __table_args__ = (
        UniqueConstraint("course_id", "exam_type", name="uq_exams_course_type"),
    )

    def __repr__(self):
        return f"<Exam(id={self.id}, course={self.course_id}, type='{self.exam_type}')>"


class ResitRegistration(Base):
    """A student's registration for a resit exam. Unique per (student, exam)."""
    __tablename__ = "resit_registrations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    student = relationship("User", back_populates="resit_registrations")
    exam = relationship("Exam", back_populates="registrations")

    __table_args__ = (
        UniqueConstraint("student_id", "exam_id", name="uq_resit_registrations_student_exam"),
        Index("ix_resit_registrations_exam_id", "exam_id"),
    )

    def __repr__(self):
        return f"<ResitRegistration(student={self.student_id}, exam={self.exam_id})>"
