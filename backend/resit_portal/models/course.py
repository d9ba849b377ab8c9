"""
Course and Enrollment models.

Enrollments are created at term setup and are read-only to the resit
workflows: they decide who may register for a course's resit exam.
"""

from sqlalchemy import Column, Integer, Text, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship
from resit_portal.database import Base


class Course(Base):
    """SQLAlchemy model for the courses table."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(Text, nullable=False, unique=True,
                  doc="Course code such as CS101")
    name = Column(Text, nullable=False,
                  doc="Course title")
    instructor_id = Column(Integer, ForeignKey("users.id"), nullable=True,
                           doc="Owning instructor, if one is assigned")

    instructor = relationship("User", back_populates="taught_courses")
    enrollments = relationship("Enrollment", back_populates="course")
    grades = relationship("Grade", back_populates="course")
    exams = relationship("Exam", back_populates="course")

    def __repr__(self):
        return f"<Course(id={self.id}, code='{self.code}')>"


class Enrollment(Base):
    """A (student, course) enrollment fact."""
    __tablename__ = "student_courses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)

    student = relationship("User", back_populates="enrollments")
    course = relationship("Course", back_populates="enrollments")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_student_courses_student_course"),
        Index("ix_student_courses_course_id", "course_id"),
    )

    def __repr__(self):
        return f"<Enrollment(student={self.student_id}, course={self.course_id})>"
