"""
Grade model - one grade per (student, course).

The numeric score is NULL for the "did not attend" letter (DZ); for every
other letter the letter is derived from the score.
"""

from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Float, Text, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from resit_portal.database import Base


class Grade(Base):
    """SQLAlchemy model for the grades table."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=False)
    grade = Column(Float, nullable=True,
                   doc="Numeric score 0-100, NULL when the letter is DZ")
    letter_grade = Column(Text, nullable=False,
                          doc="AA | BA | BB | CB | CC | DC | DD | FD | FF | DZ")
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        onupdate=lambda: datetime.now(timezone.utc))

    student = relationship("User", back_populates="grades")
    course = relationship("Course", back_populates="grades")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_grades_student_course"),
    )

    def __repr__(self):
        return f"<Grade(student={self.student_id}, course={self.course_id}, letter='{self.letter_grade}')>"
