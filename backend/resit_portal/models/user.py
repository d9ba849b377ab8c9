"""
User model - every person who can call the portal.

The role is fixed per user and decides which operations the user may
call. Authentication itself happens in front of the service.
"""

import enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, Text, DateTime, Enum, Index, func
from sqlalchemy.orm import relationship, validates
from resit_portal.database import Base


class Role(str, enum.Enum):
    """Closed set of portal roles."""
    STUDENT = "student"
    INSTRUCTOR = "instructor"
    FACULTY_SECRETARY = "faculty_secretary"


class User(Base):
    """SQLAlchemy model for the users table."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Numeric user identifier (student number for students)")
    email = Column(Text, nullable=False, unique=True,
                   doc="Login email, stored lowercased, unique across all roles")
    full_name = Column(Text, nullable=True,
                       doc="Display name")
    role = Column(Enum(Role, native_enum=False, length=32,
                       values_callable=lambda roles: [r.value for r in roles]),
                  nullable=False,
                  doc="student | instructor | faculty_secretary")
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                        doc="Timestamp when the user record was created")

    taught_courses = relationship("Course", back_populates="instructor")
    enrollments = relationship("Enrollment", back_populates="student")
    grades = relationship("Grade", back_populates="student")
    resit_registrations = relationship("ResitRegistration", back_populates="student")
    notifications = relationship("Notification", back_populates="user")

    @validates("email")
    def _normalize_email(self, key, value):
        return value.strip().lower() if value is not None else value

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"


# Rows written before normalization, or by hand, still may not collide on case.
Index("ux_users_email_lower", func.lower(User.email), unique=True)
