"""Initial migration - create all tables

Revision ID: 001_initial
Revises: None
Create Date: 2025-05-02

Creates all database tables for the Resit Portal:
- users: people of every role
- courses / student_courses: courses and their enrollments
- grades: one grade per (student, course)
- exams: one resit exam per course
- resit_registrations: one registration per (student, exam)
- notifications: append-only per-user message log
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # ── Users Table ───────────────────────────────────────────
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('full_name', sa.Text(), nullable=True),
        sa.Column('role', sa.String(32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint("role IN ('student', 'instructor', 'faculty_secretary')",
                           name='ck_users_role'),
    )
    op.create_index('ux_users_email_lower', 'users', [sa.text('lower(email)')], unique=True)

    # ── Courses & Enrollments ─────────────────────────────────
    op.create_table(
        'courses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('code', sa.Text(), nullable=False, unique=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('instructor_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=True),
    )

    op.create_table(
        'student_courses',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_student_courses_student_course'),
    )
    op.create_index('ix_student_courses_course_id', 'student_courses', ['course_id'])

    # ── Grades Table ──────────────────────────────────────────
    op.create_table(
        'grades',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('grade', sa.Float(), nullable=True),
        sa.Column('letter_grade', sa.Text(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('student_id', 'course_id', name='uq_grades_student_course'),
    )

    # ── Exams & Resit Registrations ───────────────────────────
    op.create_table(
        'exams',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('course_id', sa.Integer(), sa.ForeignKey('courses.id'), nullable=False),
        sa.Column('exam_type', sa.Text(), nullable=False, server_default='resit'),
        sa.Column('exam_date', sa.Date(), nullable=True),
        sa.Column('location', sa.Text(), nullable=True),
        sa.Column('no_of_questions', sa.Integer(), nullable=True),
        sa.Column('allowed_tools', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.UniqueConstraint('course_id', 'exam_type', name='uq_exams_course_type'),
    )

    op.create_table(
        'resit_registrations',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('student_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('exam_id', sa.Integer(), sa.ForeignKey('exams.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
        sa.UniqueConstraint('student_id', 'exam_id', name='uq_resit_registrations_student_exam'),
    )
    op.create_index('ix_resit_registrations_exam_id', 'resit_registrations', ['exam_id'])

    # ── Notifications Table ───────────────────────────────────
    op.create_table(
        'notifications',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True),
                  server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index('ix_notifications_user_id', table_name='notifications')
    op.drop_table('notifications')
    op.drop_index('ix_resit_registrations_exam_id', table_name='resit_registrations')
    op.drop_table('resit_registrations')
    op.drop_table('exams')
    op.drop_table('grades')
    op.drop_index('ix_student_courses_course_id', table_name='student_courses')
    op.drop_table('student_courses')
    op.drop_table('courses')
    op.drop_index('ux_users_email_lower', table_name='users')
    op.drop_table('users')
