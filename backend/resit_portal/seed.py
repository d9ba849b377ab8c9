"""
Demo term seeding for local development.

Usage:
    python -m resit_portal.seed

Creates a handful of users of every role, two courses with enrollments
and one resit exam. Existing rows (matched by email / course code) are
left alone, so running it twice is harmless.
"""

from sqlalchemy.orm import Session

from resit_portal.database import SessionLocal, create_tables
from resit_portal.models import Course, Enrollment, Exam, RESIT_EXAM_TYPE, Role, User

DEMO_USERS = [
    {"email": "secretary@uni.example", "full_name": "Faculty Secretary", "role": Role.FACULTY_SECRETARY},
    {"email": "instructor@uni.example", "full_name": "Ayse Instructor", "role": Role.INSTRUCTOR},
    {"email": "student1@uni.example", "full_name": "First Student", "role": Role.STUDENT},
    {"email": "student2@uni.example", "full_name": "Second Student", "role": Role.STUDENT},
    {"email": "student3@uni.example", "full_name": "Third Student", "role": Role.STUDENT},
]

DEMO_COURSES = [
    {"code": "CS101", "name": "Introduction to Computer Science"},
    {"code": "MATH201", "name": "Linear Algebra"},
]


def seed_users(db: Session) -> dict:
    users = {}
    for u in DEMO_USERS:
        user = db.query(User).filter_by(email=u["email"]).first()
        if user is None:
            user = User(**u)
            db.add(user)
        users[u["email"]] = user
    db.flush()
    return users


def seed_courses(db: Session, instructor: User) -> dict:
    courses = {}
    for c in DEMO_COURSES:
        course = db.query(Course).filter_by(code=c["code"]).first()
        if course is None:
            course = Course(instructor_id=instructor.id, **c)
            db.add(course)
        courses[c["code"]] = course
    db.flush()
    return courses


def seed_enrollments(db: Session, students, courses):
    for student in students:
        for course in courses:
            exists = db.query(Enrollment).filter_by(
                student_id=student.id, course_id=course.id).first()
            if exists is None:
                db.add(Enrollment(student_id=student.id, course_id=course.id))
    db.flush()


def seed_resit_exam(db: Session, course: Course):
    exam = db.query(Exam).filter_by(course_id=course.id, exam_type=RESIT_EXAM_TYPE).first()
    if exam is None:
        db.add(Exam(course_id=course.id, exam_type=RESIT_EXAM_TYPE,
                    no_of_questions=20, allowed_tools="calculator"))
        db.flush()


def run_seed(db: Session) -> dict:
    """Seed the demo term and return the users keyed by email."""
    users = seed_users(db)
    instructor = users["instructor@uni.example"]
    courses = seed_courses(db, instructor)
    students = [u for u in users.values() if u.role == Role.STUDENT]
    seed_enrollments(db, students, courses.values())
    seed_resit_exam(db, courses["CS101"])
    db.commit()
    return users


def main():
    create_tables()
    db = SessionLocal()
    try:
        users = run_seed(db)
    finally:
        db.close()
    print("Demo term seeded. Send one of these ids as X-User-Id:")
    for email, user in users.items():
        print(f"  {user.id:>3}  {user.role.value:<18} {email}")


if __name__ == "__main__":
    main()
