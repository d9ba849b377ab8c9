from resit_portal.models import Course, Enrollment, Exam, Role, User
from resit_portal.seed import run_seed


def test_seed_is_repeatable(db):
    first = run_seed(db)
    run_seed(db)

    assert db.query(User).count() == 5
    assert db.query(Course).count() == 2
    assert db.query(Enrollment).count() == 6
    assert db.query(Exam).count() == 1
    assert first["instructor@uni.example"].role == Role.INSTRUCTOR
