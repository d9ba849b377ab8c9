import os

import pytest

from resit_portal.models import Exam, Grade, Notification, ResitRegistration

from tests.conftest import add_grade, add_resit_exam, as_user, register


def row_counts(db):
    db.expire_all()
    return {
        model.__tablename__: db.query(model).count()
        for model in (Grade, Exam, ResitRegistration, Notification)
    }


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert "X-Request-ID" in resp.headers


# ── Caller identity ──────────────────────────────────────────

def test_missing_identity_is_401(client, world):
    resp = client.get("/api/dashboard")
    assert resp.status_code == 401
    assert resp.json() == {"error": "missing X-User-Id header"}


def test_unknown_identity_is_401(client, world):
    resp = client.get("/api/dashboard", headers={"X-User-Id": "9999"})
    assert resp.status_code == 401


# ── Role boundary ────────────────────────────────────────────

def wrong_role_calls(world):
    """(caller, method, path, kwargs) for every gated operation, called by a wrong role."""
    return [
        (world.instructor, "post", "/api/student/declare-resit", {"json": {"course_id": world.cs101.id}}),
        (world.secretary, "get", "/api/student/eligible-resits", {}),
        (world.s1, "post", "/api/instructor/submit-grade",
         {"json": {"student_id": world.s1.id, "course_id": world.cs101.id, "grade": "90"}}),
        (world.secretary, "post", "/api/instructor/upload-grades",
         {"json": {"course_id": world.cs101.id, "rows": [{"student_id": world.s1.id, "grade": "90"}]}}),
        (world.s1, "post", "/api/instructor/resit-details",
         {"json": {"course_id": world.cs101.id, "notes": "x"}}),
        (world.instructor, "post", "/api/faculty/schedule",
         {"json": {"rows": [{"course_code": "CS101", "exam_date": "2025-06-15", "location": "R1"}]}}),
        (world.instructor, "patch", "/api/faculty/update-resit-info",
         {"json": {"course_id": world.cs101.id, "location": "R2"}}),
        (world.s1, "post", "/api/notify", {"json": {"message": "hi", "target_user_id": world.s2.id}}),
        (world.s1, "get", "/api/instructor/export-resit/{}".format(world.cs101.id), {}),
    ]


def test_wrong_role_is_forbidden_without_mutation(client, world, db):
    exam = add_resit_exam(db, world.cs101)
    add_grade(db, world.s1, world.cs101, 40, "FF")
    register(db, world.s2, exam)
    before = row_counts(db)

    for caller, method, path, kwargs in wrong_role_calls(world):
        resp = getattr(client, method)(path, headers=as_user(caller), **kwargs)
        assert resp.status_code == 403, path
        assert "error" in resp.json()

    assert row_counts(db) == before


def test_grade_file_upload_forbidden_for_students(client, world, db, upload_dir):
    before = set(os.listdir(upload_dir))
    resp = client.post(
        "/api/instructor/upload-grades-file",
        headers=as_user(world.s1),
        data={"course_id": str(world.cs101.id)},
        files={"file": ("grades.csv", b"student_id,grade\n1,100\n", "text/csv")},
    )
    assert resp.status_code == 403
    assert db.query(Grade).count() == 0
    assert set(os.listdir(upload_dir)) == before


# ── Student ──────────────────────────────────────────────────

def test_student_registration_flow(client, world, db):
    add_resit_exam(db, world.cs101)
    add_resit_exam(db, world.math201)
    add_grade(db, world.s1, world.cs101, 55, "FD")
    add_grade(db, world.s1, world.math201, 92, "AA")

    eligible = client.get("/api/student/eligible-resits", headers=as_user(world.s1)).json()
    assert [c["course_code"] for c in eligible["courses"]] == ["CS101"]

    resp = client.post("/api/student/declare-resit", headers=as_user(world.s1),
                       json={"course_id": world.cs101.id})
    assert resp.status_code == 200

    again = client.post("/api/student/declare-resit", headers=as_user(world.s1),
                        json={"course_id": world.cs101.id})
    assert again.status_code == 400
    assert again.json() == {"error": "already registered"}

    not_eligible = client.post("/api/student/declare-resit", headers=as_user(world.s1),
                               json={"course_id": world.math201.id})
    assert not_eligible.status_code == 400
    assert not_eligible.json() == {"error": "not eligible"}

    exams = client.get("/api/student/my-resit-exams", headers=as_user(world.s1)).json()
    assert [e["course_code"] for e in exams["resitExams"]] == ["CS101"]

    eligible = client.get("/api/student/eligible-resits", headers=as_user(world.s1)).json()
    assert eligible["courses"] == []

    inbox = client.get("/api/notifications", headers=as_user(world.s1)).json()
    assert len(inbox["notifications"]) == 1


def test_declare_resit_not_enrolled_is_403(client, world, db):
    add_resit_exam(db, world.cs101)
    resp = client.post("/api/student/declare-resit", headers=as_user(world.s4),
                       json={"course_id": world.cs101.id})
    assert resp.status_code == 403
    assert resp.json() == {"error": "not enrolled"}


def test_my_grades(client, world, db):
    add_grade(db, world.s1, world.cs101, None, "DZ")
    grades = client.get("/api/student/my-grades", headers=as_user(world.s1)).json()["grades"]
    assert grades == [{
        "course_id": world.cs101.id,
        "course_code": "CS101",
        "course_name": "Intro to CS",
        "grade": None,
        "letter_grade": "DZ",
    }]


# ── Instructor ───────────────────────────────────────────────

def test_grade_file_upload(client, world, db, upload_dir):
    before = set(os.listdir(upload_dir))
    csv_body = (
        "\ufeffStudent_ID,Email,Grade\n"
        "{},,95\n"
        ",{},48\n"
        "{},,abc\n"
    ).format(world.s1.id, world.s2.email, world.s3.id).encode("utf-8")

    resp = client.post(
        "/api/instructor/upload-grades-file",
        headers=as_user(world.instructor),
        data={"course_id": str(world.cs101.id)},
        files={"file": ("grades.csv", csv_body, "text/csv")},
    )

    assert resp.status_code == 200
    assert resp.json() == {"processed": 2, "errors": ['Row 3: invalid grade "abc"']}
    assert db.query(Grade).count() == 2
    assert set(os.listdir(upload_dir)) == before


def test_grade_file_without_grade_column(client, world, db, upload_dir):
    before = set(os.listdir(upload_dir))
    resp = client.post(
        "/api/instructor/upload-grades-file",
        headers=as_user(world.instructor),
        data={"course_id": str(world.cs101.id)},
        files={"file": ("grades.csv", b"student_id,score\n1,50\n", "text/csv")},
    )
    assert resp.status_code == 400
    assert "grade" in resp.json()["error"]
    assert set(os.listdir(upload_dir)) == before


def test_grade_file_for_unknown_course(client, world, upload_dir):
    before = set(os.listdir(upload_dir))
    resp = client.post(
        "/api/instructor/upload-grades-file",
        headers=as_user(world.instructor),
        data={"course_id": "9999"},
        files={"file": ("grades.csv", b"student_id,grade\n1,50\n", "text/csv")},
    )
    assert resp.status_code == 404
    assert set(os.listdir(upload_dir)) == before


def test_grade_json_upload(client, world):
    resp = client.post("/api/instructor/upload-grades", headers=as_user(world.instructor),
                       json={"course_id": world.cs101.id,
                             "rows": [{"email": world.s1.email, "grade": "DZ"}]})
    assert resp.json() == {"processed": 1, "errors": []}


def test_submit_grade(client, world):
    resp = client.post("/api/instructor/submit-grade", headers=as_user(world.instructor),
                       json={"student_id": world.s1.id, "course_id": world.cs101.id, "grade": 67})
    assert resp.status_code == 200
    body = resp.json()
    assert body["letter_grade"] == "DC"
    assert body["message"] == "Grade submitted successfully"

    resp = client.post("/api/instructor/submit-grade", headers=as_user(world.instructor),
                       json={"student_id": world.s1.id, "course_id": world.cs101.id, "grade": "999"})
    assert resp.status_code == 400


def test_submit_grade_rejects_boolean(client, world, db):
    resp = client.post("/api/instructor/submit-grade", headers=as_user(world.instructor),
                       json={"student_id": world.s1.id, "course_id": world.cs101.id, "grade": True})
    assert resp.status_code == 400
    assert resp.json() == {"error": 'invalid grade "True"'}
    assert db.query(Grade).count() == 0


def test_submit_grade_for_unenrolled_student(client, world, db):
    resp = client.post("/api/instructor/submit-grade", headers=as_user(world.instructor),
                       json={"student_id": world.s4.id, "course_id": world.cs101.id, "grade": 50})
    assert resp.status_code == 400
    assert resp.json() == {"error": "student {} is not enrolled in course CS101".format(world.s4.id)}
    assert db.query(Grade).count() == 0


def test_grade_json_upload_boolean_student_id(client, world, db):
    resp = client.post("/api/instructor/upload-grades", headers=as_user(world.instructor),
                       json={"course_id": world.cs101.id,
                             "rows": [{"student_id": True, "grade": "70"}]})
    assert resp.json() == {"processed": 0, "errors": ["Row 1: student_id: must be a number"]}
    assert db.query(Grade).count() == 0


def test_resit_details_created_then_updated(client, world):
    first = client.post("/api/instructor/resit-details", headers=as_user(world.instructor),
                        json={"course_id": world.cs101.id, "no_of_questions": 30})
    second = client.post("/api/instructor/resit-details", headers=as_user(world.instructor),
                         json={"course_id": world.cs101.id, "allowed_tools": "none"})
    assert first.status_code == 201
    assert second.status_code == 200
    assert first.json()["exam_id"] == second.json()["exam_id"]


def test_export_resit_csv(client, world, db):
    exam = add_resit_exam(db, world.cs101)
    add_grade(db, world.s1, world.cs101, 40, "FF")
    register(db, world.s1, exam)

    resp = client.get("/api/instructor/export-resit/{}".format(world.cs101.id),
                      headers=as_user(world.instructor))

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    lines = resp.text.strip().split("\n")
    assert lines[0] == "email,grade,letter_grade,course_code,course_name,exam_date"
    assert lines[1] == "s1@uni.example,40.0,FF,CS101,Intro to CS,"


def test_export_with_no_participants_is_404(client, world, db):
    add_resit_exam(db, world.cs101)
    resp = client.get("/api/faculty/export-resit/{}".format(world.cs101.id),
                      headers=as_user(world.secretary))
    assert resp.status_code == 404


def test_participants_limited_to_own_courses(client, world, db):
    exam = add_resit_exam(db, world.cs101)
    register(db, world.s1, exam)

    own = client.get("/api/instructor/resit-registrations/{}".format(world.cs101.id),
                     headers=as_user(world.instructor))
    other = client.get("/api/instructor/resit-registrations/{}".format(world.cs101.id),
                       headers=as_user(world.other_instructor))
    secretary = client.get("/api/faculty/resit-registrations/{}".format(world.cs101.id),
                           headers=as_user(world.secretary))

    assert [p["email"] for p in own.json()["participants"]] == ["s1@uni.example"]
    assert other.status_code == 403
    assert secretary.json() == own.json()


# ── Faculty secretary ────────────────────────────────────────

def test_schedule_file_upload(client, world, db, upload_dir):
    exam = add_resit_exam(db, world.cs101)
    register(db, world.s1, exam)
    register(db, world.s2, exam)
    before = set(os.listdir(upload_dir))

    resp = client.post(
        "/api/faculty/upload-schedule",
        headers=as_user(world.secretary),
        files={"file": ("schedule.csv",
                        b"course_code,exam_date,location\nCS101,2025-06-15,Room 301\nXX1,2025-06-15,Room 1\n",
                        "text/csv")},
    )

    assert resp.status_code == 200
    assert resp.json()["processed"] == 1
    assert len(resp.json()["errors"]) == 1
    assert db.query(Notification).count() == 3
    assert set(os.listdir(upload_dir)) == before

    exams = client.get("/api/faculty/all-resit-exams", headers=as_user(world.secretary)).json()
    assert exams["resitExams"][0]["exam_date"] == "2025-06-15"
    assert exams["resitExams"][0]["location"] == "Room 301"
    assert exams["resitExams"][0]["registered_students"] == 2


def test_update_resit_info(client, world, db):
    add_resit_exam(db, world.cs101)
    resp = client.patch("/api/faculty/update-resit-info", headers=as_user(world.secretary),
                        json={"course_id": world.cs101.id, "exam_date": "2025-07-01"})
    assert resp.status_code == 200
    assert resp.json()["exam_date"] == "2025-07-01"

    missing = client.patch("/api/faculty/update-resit-info", headers=as_user(world.secretary),
                           json={"course_id": world.math201.id, "location": "R1"})
    assert missing.status_code == 404


def test_notify_endpoint(client, world, db):
    exam = add_resit_exam(db, world.cs101)
    register(db, world.s1, exam)

    resp = client.post("/api/notify", headers=as_user(world.secretary),
                       json={"message": "Exam moved", "course_id": world.cs101.id})
    assert resp.status_code == 201
    assert resp.json()["recipients"] == [world.s1.id, world.instructor.id]

    rejected = client.post("/api/notify", headers=as_user(world.instructor),
                           json={"message": "Hello", "target_user_id": 9999})
    assert rejected.status_code == 400
    assert rejected.json() == {"error": "no valid recipient"}


# ── Dashboards ───────────────────────────────────────────────

def test_student_dashboard(client, world, db):
    exam = add_resit_exam(db, world.math201)
    add_grade(db, world.s1, world.cs101, 95, "AA")
    add_grade(db, world.s1, world.math201, 20, "FF")
    register(db, world.s1, exam)

    body = client.get("/api/dashboard", headers=as_user(world.s1)).json()
    assert body == {"role": "student", "total_courses": 2, "registered_resits": 1, "gpa": 2.0}


def test_student_dashboard_without_counted_grades(client, world, db):
    add_grade(db, world.s2, world.cs101, None, "DZ")
    body = client.get("/api/dashboard", headers=as_user(world.s2)).json()
    assert body["gpa"] is None


def test_instructor_dashboard(client, world, db):
    exam = add_resit_exam(db, world.cs101)
    register(db, world.s1, exam)

    body = client.get("/api/dashboard", headers=as_user(world.instructor)).json()
    assert body == {
        "role": "instructor",
        "courses": [{
            "course_id": world.cs101.id,
            "course_code": "CS101",
            "course_name": "Intro to CS",
            "total_students": 3,
            "resit_students": 1,
        }],
    }


def test_faculty_dashboard(client, world, db):
    cs_exam = add_resit_exam(db, world.cs101)
    add_resit_exam(db, world.math201)
    register(db, world.s1, cs_exam)
    register(db, world.s2, cs_exam)

    body = client.get("/api/dashboard", headers=as_user(world.secretary)).json()
    assert body == {"role": "faculty_secretary", "total_resit_registrations": 2, "total_resit_exams": 2}
