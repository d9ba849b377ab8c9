"""
Instructor API routes - grade submission, grade uploads and resit exam details.

Grade batches arrive either as an uploaded CSV file (header row with
student_id or email, and grade) or as JSON rows of the same shape. Both
run through the same ingestion pipeline and return {processed, errors}.
"""

from typing import Any, List, Optional

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from pydantic import BaseModel, Field

from resit_portal.models import User
from resit_portal.repository import ResitRepository
from resit_portal.routes.auth import get_repository, require_instructor, require_staff
from resit_portal.services import exports
from resit_portal.services.grade_ingestion import ingest_grades, submit_single_grade
from resit_portal.services.records import BatchResult
from resit_portal.services.resit_registration import set_resit_details
from resit_portal.services.uploads import read_csv_rows, staged_upload

router = APIRouter(prefix="/api/instructor")


# ── Pydantic schemas ─────────────────────────────────────────

class SubmitGradeRequest(BaseModel):
    student_id: int
    course_id: int
    # Raw JSON value; classify_grade decides what counts as a grade token.
    grade: Any = Field(..., description="Score 0-100 or DZ")


class GradeBatchRequest(BaseModel):
    course_id: int
    rows: List[dict] = Field(..., description="Rows with student_id or email, and grade")


class ResitDetailsRequest(BaseModel):
    course_id: int
    no_of_questions: Optional[int] = Field(None, ge=1)
    allowed_tools: Optional[str] = None
    notes: Optional[str] = None


# ── Routes ───────────────────────────────────────────────────

@router.post("/submit-grade")
def submit_grade(request: SubmitGradeRequest,
                 user: User = Depends(require_instructor),
                 repo: ResitRepository = Depends(get_repository)):
    outcome = submit_single_grade(repo, request.student_id, request.course_id, request.grade)
    return {
        "message": "Grade submitted successfully" if outcome.created else "Grade updated successfully",
        "student_id": outcome.student_id,
        "course_id": outcome.course_id,
        "grade": outcome.score,
        "letter_grade": outcome.letter,
    }


@router.post("/upload-grades-file", response_model=BatchResult)
def upload_grades_file(course_id: int = Form(...),
                       file: UploadFile = File(...),
                       user: User = Depends(require_instructor),
                       repo: ResitRepository = Depends(get_repository)):
    """Apply an uploaded grade CSV to a course. The file is deleted afterwards."""
    with staged_upload(file) as path:
        rows = read_csv_rows(path, required=["grade"], any_of=["student_id", "email"])
        return ingest_grades(repo, course_id, rows)


@router.post("/upload-grades", response_model=BatchResult)
def upload_grades(request: GradeBatchRequest,
                  user: User = Depends(require_instructor),
                  repo: ResitRepository = Depends(get_repository)):
    return ingest_grades(repo, request.course_id, request.rows)


@router.post("/resit-details")
def resit_details(request: ResitDetailsRequest,
                  response: Response,
                  user: User = Depends(require_instructor),
                  repo: ResitRepository = Depends(get_repository)):
    exam, created = set_resit_details(
        repo, request.course_id,
        no_of_questions=request.no_of_questions,
        allowed_tools=request.allowed_tools,
        notes=request.notes,
    )
    if created:
        response.status_code = 201
        return {"message": "Resit exam created successfully.", "exam_id": exam.id}
    return {"message": "Resit exam details updated.", "exam_id": exam.id}


@router.get("/my-courses")
def my_courses(user: User = Depends(require_instructor),
               repo: ResitRepository = Depends(get_repository)):
    return {
        "courses": [
            {"course_id": c.id, "course_code": c.code, "course_name": c.name}
            for c in repo.courses_for_instructor(user.id)
        ]
    }


@router.get("/resit-registrations/{course_id}")
def resit_registrations(course_id: int,
                        user: User = Depends(require_staff),
                        repo: ResitRepository = Depends(get_repository)):
    return {"participants": exports.list_resit_participants(repo, user, course_id)}


@router.get("/export-resit/{course_id}")
def export_resit(course_id: int,
                 user: User = Depends(require_staff),
                 repo: ResitRepository = Depends(get_repository)):
    content = exports.export_resit_participants(repo, user, course_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": "attachment; filename=resit_participants_course_{}.csv".format(course_id)
        },
    )
