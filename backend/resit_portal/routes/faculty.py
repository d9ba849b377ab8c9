"""
Faculty secretary API routes - resit schedule uploads and exam info updates.
"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Response, UploadFile
from pydantic import BaseModel, Field

from resit_portal.models import User
from resit_portal.repository import ResitRepository
from resit_portal.routes.auth import get_repository, require_faculty_secretary
from resit_portal.services import exports
from resit_portal.services.records import BatchResult
from resit_portal.services.resit_registration import update_resit_info, upload_resit_schedule
from resit_portal.services.uploads import read_csv_rows, staged_upload

router = APIRouter(prefix="/api/faculty")

SCHEDULE_COLUMNS = ["course_code", "exam_date", "location"]


class UpdateResitInfoRequest(BaseModel):
    course_id: int
    exam_date: Optional[date] = None
    location: Optional[str] = None


class ScheduleBatchRequest(BaseModel):
    rows: List[dict] = Field(..., description="Rows with course_code, exam_date, location")


@router.post("/upload-schedule", response_model=BatchResult)
def upload_schedule(file: UploadFile = File(...),
                    user: User = Depends(require_faculty_secretary),
                    repo: ResitRepository = Depends(get_repository)):
    """Apply an uploaded schedule CSV and notify registrants. The file is deleted afterwards."""
    with staged_upload(file) as path:
        rows = read_csv_rows(path, required=SCHEDULE_COLUMNS)
        return upload_resit_schedule(repo, rows)


@router.post("/schedule", response_model=BatchResult)
def upload_schedule_rows(request: ScheduleBatchRequest,
                         user: User = Depends(require_faculty_secretary),
                         repo: ResitRepository = Depends(get_repository)):
    return upload_resit_schedule(repo, request.rows)


@router.patch("/update-resit-info")
def update_info(request: UpdateResitInfoRequest,
                user: User = Depends(require_faculty_secretary),
                repo: ResitRepository = Depends(get_repository)):
    exam = update_resit_info(repo, request.course_id,
                             exam_date=request.exam_date, location=request.location)
    return {
        "message": "Resit exam information updated.",
        "exam_date": exam.exam_date.isoformat() if exam.exam_date else None,
        "location": exam.location,
    }


@router.get("/all-resit-exams")
def all_resit_exams(user: User = Depends(require_faculty_secretary),
                    repo: ResitRepository = Depends(get_repository)):
    return {"resitExams": repo.all_resit_exams()}


@router.get("/resit-registrations/{course_id}")
def resit_registrations(course_id: int,
                        user: User = Depends(require_faculty_secretary),
                        repo: ResitRepository = Depends(get_repository)):
    return {"participants": exports.list_resit_participants(repo, user, course_id)}


@router.get("/export-resit/{course_id}")
def export_resit(course_id: int,
                 user: User = Depends(require_faculty_secretary),
                 repo: ResitRepository = Depends(get_repository)):
    content = exports.export_resit_participants(repo, user, course_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": "attachment; filename=resit_participants_course_{}.csv".format(course_id)
        },
    )
