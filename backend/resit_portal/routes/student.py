"""
Student API routes - grades, resit eligibility and self-registration.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from resit_portal.models import User
from resit_portal.repository import ResitRepository
from resit_portal.routes.auth import get_repository, require_student
from resit_portal.services.resit_registration import register_for_resit

router = APIRouter(prefix="/api/student")


class DeclareResitRequest(BaseModel):
    course_id: int = Field(..., description="Course whose resit exam to register for")


@router.get("/my-grades")
def my_grades(user: User = Depends(require_student),
              repo: ResitRepository = Depends(get_repository)):
    return {"grades": repo.grades_for_student(user.id)}


@router.post("/declare-resit")
def declare_resit(request: DeclareResitRequest,
                  user: User = Depends(require_student),
                  repo: ResitRepository = Depends(get_repository)):
    """Register the caller for a course's resit exam."""
    register_for_resit(repo, user, request.course_id)
    return {"message": "Successfully registered for the resit exam."}


@router.get("/my-resit-exams")
def my_resit_exams(user: User = Depends(require_student),
                   repo: ResitRepository = Depends(get_repository)):
    return {"resitExams": repo.resit_exams_for_student(user.id)}


@router.get("/eligible-resits")
def eligible_resits(user: User = Depends(require_student),
                    repo: ResitRepository = Depends(get_repository)):
    """Courses the caller could register a resit for right now."""
    return {"courses": repo.eligible_unregistered_courses(user.id)}
