"""
Notification API routes - sending messages and reading one's own inbox.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from resit_portal.models import User
from resit_portal.repository import ResitRepository
from resit_portal.routes.auth import get_current_user, get_repository, require_staff
from resit_portal.services import notifications

router = APIRouter(prefix="/api")


class NotifyRequest(BaseModel):
    message: str
    target_user_id: Optional[int] = None
    course_id: Optional[int] = None


@router.post("/notify", status_code=201)
def notify(request: NotifyRequest,
           user: User = Depends(require_staff),
           repo: ResitRepository = Depends(get_repository)):
    recipients = notifications.notify(
        repo, request.message,
        target_user_id=request.target_user_id,
        course_id=request.course_id,
    )
    return {"message": "Notification(s) sent.", "recipients": recipients}


@router.get("/notifications")
def my_notifications(user: User = Depends(get_current_user),
                     repo: ResitRepository = Depends(get_repository)):
    return {"notifications": notifications.list_notifications(repo, user.id)}
