from fastapi import APIRouter, Depends

from resit_portal.models import User
from resit_portal.repository import ResitRepository
from resit_portal.routes.auth import get_current_user, get_repository
from resit_portal.services.dashboard import build_dashboard

router = APIRouter(prefix="/api")


@router.get("/dashboard")
def dashboard(user: User = Depends(get_current_user),
              repo: ResitRepository = Depends(get_repository)):
    """Role-shaped summary for the caller."""
    return build_dashboard(repo, user)
