"""
Caller identity and role gates.

Sessions are issued by the gateway in front of this service, which
forwards the authenticated user id in the X-User-Id header. Role gates
run as route dependencies, before the route body and before any write.
"""

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from resit_portal.database import get_db
from resit_portal.errors import AuthenticationError, ForbiddenError
from resit_portal.models import Role, User
from resit_portal.repository import ResitRepository


def get_repository(db: Session = Depends(get_db)) -> ResitRepository:
    return ResitRepository(db)


def get_current_user(
    x_user_id: Optional[str] = Header(None, description="Authenticated user id"),
    repo: ResitRepository = Depends(get_repository),
) -> User:
    if not x_user_id:
        raise AuthenticationError("missing X-User-Id header")
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("invalid X-User-Id header")

    user = repo.get_user(user_id)
    if user is None:
        raise AuthenticationError("unknown user")
    return user


def require_roles(*roles: Role):
    """Dependency factory: the caller must hold one of the given roles."""
    allowed = ", ".join(r.value for r in roles)

    def dependency(user: User = Depends(get_current_user)) -> User:
        if Role(user.role) not in roles:
            raise ForbiddenError("only {} may call this operation".format(allowed))
        return user

    return dependency


require_student = require_roles(Role.STUDENT)
require_instructor = require_roles(Role.INSTRUCTOR)
require_faculty_secretary = require_roles(Role.FACULTY_SECRETARY)
require_staff = require_roles(Role.INSTRUCTOR, Role.FACULTY_SECRETARY)
