# lms/api/deps.py
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, Request

from lms.repositories.mongo_repository import RecordStore
from lms.repositories.redis_repository import SessionRepository
from lms.services.activity_service import ActivityService
from lms.services.course_service import CourseService
from lms.services.enrollment_service import EnrollmentService
from lms.services.profile_service import ProfileService
from lms.services.progress_service import ProgressService
from lms.services.user_service import UserService
from lms.utils.errors import AuthenticationError, Forbidden


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_sessions(request: Request) -> SessionRepository:
    return request.app.state.sessions


def get_activity_service(store: RecordStore = Depends(get_store)) -> ActivityService:
    return ActivityService(store)


def get_course_service(store: RecordStore = Depends(get_store)) -> CourseService:
    return CourseService(store)


def get_enrollment_service(
    store: RecordStore = Depends(get_store),
    activity: ActivityService = Depends(get_activity_service),
) -> EnrollmentService:
    return EnrollmentService(store, activity)


def get_progress_service(
    store: RecordStore = Depends(get_store),
    activity: ActivityService = Depends(get_activity_service),
) -> ProgressService:
    return ProgressService(store, activity)


def get_profile_service(store: RecordStore = Depends(get_store)) -> ProfileService:
    return ProfileService(store)


def get_user_service(
    store: RecordStore = Depends(get_store),
    activity: ActivityService = Depends(get_activity_service),
) -> UserService:
    return UserService(store, activity)


# ----------------------------------------------------
# 🔐 Usuario actual
# ----------------------------------------------------
def get_optional_user(request: Request, users: UserService = Depends(get_user_service)) -> Optional[Dict[str, Any]]:
    user_id = getattr(getattr(request, "state", None), "user_id", None)
    if not user_id:
        return None
    return users.get_public(user_id)


def get_current_user(user: Optional[Dict[str, Any]] = Depends(get_optional_user)) -> Dict[str, Any]:
    if not user:
        raise AuthenticationError("Not authorized to access this route")
    return user


def require_roles(*roles: str) -> Callable[..., Dict[str, Any]]:
    def _dependency(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
        if user.get("role") not in roles:
            raise Forbidden(f"User role {user.get('role')} is not authorized to access this route")
        return user

    return _dependency
