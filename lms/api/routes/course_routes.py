# course_routes.py
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Request, status

from lms.api.deps import (
    get_course_service,
    get_current_user,
    get_enrollment_service,
    get_optional_user,
    require_roles,
)
from lms.models.course_model import CourseIn, CourseUpdate
from lms.models.purchase_model import PurchaseIn
from lms.services.course_service import CourseService
from lms.services.enrollment_service import EnrollmentService
from lms.utils.responses import envelope

router = APIRouter(prefix="/courses", tags=["courses"])


@router.get("")
def list_courses(request: Request, svc: CourseService = Depends(get_course_service)):
    result = svc.list_published(dict(request.query_params))
    return envelope(result["items"], count=len(result["items"]), pagination=result["pagination"])


# va antes de /{course_id} para que "deleted" no se tome como id
@router.get("/deleted")
def list_deleted_courses(
    user: Dict[str, Any] = Depends(get_current_user),
    svc: CourseService = Depends(get_course_service),
):
    items = svc.list_deleted(user)
    return envelope(items, count=len(items))


@router.get("/{course_id}")
def get_course(
    course_id: str,
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
    svc: CourseService = Depends(get_course_service),
):
    return envelope(svc.get(course_id, viewer_id=user["_id"] if user else None))


@router.post("", status_code=status.HTTP_201_CREATED)
def create_course(
    body: CourseIn,
    user: Dict[str, Any] = Depends(require_roles("instructor", "admin")),
    svc: CourseService = Depends(get_course_service),
):
    return envelope(svc.create(user, body.model_dump()))


@router.put("/{course_id}")
def update_course(
    course_id: str,
    body: CourseUpdate,
    user: Dict[str, Any] = Depends(require_roles("instructor", "admin")),
    svc: CourseService = Depends(get_course_service),
):
    return envelope(svc.update(user, course_id, body.provided()))


@router.delete("/{course_id}")
def delete_course(
    course_id: str,
    user: Dict[str, Any] = Depends(require_roles("instructor", "admin")),
    svc: CourseService = Depends(get_course_service),
):
    svc.hard_delete(user, course_id)
    return envelope({}, message="Course and all related data deleted successfully")


@router.delete("/{course_id}/soft")
def soft_delete_course(
    course_id: str,
    user: Dict[str, Any] = Depends(require_roles("instructor", "admin")),
    svc: CourseService = Depends(get_course_service),
):
    return envelope(svc.soft_delete(user, course_id), message="Course archived successfully")


@router.put("/{course_id}/restore")
def restore_course(
    course_id: str,
    user: Dict[str, Any] = Depends(require_roles("instructor", "admin")),
    svc: CourseService = Depends(get_course_service),
):
    return envelope(svc.restore(user, course_id), message="Course restored successfully")


@router.delete("/{course_id}/force")
def force_delete_course(
    course_id: str,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: CourseService = Depends(get_course_service),
):
    svc.force_delete(user, course_id)
    return envelope({}, message="Course permanently deleted with all related data")


@router.post("/{course_id}/purchase")
def purchase_course(
    course_id: str,
    body: Optional[PurchaseIn] = Body(None),
    user: Dict[str, Any] = Depends(get_current_user),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    result = svc.enroll(user["_id"], course_id, body.paymentMethod if body else None)
    if result["alreadyEnrolled"]:
        return envelope(message=result["message"])
    return envelope(result["purchase"], user=result["user"])
