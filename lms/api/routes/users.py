# lms/api/routes/users.py
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query

from lms.api.deps import (
    get_activity_service,
    get_current_user,
    get_profile_service,
    get_user_service,
)
from lms.models.user_model import AvatarIn, ChangeEmailIn, ChangePasswordIn, ProfileUpdate
from lms.services.activity_service import ActivityService
from lms.services.profile_service import ProfileService
from lms.services.user_service import UserService
from lms.utils.responses import envelope

# Todas las rutas exigen sesión
router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(get_current_user)])


# ----------------------------------------------------
# 🟢 Perfil
# ----------------------------------------------------
@router.get("/profile")
def get_profile(
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProfileService = Depends(get_profile_service),
):
    return envelope(svc.get_profile(user["_id"]))


@router.put("/profile")
def update_profile(
    body: ProfileUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return envelope(svc.update_profile(user["_id"], body.provided()))


@router.post("/avatar")
def upload_avatar(
    body: AvatarIn,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return envelope(svc.set_avatar(user["_id"], body.avatar))


# ----------------------------------------------------
# 📊 Vistas derivadas
# ----------------------------------------------------
@router.get("/certificates")
def get_certificates(
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProfileService = Depends(get_profile_service),
):
    items = svc.get_certificates(user["_id"])
    return envelope(items, count=len(items))


@router.get("/stats")
def get_user_stats(
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProfileService = Depends(get_profile_service),
):
    return envelope(svc.get_user_stats(user["_id"]))


@router.get("/activity")
def get_recent_activity(
    limit: int = Query(20, ge=1, le=100),
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ActivityService = Depends(get_activity_service),
):
    items = svc.list_for_user(user["_id"], limit=limit)
    return envelope(items, count=len(items))


# ----------------------------------------------------
# 🔑 Credenciales
# ----------------------------------------------------
@router.put("/change-password")
def change_password(
    body: ChangePasswordIn,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    svc.change_password(user["_id"], body.currentPassword, body.newPassword)
    return envelope(message="Password updated successfully")


@router.put("/change-email")
def change_email(
    body: ChangeEmailIn,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: UserService = Depends(get_user_service),
):
    return envelope(svc.change_email(user["_id"], body.email, body.password), message="Email updated successfully")
