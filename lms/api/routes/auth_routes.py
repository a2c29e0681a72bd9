from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, Request, status

from lms.api.deps import get_current_user, get_sessions, get_user_service
from lms.models.user_model import LoginIn, RegisterIn
from lms.repositories.redis_repository import SessionRepository
from lms.services.user_service import UserService
from lms.utils.responses import envelope

router = APIRouter(prefix="/auth", tags=["auth"])

logger = logging.getLogger(__name__)


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterIn,
    users: UserService = Depends(get_user_service),
    sessions: SessionRepository = Depends(get_sessions),
):
    user = users.register(payload.name, payload.email, payload.password, payload.role)
    token = sessions.create(user["_id"])
    logger.info(f"✅ Usuario creado con _id={user['_id']}")
    return envelope({"token": token, "user": user})


@router.post("/login")
def login(
    payload: LoginIn,
    users: UserService = Depends(get_user_service),
    sessions: SessionRepository = Depends(get_sessions),
):
    """
    Login con credenciales: { "email": "..", "password": ".." }
    Devuelve el token de sesión guardado en Redis.
    """
    user = users.authenticate(payload.email, payload.password)
    token = sessions.create(user["_id"])
    return envelope({
        "token": token,
        "auth_header": f"Bearer {token}",
        "expires_in": sessions.ttl_seconds,
        "user": user,
    })


@router.post("/logout")
def logout(
    request: Request,
    user: Dict[str, Any] = Depends(get_current_user),
    sessions: SessionRepository = Depends(get_sessions),
):
    token = getattr(request.state, "session_token", None)
    if token:
        sessions.delete(token)
    return envelope({}, message="Logged out")


@router.get("/me")
def me(user: Dict[str, Any] = Depends(get_current_user)):
    return envelope(user)
