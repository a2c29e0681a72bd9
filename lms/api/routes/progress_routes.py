# progress_routes.py
from typing import Any, Dict

from fastapi import APIRouter, Depends

from lms.api.deps import get_current_user, get_progress_service
from lms.models.progress_model import ProgressUpdate, TimeSpentUpdate
from lms.services.progress_service import ProgressService
from lms.utils.responses import envelope

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("")
def get_progress(
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProgressService = Depends(get_progress_service),
):
    items = svc.get_progress(user["_id"])
    return envelope(items, count=len(items))


@router.put("")
def update_progress(
    body: ProgressUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProgressService = Depends(get_progress_service),
):
    return envelope(svc.update_progress(
        user["_id"],
        body.courseId,
        body.progress,
        completed=body.completed,
        last_watched=body.lastWatched,
        rewatch=body.rewatch,
    ))


@router.put("/time")
def update_time_spent(
    body: TimeSpentUpdate,
    user: Dict[str, Any] = Depends(get_current_user),
    svc: ProgressService = Depends(get_progress_service),
):
    return envelope(svc.update_time_spent(user["_id"], body.courseId, body.timeSpent))
