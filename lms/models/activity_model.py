# lms/models/activity_model.py
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal, Optional

from bson import ObjectId
from pydantic import Field

from lms.models.base import MongoBaseModel


class ActionType(str, Enum):
    COURSE_ENROLLED = "course_enrolled"
    COURSE_COMPLETED = "course_completed"
    CERTIFICATE_EARNED = "certificate_earned"
    PROFILE_UPDATED = "profile_updated"
    COMMENT_POSTED = "comment_posted"
    LOGIN = "login"


class RecentActivity(MongoBaseModel):
    """Registro de auditoría: se inserta y nunca se modifica."""

    userId: ObjectId
    actionType: ActionType
    description: str = Field(..., min_length=1)
    relatedId: Optional[ObjectId] = None
    relatedModel: Optional[Literal["Course", "User"]] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime

    def to_document(self) -> Dict[str, Any]:
        doc = super().to_document()
        doc["actionType"] = self.actionType.value
        return doc
