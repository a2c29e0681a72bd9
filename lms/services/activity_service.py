# lms/services/activity_service.py
from typing import Any, Dict, List, Optional
import logging

from pymongo.errors import PyMongoError

from lms.models.activity_model import ActionType, RecentActivity
from lms.repositories.mongo_repository import RecordStore, stringify_ids, to_object_id, utcnow

logger = logging.getLogger(__name__)


class ActivityService:
    def __init__(self, store: RecordStore):
        self.store = store

    def record(
        self,
        user_id: Any,
        action_type: ActionType,
        description: str,
        related_id: Any = None,
        related_model: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Agrega una entrada al historial. Es best-effort: un fallo acá no debe
        romper la operación principal (ya confirmada), solo se loguea.
        """
        activity = RecentActivity(
            userId=to_object_id(user_id, "User"),
            actionType=action_type,
            description=description,
            relatedId=to_object_id(related_id) if related_id is not None else None,
            relatedModel=related_model,
            metadata=metadata or {},
            createdAt=utcnow(),
        )
        try:
            doc = self.store.activities.create(activity.to_document(), timestamps=False)
        except PyMongoError as e:
            logger.warning(f"[activity] No se pudo registrar '{action_type.value}' para {user_id}: {e}")
            return None
        return stringify_ids(doc)

    def list_for_user(self, user_id: Any, limit: int = 20) -> List[Dict[str, Any]]:
        items = self.store.activities.find(
            {"userId": to_object_id(user_id, "User")},
            sort=[("createdAt", -1), ("_id", -1)],
            limit=limit,
        )
        return [stringify_ids(i) for i in items]
