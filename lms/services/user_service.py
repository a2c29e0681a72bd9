# lms/services/user_service.py
from typing import Any, Dict, Optional
import logging

from pymongo.errors import DuplicateKeyError

from lms.models.activity_model import ActionType
from lms.repositories.mongo_repository import RecordStore, stringify_ids, utcnow
from lms.services.activity_service import ActivityService
from lms.utils.errors import AuthenticationError, Conflict, NotFound
from lms.utils.security import hash_password, verify_password

logger = logging.getLogger(__name__)

PUBLIC = {"password": 0}


class UserService:
    """Cuentas: registro, credenciales y datos editables del perfil."""

    def __init__(self, store: RecordStore, activity: Optional[ActivityService] = None):
        self.store = store
        self.activity = activity or ActivityService(store)

    def _email_taken(self, email: str) -> bool:
        return self.store.users.count({"email": email}) > 0

    def _load_with_password(self, user_id: Any) -> Dict[str, Any]:
        user = self.store.users.find_one(user_id)
        if not user:
            raise NotFound("User not found")
        return user

    def register(self, name: str, email: str, password: str, role: str = "student") -> Dict[str, Any]:
        email = email.strip().lower()
        logger.info(f"🟦 Registrando usuario: {email}")
        if self._email_taken(email):
            raise Conflict("User already exists")

        user_doc = {
            "name": name,
            "email": email,
            "password": hash_password(password),
            "role": role,
            "bio": None,
            "location": None,
            "website": None,
            "socialLinks": {},
            "skills": [],
            "avatar": None,
            "purchasedCourses": [],
        }
        try:
            created = self.store.users.create(user_doc)
        except DuplicateKeyError:
            # carrera con otro registro del mismo email (índice único)
            raise Conflict("User already exists")
        created.pop("password", None)
        return stringify_ids(created)

    def authenticate(self, email: str, password: str) -> Dict[str, Any]:
        user = self.store.users.col.find_one({"email": email.strip().lower()})
        if not user or not verify_password(password, user.get("password", "")):
            raise AuthenticationError("Invalid credentials")
        self.activity.record(user["_id"], ActionType.LOGIN, "Logged in")
        user.pop("password", None)
        return stringify_ids(user)

    def get_public(self, user_id: Any) -> Optional[Dict[str, Any]]:
        user = self.store.users.find_one(user_id, PUBLIC)
        return stringify_ids(user) if user else None

    def update_profile(self, user_id: Any, fields: Dict[str, Any]) -> Dict[str, Any]:
        self._load_with_password(user_id)
        fields = {k: v for k, v in fields.items() if v is not None}
        updated = self.store.users.update(user_id, fields, PUBLIC) if fields else self.store.users.find_one(user_id, PUBLIC)
        if fields:
            self.activity.record(
                user_id, ActionType.PROFILE_UPDATED, "Updated profile",
                related_id=user_id, related_model="User",
                metadata={"fields": sorted(fields)},
            )
        return stringify_ids(updated)

    def set_avatar(self, user_id: Any, avatar_url: str) -> Dict[str, Any]:
        # solo se guarda la URL; la subida del archivo la resuelve otro servicio
        self._load_with_password(user_id)
        return stringify_ids(self.store.users.update(user_id, {"avatar": avatar_url}, PUBLIC))

    def change_password(self, user_id: Any, current_password: str, new_password: str) -> None:
        user = self._load_with_password(user_id)
        if not verify_password(current_password, user.get("password", "")):
            raise AuthenticationError("Current password is incorrect")
        self.store.users.update(user["_id"], {"password": hash_password(new_password), "passwordChangedAt": utcnow()})
        logger.info(f"[users] contraseña actualizada para {user['_id']}")

    def change_email(self, user_id: Any, new_email: str, password: str) -> Dict[str, Any]:
        user = self._load_with_password(user_id)
        if not verify_password(password, user.get("password", "")):
            raise AuthenticationError("Password is incorrect")
        new_email = new_email.strip().lower()
        if new_email != user.get("email") and self._email_taken(new_email):
            raise Conflict("Email is already in use")
        try:
            updated = self.store.users.update(user["_id"], {"email": new_email}, PUBLIC)
        except DuplicateKeyError:
            raise Conflict("Email is already in use")
        return stringify_ids(updated)
