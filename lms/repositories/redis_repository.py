from typing import Optional
import logging

import redis

from lms.utils.security import new_session_token

logger = logging.getLogger(__name__)


class SessionRepository:
    """
    Sesiones de login en Redis: clave session:{token} -> userId, con TTL.
    El cliente redis es thread-safe y se reutiliza entre requests.
    """

    def __init__(self, client: redis.Redis, ttl_seconds: int = 86400):
        self.client = client
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def _key(token: str) -> str:
        return f"session:{token}"

    def create(self, user_id: str) -> str:
        token = new_session_token()
        self.client.set(self._key(token), user_id, ex=self.ttl_seconds)
        return token

    def resolve(self, token: str) -> Optional[str]:
        user_id = self.client.get(self._key(token))
        if isinstance(user_id, bytes):
            user_id = user_id.decode("utf-8")
        return user_id or None

    def delete(self, token: str) -> None:
        self.client.delete(self._key(token))
