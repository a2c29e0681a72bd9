# lms/config/settings.py
import os
from dataclasses import dataclass

from dotenv import load_dotenv


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_database: str = "lms"
    # Las transacciones multi-documento requieren replica set; en un mongod
    # standalone se desactivan y la cascada corre paso a paso.
    mongo_transactions: bool = True
    mongo_timeout_ms: int = 5000
    redis_uri: str = "redis://localhost:6379/0"
    session_ttl_seconds: int = 86400
    port: int = 8000
    log_level: str = "INFO"
    client_url: str = "http://localhost:3000"

    @classmethod
    def from_env(cls) -> "Settings":
        """Lee la configuración del entorno (y del .env si existe)."""
        load_dotenv()
        return cls(
            mongo_uri=os.getenv("MONGO_URI", cls.mongo_uri),
            mongo_database=os.getenv("MONGO_DATABASE", cls.mongo_database),
            mongo_transactions=_as_bool(os.getenv("MONGO_TRANSACTIONS"), cls.mongo_transactions),
            mongo_timeout_ms=int(os.getenv("MONGO_TIMEOUT_MS", cls.mongo_timeout_ms)),
            redis_uri=os.getenv("REDIS_URI", cls.redis_uri),
            session_ttl_seconds=int(os.getenv("SESSION_TTL_SECONDS", cls.session_ttl_seconds)),
            port=int(os.getenv("LMS_PORT", cls.port)),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            client_url=os.getenv("CLIENT_URL", cls.client_url),
        )
