import logging

from pymongo import MongoClient
from pymongo.errors import PyMongoError
import redis

from lms.config.settings import Settings
from lms.repositories.mongo_repository import RecordStore

logger = logging.getLogger(__name__)


# ==================================
# 🟢 MongoDB
# ==================================
def connect_mongo(settings: Settings) -> RecordStore:
    """Abre el cliente, verifica con ping y devuelve el RecordStore con índices."""
    client = MongoClient(
        settings.mongo_uri,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        retryReads=True,
        retryWrites=True,
    )
    try:
        client.admin.command("ping")
    except PyMongoError as e:
        logger.error(f"❌ Error al conectar a MongoDB: {e}")
        client.close()
        raise

    store = RecordStore(client, settings.mongo_database, transactions=settings.mongo_transactions)
    store.ensure_indexes()
    logger.info(f"🟢 Mongo conectado a la base: {store.db.name} (transacciones={store.transactions})")
    return store


# ==================================
# ⚡ Redis
# ==================================
def connect_redis(settings: Settings) -> redis.Redis:
    client = redis.from_url(settings.redis_uri, decode_responses=True)
    try:
        client.ping()
    except redis.RedisError as e:
        logger.error(f"❌ Error al conectar a Redis: {e}")
        raise
    logger.info("⚡ Redis conectado.")
    return client
