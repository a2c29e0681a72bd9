from typing import Any, Callable, Dict, List, Optional, TypeVar
from datetime import datetime, timezone
import logging

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ASCENDING, DESCENDING, MongoClient
from pymongo.client_session import ClientSession

from lms.utils.errors import NotFound

logger = logging.getLogger(__name__)

T = TypeVar("T")


def utcnow() -> datetime:
    # Mongo guarda UTC sin tz y con precisión de milisegundos; devolvemos lo
    # mismo para que el documento en memoria coincida con el leído
    now = datetime.now(timezone.utc)
    return now.replace(tzinfo=None, microsecond=now.microsecond // 1000 * 1000)


def to_object_id(value: Any, label: str = "Resource") -> ObjectId:
    """Convierte un id (str u ObjectId) a ObjectId; un id inválido es un 404."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(str(value))
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found")


def stringify_ids(value: Any) -> Any:
    """ObjectId -> str en todo el documento (incluye arrays y subdocumentos)."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: stringify_ids(v) for k, v in value.items()}
    if isinstance(value, list):
        return [stringify_ids(v) for v in value]
    return value


def session_opts(session: Optional[ClientSession]) -> Dict[str, Any]:
    """kwargs para pymongo: solo pasa `session` cuando hay transacción abierta."""
    return {"session": session} if session is not None else {}


class MongoRepository:
    def __init__(self, db, collection_name: str):
        self.col = db[collection_name]

    def create(self, data: Dict[str, Any], session: Optional[ClientSession] = None,
               timestamps: bool = True) -> Dict[str, Any]:
        if timestamps:
            now = utcnow()
            data.setdefault("createdAt", now)
            data.setdefault("updatedAt", now)
        res = self.col.insert_one(data, **session_opts(session))
        data["_id"] = res.inserted_id
        return data

    def find_one(self, _id: Any, projection: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        try:
            oid = to_object_id(_id)
        except NotFound:
            return None
        return self.col.find_one({"_id": oid}, projection)

    def find(self, query: Dict[str, Any], projection: Optional[Dict[str, Any]] = None,
             sort: Optional[List] = None, skip: int = 0, limit: int = 0) -> List[Dict[str, Any]]:
        cursor = self.col.find(query, projection)
        if sort:
            cursor = cursor.sort(sort)
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return list(cursor)

    def find_by_ids(self, ids: List[Any], projection: Optional[Dict[str, Any]] = None) -> Dict[ObjectId, Dict[str, Any]]:
        """Índice {_id: doc} para 'popular' referencias en un solo viaje."""
        unique = list({to_object_id(i) for i in ids if i is not None})
        if not unique:
            return {}
        return {d["_id"]: d for d in self.col.find({"_id": {"$in": unique}}, projection)}

    def count(self, query: Dict[str, Any]) -> int:
        return self.col.count_documents(query)

    def update(self, _id: Any, updates: Dict[str, Any],
               projection: Optional[Dict[str, Any]] = None,
               where: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """$set + updatedAt. Con `where` el update es condicional: si no matchea devuelve None."""
        oid = to_object_id(_id)
        updates = dict(updates)
        updates["updatedAt"] = utcnow()
        res = self.col.update_one({**(where or {}), "_id": oid}, {"$set": updates})
        if where and res.matched_count == 0:
            return None
        return self.col.find_one({"_id": oid}, projection)

    def delete(self, _id: Any, session: Optional[ClientSession] = None) -> int:
        res = self.col.delete_one({"_id": to_object_id(_id)}, **session_opts(session))
        return res.deleted_count


class RecordStore:
    """
    Handle explícito sobre la base: colecciones + transacciones.
    Lo crea el entry point (main.py) y se inyecta en cada servicio.
    """

    def __init__(self, client: MongoClient, db_name: str, transactions: bool = True):
        self.client = client
        self.db = client[db_name]
        self.transactions = transactions
        self.courses = MongoRepository(self.db, "courses")
        self.users = MongoRepository(self.db, "users")
        self.purchases = MongoRepository(self.db, "purchases")
        self.activities = MongoRepository(self.db, "recent_activities")

    def ensure_indexes(self) -> None:
        self.users.col.create_index("email", unique=True)
        self.users.col.create_index("purchasedCourses.courseId")
        self.courses.col.create_index([("isPublished", ASCENDING), ("isDeleted", ASCENDING), ("createdAt", DESCENDING)])
        self.courses.col.create_index("instructor")
        self.purchases.col.create_index("courseId")
        self.purchases.col.create_index("userId")
        self.activities.col.create_index([("userId", ASCENDING), ("createdAt", DESCENDING)])

    def run_transaction(self, callback: Callable[[Optional[ClientSession]], T]) -> T:
        """
        Ejecuta `callback(session)` como unidad todo-o-nada.
        with_transaction reintenta ante errores transitorios y hace abort si
        el callback lanza. Sin transacciones el callback recibe None.
        """
        if not self.transactions:
            return callback(None)
        with self.client.start_session() as session:
            return session.with_transaction(callback)

    def close(self) -> None:
        self.client.close()
        logger.info("Conexión a Mongo cerrada")
