# lms/services/course_service.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple
import logging
import re

from bson import ObjectId

from lms.models.user_model import PurchasedCourse
from lms.repositories.mongo_repository import (
    RecordStore,
    session_opts,
    stringify_ids,
    to_object_id,
    utcnow,
)
from lms.utils.errors import Forbidden, NotFound, Unavailable, ValidationError

logger = logging.getLogger(__name__)

# Campos filtrables desde el query string y cómo castear su valor
FILTER_FIELDS = {
    "category": str,
    "price": float,
    "rating": float,
    "totalStudents": int,
    "totalDuration": float,
}
SORT_FIELDS = {"createdAt", "updatedAt", "price", "rating", "totalStudents", "totalDuration", "title"}
SELECT_FIELDS = {
    "title", "description", "instructor", "price", "category", "thumbnail",
    "whatYouWillLearn", "rating", "totalStudents", "lessons", "totalDuration",
    "isPublished", "createdAt", "updatedAt",
}
_FILTER_KEY = re.compile(r"^(\w+)\[(gt|gte|lt|lte|in)\]$")

ARCHIVED_PUBLISH = "Archived courses cannot be published; restore the course first"

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _actor_id(actor: Dict[str, Any]) -> ObjectId:
    return to_object_id(actor["_id"], "User")


def _is_admin(actor: Dict[str, Any]) -> bool:
    return actor.get("role") == "admin"


def _prepare_lessons(lessons: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], float]:
    """Ordena las lecciones por `order` y devuelve también la duración total."""
    ordered = sorted(lessons, key=lambda lesson: lesson["order"])
    total = sum(lesson["duration"] for lesson in ordered)
    return ordered, total


class CourseService:
    def __init__(self, store: RecordStore):
        self.store = store

    # -------------------- helpers internos --------------------
    def _get_or_404(self, course_id: Any) -> Dict[str, Any]:
        course = self.store.courses.find_one(course_id)
        if not course:
            raise NotFound("Course not found")
        return course

    def _require_owner_or_admin(self, actor: Dict[str, Any], course: Dict[str, Any], action: str) -> None:
        if _is_admin(actor):
            return
        if str(course.get("instructor")) != str(actor["_id"]):
            raise Forbidden(f"Not authorized to {action} this course")

    def _populate_users(self, courses: List[Dict[str, Any]], field: str) -> None:
        """Reemplaza la referencia `field` por {_id, name, email} (como populate)."""
        ids = [c.get(field) for c in courses if c.get(field)]
        users = self.store.users.find_by_ids(ids, {"name": 1, "email": 1})
        for c in courses:
            ref = c.get(field)
            if ref in users:
                c[field] = users[ref]

    def _build_filters(self, params: Dict[str, Any]) -> Dict[str, Any]:
        query: Dict[str, Any] = {"isPublished": True, "isDeleted": {"$ne": True}}
        for key, raw in params.items():
            if raw is None or raw == "":
                continue
            match = _FILTER_KEY.match(key)
            field, op = (match.group(1), match.group(2)) if match else (key, None)
            if field not in FILTER_FIELDS:
                continue
            cast = FILTER_FIELDS[field]
            try:
                if op == "in":
                    value: Any = {"$in": [cast(v.strip()) for v in str(raw).split(",") if v.strip()]}
                elif op:
                    value = {f"${op}": cast(raw)}
                else:
                    value = cast(raw)
            except (TypeError, ValueError):
                raise ValidationError(f"Invalid value for filter '{key}'")
            if isinstance(value, dict) and isinstance(query.get(field), dict):
                query[field].update(value)
            else:
                query[field] = value

        search = params.get("search")
        if search:
            query["title"] = {"$regex": re.escape(str(search)), "$options": "i"}
        return query

    @staticmethod
    def _build_sort(sort: Optional[str]) -> List[Tuple[str, int]]:
        order: List[Tuple[str, int]] = []
        for part in (sort or "").split(","):
            part = part.strip()
            if not part:
                continue
            direction = -1 if part.startswith("-") else 1
            field = part.lstrip("-+")
            if field in SORT_FIELDS:
                order.append((field, direction))
        return order or [("createdAt", -1)]

    @staticmethod
    def _build_projection(select: Optional[str]) -> Optional[Dict[str, int]]:
        if not select:
            return None
        fields = [f.strip() for f in select.split(",") if f.strip() in SELECT_FIELDS]
        return {f: 1 for f in fields} or None

    @staticmethod
    def _positive_int(raw: Any, default: int) -> int:
        try:
            value = int(raw)
        except (TypeError, ValueError):
            return default
        return value if value > 0 else default

    # -------------------- lecturas --------------------
    def list_published(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Catálogo público: solo cursos publicados y no archivados.
        Soporta filtros `campo` / `campo[gte|gt|lte|lt|in]`, `search`,
        `sort` (lista separada por comas, '-' = descendente), `select`,
        `page` y `limit`.
        """
        query = self._build_filters(params)
        page = self._positive_int(params.get("page"), 1)
        limit = min(self._positive_int(params.get("limit"), DEFAULT_LIMIT), MAX_LIMIT)
        start = (page - 1) * limit

        total = self.store.courses.count(query)
        items = self.store.courses.find(
            query,
            projection=self._build_projection(params.get("select")),
            sort=self._build_sort(params.get("sort")),
            skip=start,
            limit=limit,
        )
        self._populate_users(items, "instructor")

        pagination: Dict[str, Any] = {}
        if page * limit < total:
            pagination["next"] = {"page": page + 1, "limit": limit}
        if start > 0:
            pagination["prev"] = {"page": page - 1, "limit": limit}

        return {"items": stringify_ids(items), "total": total, "pagination": pagination}

    def get(self, course_id: Any, viewer_id: Any = None) -> Dict[str, Any]:
        """Detalle; si hay usuario logueado agrega isPurchased y userProgress."""
        course = self._get_or_404(course_id)
        self._populate_users([course], "instructor")

        is_purchased = False
        user_progress = None
        if viewer_id is not None:
            viewer = self.store.users.find_one(viewer_id, {"purchasedCourses": 1})
            for raw in (viewer or {}).get("purchasedCourses", []):
                if raw.get("courseId") == course["_id"]:
                    entry = PurchasedCourse.from_document(raw)
                    is_purchased = True
                    user_progress = {
                        "progress": entry.progress,
                        "completed": entry.completed,
                        "lastWatched": entry.lastWatched,
                        "timeSpent": entry.timeSpent,
                    }
                    break

        out = stringify_ids(course)
        out["isPurchased"] = is_purchased
        out["userProgress"] = user_progress
        return out

    def list_deleted(self, actor: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not _is_admin(actor):
            raise Forbidden("Only admin can view deleted courses")
        items = self.store.courses.find({"isDeleted": True}, sort=[("deletedAt", -1)])
        self._populate_users(items, "instructor")
        self._populate_users(items, "deletedBy")
        return stringify_ids(items)

    # -------------------- escrituras --------------------
    def create(self, actor: Dict[str, Any], payload: Dict[str, Any]) -> Dict[str, Any]:
        if actor.get("role") not in ("instructor", "admin"):
            raise Forbidden(f"User role {actor.get('role')} is not authorized to access this route")

        lessons, total_duration = _prepare_lessons(payload.get("lessons") or [])
        course: Dict[str, Any] = {
            "title": payload["title"],
            "description": payload["description"],
            "instructor": _actor_id(actor),
            "price": payload["price"],
            "category": payload["category"],
            "thumbnail": payload["thumbnail"],
            "whatYouWillLearn": payload.get("whatYouWillLearn") or [],
            "lessons": lessons,
            "totalDuration": total_duration,
            "rating": 0,
            "totalStudents": 0,
            "isPublished": bool(payload.get("isPublished", False)),
            "isDeleted": False,
            "deletedAt": None,
            "deletedBy": None,
        }
        created = self.store.courses.create(course)
        logger.info(f"[courses.create] {created['_id']} creado por {actor['_id']}")
        return stringify_ids(created)

    def update(self, actor: Dict[str, Any], course_id: Any, updates: Dict[str, Any]) -> Dict[str, Any]:
        course = self._get_or_404(course_id)
        self._require_owner_or_admin(actor, course, "update")
        updates = dict(updates or {})
        if "lessons" in updates:
            # totalDuration se recalcula siempre que cambian las lecciones
            updates["lessons"], updates["totalDuration"] = _prepare_lessons(updates["lessons"] or [])
        if not updates:
            return stringify_ids(course)

        # un curso archivado se publica recién después de restaurarlo
        where = {"isDeleted": {"$ne": True}} if updates.get("isPublished") else None
        updated = self.store.courses.update(course["_id"], updates, where=where)
        if updated is None:
            if where:
                raise Unavailable(ARCHIVED_PUBLISH)
            raise NotFound("Course not found")
        return stringify_ids(updated)

    def soft_delete(self, actor: Dict[str, Any], course_id: Any) -> Dict[str, Any]:
        """Archiva: no toca users ni purchases (el curso puede restaurarse)."""
        course = self._get_or_404(course_id)
        self._require_owner_or_admin(actor, course, "delete")
        archived = self.store.courses.update(course["_id"], {
            "isDeleted": True,
            "deletedAt": utcnow(),
            "deletedBy": _actor_id(actor),
            "isPublished": False,
        })
        logger.info(f"[courses.soft_delete] {course['_id']} archivado por {actor['_id']}")
        return stringify_ids(archived)

    def restore(self, actor: Dict[str, Any], course_id: Any) -> Dict[str, Any]:
        """Deshace el archivado; no vuelve a publicar."""
        course = self._get_or_404(course_id)
        self._require_owner_or_admin(actor, course, "restore")
        restored = self.store.courses.update(course["_id"], {
            "isDeleted": False,
            "deletedAt": None,
            "deletedBy": None,
        })
        return stringify_ids(restored)

    def hard_delete(self, actor: Dict[str, Any], course_id: Any) -> Dict[str, int]:
        course = self._get_or_404(course_id)
        self._require_owner_or_admin(actor, course, "delete")
        return self._purge(course["_id"])

    def force_delete(self, actor: Dict[str, Any], course_id: Any) -> Dict[str, int]:
        course = self._get_or_404(course_id)
        # solo admin, aunque el que llama sea el dueño
        if not _is_admin(actor):
            raise Forbidden("Only admin can force delete courses")
        return self._purge(course["_id"])

    def _purge(self, course_oid: ObjectId) -> Dict[str, int]:
        """
        Borrado definitivo en cascada: curso, entradas en users.purchasedCourses
        y filas de purchases. Corre como una sola transacción.
        """

        def _cascade(session) -> Dict[str, int]:
            opts = session_opts(session)
            if self.store.courses.delete(course_oid, session=session) == 0:
                # otro request lo borró primero
                raise NotFound("Course not found")
            users = self.store.users.col.update_many(
                {"purchasedCourses.courseId": course_oid},
                {"$pull": {"purchasedCourses": {"courseId": course_oid}}},
                **opts,
            )
            purchases = self.store.purchases.col.delete_many({"courseId": course_oid}, **opts)
            return {"usersUpdated": users.modified_count, "purchasesDeleted": purchases.deleted_count}

        summary = self.store.run_transaction(_cascade)
        logger.info(
            f"[courses.purge] {course_oid} eliminado: "
            f"{summary['usersUpdated']} usuarios, {summary['purchasesDeleted']} compras"
        )
        return summary
