# lms/services/progress_service.py
from datetime import datetime, timezone
from numbers import Real
import math
from typing import Any, Dict, List, Optional
import logging

from lms.models.activity_model import ActionType
from lms.models.user_model import PurchasedCourse, certificate_id
from lms.repositories.mongo_repository import RecordStore, stringify_ids, to_object_id, utcnow
from lms.services.activity_service import ActivityService
from lms.utils.errors import NotFound, ValidationError

logger = logging.getLogger(__name__)

ENTRY = "purchasedCourses.$"


def _naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _find_entry(user: Optional[Dict[str, Any]], course_oid) -> PurchasedCourse:
    for raw in (user or {}).get("purchasedCourses", []):
        if raw.get("courseId") == course_oid:
            return PurchasedCourse.from_document(raw)
    raise NotFound("Course not found in user purchases")


class ProgressService:
    def __init__(self, store: RecordStore, activity: Optional[ActivityService] = None):
        self.store = store
        self.activity = activity or ActivityService(store)

    def _load_entry(self, user_oid, course_oid) -> PurchasedCourse:
        user = self.store.users.col.find_one(
            {"_id": user_oid, "purchasedCourses.courseId": course_oid},
            {"purchasedCourses": 1},
        )
        return _find_entry(user, course_oid)

    def _apply(self, user_oid, course_oid, update: Dict[str, Any]) -> PurchasedCourse:
        """Update condicional sobre la entrada del curso y relectura del resultado."""
        result = self.store.users.col.update_one(
            {"_id": user_oid, "purchasedCourses.courseId": course_oid},
            update,
        )
        if result.matched_count == 0:
            raise NotFound("Course not found in user purchases")
        return self._load_entry(user_oid, course_oid)

    @staticmethod
    def _validate_progress(progress: Any) -> int:
        if isinstance(progress, bool) or not isinstance(progress, Real):
            raise ValidationError("Progress must be a number")
        # NaN no cae en ninguna de las dos comparaciones
        if not math.isfinite(progress) or progress < 0 or progress > 100:
            raise ValidationError("Progress must be between 0 and 100")
        return int(round(progress))

    def update_progress(
        self,
        user_id: Any,
        course_id: Any,
        progress: Any,
        completed: Optional[bool] = None,
        last_watched: Optional[datetime] = None,
        rewatch: bool = False,
    ) -> Dict[str, Any]:
        """
        Actualiza el progreso de una inscripción con un único update atómico
        sobre la entrada del array (operador posicional).

        - completed=True fuerza progress=100, sella completedAt y asigna el
          certificateId.
        - Sin `rewatch` el progreso nunca baja ($max); con `rewatch` se pisa
          y la marca de completado se limpia.
        - completed=None deja la marca como estaba; False la limpia.
        """
        value = self._validate_progress(progress)
        user_oid = to_object_id(user_id, "User")
        course_oid = to_object_id(course_id, "Course")
        now = utcnow()
        watched = _naive_utc(last_watched) or now

        set_fields: Dict[str, Any] = {f"{ENTRY}.lastWatched": watched}
        update: Dict[str, Any] = {"$set": set_fields}
        if completed:
            set_fields[f"{ENTRY}.progress"] = 100
            set_fields[f"{ENTRY}.completed"] = True
            set_fields[f"{ENTRY}.completedAt"] = now
            set_fields[f"{ENTRY}.certificateId"] = certificate_id(user_oid, course_oid)
        elif rewatch:
            set_fields[f"{ENTRY}.progress"] = value
            set_fields[f"{ENTRY}.completed"] = False
        else:
            update["$max"] = {f"{ENTRY}.progress": value}
            if completed is False:
                set_fields[f"{ENTRY}.completed"] = False

        previous = self._load_entry(user_oid, course_oid)
        current = self._apply(user_oid, course_oid, update)

        # la transición se mide contra la lectura previa al update
        if completed and not previous.completed:
            self._record_completion(user_oid, course_oid)

        return {"progress": current.progress, "completed": current.completed, "lastWatched": watched}

    def _record_completion(self, user_oid, course_oid) -> None:
        course = self.store.courses.find_one(course_oid, {"title": 1}) or {}
        title = course.get("title", "a course")
        logger.info(f"[progress] usuario {user_oid} completó {course_oid}")
        self.activity.record(
            user_oid, ActionType.COURSE_COMPLETED, f"Completed {title}",
            related_id=course_oid, related_model="Course",
        )
        self.activity.record(
            user_oid, ActionType.CERTIFICATE_EARNED, f"Earned a certificate for {title}",
            related_id=course_oid, related_model="Course",
            metadata={"certificateId": certificate_id(user_oid, course_oid)},
        )

    def update_time_spent(self, user_id: Any, course_id: Any, delta_seconds: Any) -> Dict[str, float]:
        """Suma segundos al timeSpent acumulado ($inc atómico, nunca se pisa)."""
        if (
            isinstance(delta_seconds, bool)
            or not isinstance(delta_seconds, Real)
            or not math.isfinite(delta_seconds)
            or delta_seconds < 0
        ):
            raise ValidationError("Time spent must be a non-negative number of seconds")
        user_oid = to_object_id(user_id, "User")
        course_oid = to_object_id(course_id, "Course")

        entry = self._apply(user_oid, course_oid, {"$inc": {f"{ENTRY}.timeSpent": delta_seconds}})
        return {"timeSpent": entry.timeSpent}

    def get_progress(self, user_id: Any) -> List[Dict[str, Any]]:
        """Progreso por curso, con datos del curso para mostrar."""
        user = self.store.users.find_one(user_id, {"purchasedCourses": 1})
        if not user:
            raise NotFound("User not found")
        entries = [PurchasedCourse.from_document(raw) for raw in user.get("purchasedCourses", [])]
        courses = self.store.courses.find_by_ids(
            [e.courseId for e in entries],
            {"title": 1, "thumbnail": 1, "category": 1, "totalDuration": 1},
        )

        out: List[Dict[str, Any]] = []
        for e in entries:
            course = courses.get(e.courseId)
            if course is None:
                # curso purgado entre lecturas
                continue
            out.append({
                "courseId": e.courseId,
                "title": course.get("title"),
                "thumbnail": course.get("thumbnail"),
                "category": course.get("category"),
                "totalDuration": course.get("totalDuration", 0),
                "progress": e.progress,
                "completed": e.completed,
                "lastWatched": e.lastWatched,
                "enrolledAt": e.enrolledAt,
                "timeSpent": e.timeSpent,
            })
        return stringify_ids(out)
