# lms/services/profile_service.py
"""
Vistas derivadas del perfil (estadísticas, certificados). Son funciones puras
del estado guardado: no escriben nada.
"""
from typing import Any, Dict, Iterable, List, Mapping
import math

from bson import ObjectId

from lms.models.user_model import PurchasedCourse, certificate_id
from lms.repositories.mongo_repository import RecordStore, stringify_ids
from lms.utils.errors import NotFound

PROFILE_FIELDS = ("name", "email", "avatar", "bio", "location", "website", "socialLinks", "role", "createdAt")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def learning_time(entries: Iterable[PurchasedCourse], courses: Mapping[ObjectId, Dict[str, Any]]) -> int:
    """
    Aproximación: progress% de la duración total de cada curso. No es el
    tiempo realmente visto (eso es timeSpent), y los dos números pueden diferir.
    """
    total = sum(
        e.progress * (courses.get(e.courseId) or {}).get("totalDuration", 0) / 100
        for e in entries
    )
    return round_half_up(total)


def completion_rate(enrolled: int, completed: int) -> int:
    return round_half_up(completed / enrolled * 100) if enrolled > 0 else 0


class ProfileService:
    def __init__(self, store: RecordStore):
        self.store = store

    def _load(self, user_id: Any) -> Dict[str, Any]:
        user = self.store.users.find_one(user_id, {"password": 0})
        if not user:
            raise NotFound("User not found")
        return user

    @staticmethod
    def _entries(user: Dict[str, Any]) -> List[PurchasedCourse]:
        return [PurchasedCourse.from_document(raw) for raw in user.get("purchasedCourses", [])]

    def _courses_for(self, entries: List[PurchasedCourse], projection: Dict[str, int]) -> Dict[ObjectId, Dict[str, Any]]:
        return self.store.courses.find_by_ids([e.courseId for e in entries], projection)

    def get_profile(self, user_id: Any) -> Dict[str, Any]:
        user = self._load(user_id)
        entries = self._entries(user)
        courses = self._courses_for(entries, {
            "title": 1, "thumbnail": 1, "category": 1, "description": 1, "totalDuration": 1,
        })

        profile: Dict[str, Any] = {"_id": user["_id"]}
        for field in PROFILE_FIELDS:
            profile[field] = user.get(field)
        profile["skills"] = user.get("skills") or []
        profile["enrolledCourses"] = len(entries)
        profile["completedCourses"] = sum(1 for e in entries if e.completed)
        profile["totalLearningTime"] = learning_time(entries, courses)
        profile["totalTimeSpent"] = sum(e.timeSpent for e in entries)
        profile["courses"] = []
        for e in entries:
            course = courses.get(e.courseId) or {}
            profile["courses"].append({
                "_id": e.courseId,
                "title": course.get("title", "Course not found"),
                "category": course.get("category", "Unknown"),
                "progress": e.progress,
                "lastAccessed": e.lastWatched or e.enrolledAt,
                "thumbnail": course.get("thumbnail"),
            })
        return stringify_ids(profile)

    def get_certificates(self, user_id: Any) -> List[Dict[str, Any]]:
        user = self._load(user_id)
        completed = [e for e in self._entries(user) if e.completed]
        courses = self._courses_for(completed, {"title": 1})
        return stringify_ids([
            {
                "_id": e.courseId,
                "courseId": e.courseId,
                "courseTitle": (courses.get(e.courseId) or {}).get("title", "Course not found"),
                "issueDate": e.completedAt or e.enrolledAt,
                # entradas viejas sin id guardado: se deriva igual, es estable
                "certificateId": e.certificateId or certificate_id(user["_id"], e.courseId),
                "downloadUrl": "#",
            }
            for e in completed
        ])

    def get_user_stats(self, user_id: Any) -> Dict[str, Any]:
        user = self._load(user_id)
        entries = self._entries(user)
        courses = self._courses_for(entries, {"totalDuration": 1, "rating": 1})

        enrolled = len(entries)
        completed = sum(1 for e in entries if e.completed)
        ratings = [c.get("rating", 0) for c in courses.values()]
        return {
            "enrolledCourses": enrolled,
            "completedCourses": completed,
            "totalLearningTime": learning_time(entries, courses),
            "totalTimeSpent": sum(e.timeSpent for e in entries),
            "averageRating": round(sum(ratings) / len(ratings), 1) if ratings else 0,
            "completionRate": completion_rate(enrolled, completed),
        }
