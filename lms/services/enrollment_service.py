# lms/services/enrollment_service.py
from typing import Any, Dict, Optional
import logging

from lms.models.activity_model import ActionType
from lms.models.purchase_model import Purchase
from lms.models.user_model import PurchasedCourse
from lms.repositories.mongo_repository import (
    RecordStore,
    session_opts,
    stringify_ids,
    to_object_id,
    utcnow,
)
from lms.services.activity_service import ActivityService
from lms.utils.errors import NotFound, Unavailable

logger = logging.getLogger(__name__)

DEFAULT_PAYMENT_METHOD = "stripe"


class EnrollmentService:
    def __init__(self, store: RecordStore, activity: Optional[ActivityService] = None):
        self.store = store
        self.activity = activity or ActivityService(store)

    # -------------------- API --------------------

    def enroll(self, user_id: Any, course_id: Any, payment_method: Optional[str] = None) -> Dict[str, Any]:
        """
        Inscribe al usuario en el curso (compra simulada, siempre completed).

        Re-inscribirse no es error: devuelve alreadyEnrolled=True sin crear
        otra Purchase. La condición "no inscripto" se evalúa en el mismo
        update que agrega la entrada, así dos requests simultáneos no pueden
        inscribir dos veces.
        """
        course = self.store.courses.find_one(course_id)
        if not course:
            raise NotFound("Course not found")
        if course.get("isDeleted"):
            raise Unavailable("This course is no longer available")

        user_oid = to_object_id(user_id, "User")
        course_oid = course["_id"]
        if not self.store.users.find_one(user_oid, {"_id": 1}):
            raise NotFound("User not found")

        method = payment_method or DEFAULT_PAYMENT_METHOD

        def _write(session) -> Optional[Dict[str, Any]]:
            opts = session_opts(session)
            now = utcnow()
            entry = PurchasedCourse(courseId=course_oid, enrolledAt=now).to_document()

            # 1) insert-if-absent sobre el array embebido
            pushed = self.store.users.col.update_one(
                {"_id": user_oid, "purchasedCourses.courseId": {"$ne": course_oid}},
                {"$push": {"purchasedCourses": entry}},
                **opts,
            )
            if pushed.modified_count == 0:
                return None

            # 2) contador del curso; si lo archivaron mientras tanto, se aborta
            bumped = self.store.courses.col.update_one(
                {"_id": course_oid, "isDeleted": {"$ne": True}},
                {"$inc": {"totalStudents": 1}},
                **opts,
            )
            if bumped.matched_count == 0:
                if session is None:
                    # sin transacción no hay abort: deshacemos el push a mano
                    self.store.users.col.update_one(
                        {"_id": user_oid},
                        {"$pull": {"purchasedCourses": {"courseId": course_oid}}},
                    )
                raise Unavailable("This course is no longer available")

            # 3) registro de la compra
            purchase = Purchase(
                userId=user_oid,
                courseId=course_oid,
                amount=course.get("price", 0),
                paymentMethod=method,
                purchasedAt=now,
            ).to_document()
            self.store.purchases.create(purchase, session=session, timestamps=False)
            return purchase

        purchase = self.store.run_transaction(_write)
        user = self.store.users.find_one(user_oid, {"password": 0})

        if purchase is None:
            return {
                "purchase": None,
                "user": stringify_ids(user),
                "alreadyEnrolled": True,
                "message": "Course already purchased",
            }

        logger.info(f"[enroll] usuario {user_oid} inscripto en {course_oid}")
        self.activity.record(
            user_oid,
            ActionType.COURSE_ENROLLED,
            f"Enrolled in {course.get('title', 'a course')}",
            related_id=course_oid,
            related_model="Course",
            metadata={"amount": purchase["amount"], "paymentMethod": method},
        )
        return {
            "purchase": stringify_ids(purchase),
            "user": stringify_ids(user),
            "alreadyEnrolled": False,
            "message": None,
        }
