from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from bson import ObjectId
from pydantic import EmailStr, Field

from lms.models.base import MongoBaseModel, PayloadModel

Role = Literal["student", "instructor", "admin"]

WEBSITE_PATTERN = r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"


class SocialLinks(PayloadModel):
    twitter: Optional[str] = None
    linkedin: Optional[str] = None
    github: Optional[str] = None


class RegisterIn(PayloadModel):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=6)
    # admin no se auto-registra
    role: Literal["student", "instructor"] = "student"


class LoginIn(PayloadModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ProfileUpdate(PayloadModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    bio: Optional[str] = Field(None, max_length=500)
    location: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, pattern=WEBSITE_PATTERN)
    skills: Optional[List[str]] = None
    socialLinks: Optional[SocialLinks] = None


class AvatarIn(PayloadModel):
    avatar: str = Field(..., min_length=1)


class ChangePasswordIn(PayloadModel):
    currentPassword: str = Field(..., min_length=1)
    newPassword: str = Field(..., min_length=6)


class ChangeEmailIn(PayloadModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PurchasedCourse(MongoBaseModel):
    """Entrada embebida en users.purchasedCourses (una por courseId)."""

    courseId: ObjectId
    enrolledAt: datetime
    progress: int = Field(default=0, ge=0, le=100)
    lastWatched: Optional[datetime] = None
    completed: bool = False
    completedAt: Optional[datetime] = None
    timeSpent: float = Field(default=0, ge=0)  # segundos acumulados
    certificateId: Optional[str] = None

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "PurchasedCourse":
        return cls.model_validate(doc)


def certificate_id(user_id: Any, course_id: Any) -> str:
    """
    Id de certificado estable: depende solo del par (usuario, curso), no de
    la posición del curso entre los completados.
    """
    return f"CERT-{str(user_id)[-6:].upper()}-{str(course_id)[-6:].upper()}"
