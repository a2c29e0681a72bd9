# lms/models/course_model.py
from typing import List, Optional

from pydantic import Field

from lms.models.base import PayloadModel


class LessonIn(PayloadModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    videoUrl: str = Field(..., min_length=1)
    duration: float = Field(..., ge=0)  # segundos
    order: int
    isPreview: bool = False


class CourseIn(PayloadModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    category: str = Field(..., min_length=1)
    thumbnail: str = Field(..., min_length=1)
    whatYouWillLearn: List[str] = Field(default_factory=list)
    lessons: List[LessonIn] = Field(default_factory=list)
    isPublished: bool = False


class CourseUpdate(PayloadModel):
    """
    PUT parcial. instructor, totalDuration, totalStudents, rating y los campos
    de borrado no son editables desde acá.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    thumbnail: Optional[str] = Field(None, min_length=1)
    whatYouWillLearn: Optional[List[str]] = None
    lessons: Optional[List[LessonIn]] = None
    isPublished: Optional[bool] = None
