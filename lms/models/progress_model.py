# lms/models/progress_model.py
from datetime import datetime
from typing import Optional

from pydantic import Field

from lms.models.base import PayloadModel


class ProgressUpdate(PayloadModel):
    courseId: str = Field(..., min_length=1)
    # el rango [0, 100] lo valida el servicio
    progress: float
    completed: Optional[bool] = None
    lastWatched: Optional[datetime] = None
    # permite bajar el progreso (volver a ver el curso desde el principio)
    rewatch: bool = False


class TimeSpentUpdate(PayloadModel):
    courseId: str = Field(..., min_length=1)
    # segundos a sumar (admite fracciones); el servicio rechaza negativos
    timeSpent: float
