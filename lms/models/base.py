# lms/models/base.py
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict


class MongoBaseModel(BaseModel):
    """
    Base para documentos que se guardan en Mongo: admite ObjectId en los
    campos y se vuelca tal cual (sin convertir ids) para el insert.
    """

    model_config = ConfigDict(populate_by_name=True, arbitrary_types_allowed=True)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=False)


class PayloadModel(BaseModel):
    """Base de los bodies de request: rechaza campos desconocidos."""

    model_config = ConfigDict(extra="forbid")

    def provided(self) -> Dict[str, Any]:
        # solo los campos que el cliente mandó (PUT parcial)
        return self.model_dump(exclude_unset=True)
