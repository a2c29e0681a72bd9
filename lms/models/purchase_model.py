# lms/models/purchase_model.py
from datetime import datetime
from typing import Literal, Optional

from bson import ObjectId
from pydantic import Field

from lms.models.base import MongoBaseModel, PayloadModel

PaymentStatus = Literal["pending", "completed", "failed"]


class PurchaseIn(PayloadModel):
    paymentMethod: Optional[str] = Field(None, min_length=1)


class Purchase(MongoBaseModel):
    userId: ObjectId
    courseId: ObjectId
    amount: float = Field(..., ge=0)
    paymentMethod: str = "stripe"
    # no hay pasarela de pago: la compra se registra directamente como completed
    paymentStatus: PaymentStatus = "completed"
    purchasedAt: datetime
