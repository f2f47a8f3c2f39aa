from typing import Optional

from pydantic import BaseModel

from app.schemas.subscription import SubscriptionResponse


class CreateIntentRequest(BaseModel):
    planId: Optional[str] = None


class PaymentIntentResponse(BaseModel):
    id: str
    amount: int
    currency: str
    status: Optional[str] = None
    paymentUrl: Optional[str] = None
    metadata: dict[str, str]


class CreateIntentResponse(BaseModel):
    paymentIntent: PaymentIntentResponse
    subscription: SubscriptionResponse
    provider: str
