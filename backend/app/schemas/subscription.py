from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class SubscriptionCreate(BaseModel):
    plan_id: Optional[str] = None


class SubscriptionResponse(BaseModel):
    id: Optional[str] = None
    user_id: Optional[str] = None
    plan_id: str
    status: str
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    cancel_at_period_end: bool = False
    provider: Optional[str] = None
    provider_payment_id: Optional[str] = None

    class Config:
        from_attributes = True
