from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    image_analysis_credits: int
    plan_type: str
    current_subscription_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class AdminCreditsUpdate(BaseModel):
    """Request body for an admin credit adjustment."""
    userId: str = Field(..., min_length=1)
    credits: int = Field(..., ge=0)
