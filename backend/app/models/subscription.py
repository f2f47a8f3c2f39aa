from sqlalchemy import Column, String, DateTime, Boolean, Index

from app.database import Base
from app.models.base import new_id, utc_now


class Subscription(Base):
    """Billing-period record tracking a user's plan entitlement.

    Lifecycle: pending -> active on a verified payment, and
    pending/active -> canceled when superseded.
    """
    __tablename__ = "subscriptions"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    plan_id = Column(String(20), nullable=False)  # free | pro | enterprise
    status = Column(String(20), nullable=False, default="pending")
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    cancel_at_period_end = Column(Boolean, nullable=False, default=False)
    provider = Column(String(20), nullable=True)
    provider_payment_id = Column(String(255), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_subscriptions_user_status", "user_id", "status"),
    )
