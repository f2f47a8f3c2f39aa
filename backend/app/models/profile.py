from sqlalchemy import Column, String, Integer, DateTime, CheckConstraint

from app.database import Base
from app.models.base import utc_now


class Profile(Base):
    """Application-level user record keyed by the identity provider's user id."""
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True)
    email = Column(String(255), nullable=True, index=True)
    image_analysis_credits = Column(Integer, nullable=False, default=10)
    plan_type = Column(String(20), nullable=False, default="free")  # free | pro | enterprise
    current_subscription_id = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False)

    __table_args__ = (
        CheckConstraint("image_analysis_credits >= 0", name="ck_profiles_credits_non_negative"),
    )
