from sqlalchemy import Column, String, Text, DateTime, Boolean, JSON, Index

from app.database import Base
from app.models.base import new_id, utc_now


class SavedPrompt(Base):
    """A prompt saved by a user. Owned exclusively by user_id."""
    __tablename__ = "saved_prompts"

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), nullable=False, index=True)
    prompt_text = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)  # image | text
    tags = Column(JSON, nullable=False, default=list)
    is_favorite = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)

    __table_args__ = (
        Index("ix_saved_prompts_user_created", "user_id", "created_at"),
    )


class GalleryPrompt(Base):
    """Curated public prompt shown as a suggestion."""
    __tablename__ = "prompts"

    id = Column(String(36), primary_key=True, default=new_id)
    prompt_text = Column(Text, nullable=False)
    type = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utc_now, nullable=False)
