from sqlalchemy import Column, Integer, String, UniqueConstraint

from app.database import Base


class RateLimitCounter(Base):
    """Fixed-window request counter shared by every API instance."""
    __tablename__ = "rate_limit_counters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    bucket_key = Column(String(255), nullable=False)
    window_start = Column(Integer, nullable=False)  # epoch seconds
    count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("bucket_key", "window_start", name="uq_rate_limit_bucket_window"),
    )
