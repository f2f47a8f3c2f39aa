"""Fixed-window rate limiting backed by the shared database.

Counters live in ``rate_limit_counters`` rather than process memory, so every
API instance sees the same totals. Each hit is one atomic upsert.
"""
import logging
import time
from dataclasses import dataclass

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.models.rate_limit import RateLimitCounter

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


@dataclass
class RateLimitResult:
    allowed: bool
    limit: int
    count: int
    retry_after: int


def window_start_for(now: float, window_seconds: int) -> int:
    return int(now) - int(now) % window_seconds


def hit(
    db: Session,
    bucket_key: str,
    limit: int,
    window_seconds: int = 60,
    now: float | None = None,
) -> RateLimitResult:
    """Record one request for ``bucket_key`` and report whether it is allowed."""
    now = time.time() if now is None else now
    window_start = window_start_for(now, window_seconds)

    dialect = db.get_bind().dialect.name
    insert = _INSERTS.get(dialect)
    if insert is None:
        raise RuntimeError(f"Rate limiting is not supported on {dialect}")

    stmt = insert(RateLimitCounter).values(
        bucket_key=bucket_key,
        window_start=window_start,
        count=1,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["bucket_key", "window_start"],
        set_={"count": RateLimitCounter.count + 1},
    ).returning(RateLimitCounter.count)

    count = db.execute(stmt).scalar_one()
    if count == 1:
        # First hit of a new window: drop expired windows for this key
        db.query(RateLimitCounter).filter(
            RateLimitCounter.bucket_key == bucket_key,
            RateLimitCounter.window_start < window_start,
        ).delete(synchronize_session=False)
    db.commit()

    retry_after = max(1, window_start + window_seconds - int(now))
    return RateLimitResult(allowed=count <= limit, limit=limit, count=count, retry_after=retry_after)
