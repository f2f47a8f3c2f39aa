"""Profile access: lazy creation, credit spending and admin queries."""
import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import FREE_CREDITS
from app.errors import AppError
from app.models.profile import Profile
from app.models.subscription import Subscription
from app.services.supabase_auth import AuthUser

logger = logging.getLogger(__name__)


def get_profile(db: Session, user_id: str) -> Profile | None:
    return db.query(Profile).filter(Profile.id == user_id).first()


def get_or_create_profile(db: Session, user: AuthUser) -> Profile:
    """Fetch the caller's profile, creating it with the free allowance if missing.

    Two concurrent first requests may both try to insert; the loser hits the
    primary key constraint and reads the winner's row instead.
    """
    profile = get_profile(db, user.id)
    if profile is not None:
        return profile

    profile = Profile(
        id=user.id,
        email=user.email,
        image_analysis_credits=FREE_CREDITS,
        plan_type="free",
    )
    db.add(profile)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        profile = get_profile(db, user.id)
        if profile is None:
            raise AppError("Profile access error", 500)
        return profile

    db.refresh(profile)
    logger.info("Created profile for user %s", user.id)
    return profile


def spend_image_credit(db: Session, user_id: str) -> int | None:
    """Atomically take one image analysis credit.

    Returns:
        The remaining credits, or None if the user had none left.
    """
    stmt = (
        update(Profile)
        .where(Profile.id == user_id, Profile.image_analysis_credits > 0)
        .values(
            image_analysis_credits=Profile.image_analysis_credits - 1,
            updated_at=datetime.now(timezone.utc),
        )
        .returning(Profile.image_analysis_credits)
    )
    remaining = db.execute(stmt).scalar_one_or_none()
    db.commit()
    return remaining


def set_credits(db: Session, user_id: str, credits: int) -> Profile:
    """Overwrite a user's image analysis credits (admin action)."""
    if credits < 0:
        raise AppError("Credits must not be negative", 400)

    profile = get_profile(db, user_id)
    if profile is None:
        raise AppError("User not found", 404)

    profile.image_analysis_credits = credits
    db.commit()
    db.refresh(profile)
    logger.info("Credits for user %s set to %d", user_id, credits)
    return profile


def list_profiles(
    db: Session,
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
) -> tuple[list[tuple[Profile, Subscription | None]], int]:
    """Page through profiles newest first, joined to their current subscription.

    Returns:
        (rows, total) where each row is (profile, subscription or None).
    """
    query = db.query(Profile)
    if search:
        query = query.filter(Profile.email.ilike(f"%{search}%"))

    total = query.count()
    offset = (page - 1) * limit
    profiles = (
        query.order_by(Profile.created_at.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    subscription_ids = [p.current_subscription_id for p in profiles if p.current_subscription_id]
    subscriptions = {}
    if subscription_ids:
        subscriptions = {
            s.id: s
            for s in db.query(Subscription).filter(Subscription.id.in_(subscription_ids)).all()
        }

    return [(p, subscriptions.get(p.current_subscription_id)) for p in profiles], total


def count_profiles_since(db: Session, since: datetime) -> int:
    return db.query(func.count(Profile.id)).filter(Profile.created_at >= since).scalar() or 0


def daily_registrations(db: Session, days: int = 7, now: datetime | None = None) -> list[int]:
    """Registrations per day for the last ``days`` days, oldest first."""
    now = now or datetime.now(timezone.utc)
    since = now - timedelta(days=days)
    rows = db.query(Profile.created_at).filter(Profile.created_at >= since).all()

    counts = [0] * days
    for (created_at,) in rows:
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        days_ago = (now - created_at).days
        if 0 <= days_ago < days:
            counts[days - 1 - days_ago] += 1
    return counts
