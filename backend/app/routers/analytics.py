from collections import Counter
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.config import FREE_CREDITS
from app.core.auth import get_current_user
from app.database import get_db
from app.models.prompt import SavedPrompt
from app.services.profile_service import get_or_create_profile
from app.services.supabase_auth import AuthUser

router = APIRouter(prefix="/api", tags=["analytics"])


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def weekly_activity(created: list[datetime], now: datetime, days: int = 7) -> list[int]:
    """Prompts saved per day over the last week, oldest day first."""
    counts = [0] * days
    for created_at in created:
        days_ago = (now - _as_utc(created_at)).days
        if 0 <= days_ago < days:
            counts[days - 1 - days_ago] += 1
    return counts


def popular_tags(tag_lists: list[list[str]], top: int = 5) -> list[dict]:
    counter = Counter(tag for tags in tag_lists if isinstance(tags, list) for tag in tags)
    ranked = sorted(counter.items(), key=lambda item: (-item[1], item[0]))
    return [{"tag": tag, "count": count} for tag, count in ranked[:top]]


@router.get("/analytics")
def get_analytics(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    profile = get_or_create_profile(db, current_user)
    prompts = (
        db.query(SavedPrompt)
        .filter(SavedPrompt.user_id == current_user.id)
        .order_by(SavedPrompt.created_at.desc())
        .all()
    )

    now = datetime.now(timezone.utc)
    credits = profile.image_analysis_credits or 0
    analytics = {
        "totalPrompts": len(prompts),
        "imagePrompts": sum(1 for p in prompts if p.type == "image"),
        "textPrompts": sum(1 for p in prompts if p.type == "text"),
        "favoritePrompts": sum(1 for p in prompts if p.is_favorite),
        "imageAnalysisUsed": max(0, FREE_CREDITS - credits),
        "imageAnalysisRemaining": credits,
        "joinDate": _as_utc(profile.created_at).isoformat(),
        "lastActivity": _as_utc(prompts[0].created_at).isoformat() if prompts else None,
        "weeklyActivity": weekly_activity([p.created_at for p in prompts], now),
        "popularTags": popular_tags([p.tags for p in prompts]),
    }
    return {"analytics": analytics}
