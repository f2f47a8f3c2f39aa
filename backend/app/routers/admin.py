"""Admin endpoints, restricted to the account named by ADMIN_EMAIL."""
import logging
import math
import os
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import FREE_CREDITS
from app.core.auth import require_admin
from app.database import get_db
from app.errors import AppError, log_error
from app.models.profile import Profile
from app.models.prompt import SavedPrompt
from app.models.subscription import Subscription
from app.schemas.profile import AdminCreditsUpdate, ProfileResponse
from app.services import profile_service
from app.services.supabase_auth import AuthUser, list_auth_users

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.get("/stats")
def get_stats(
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    now = datetime.now(timezone.utc)

    prompts_by_type = dict(
        db.query(SavedPrompt.type, func.count(SavedPrompt.id)).group_by(SavedPrompt.type).all()
    )
    active_plans = dict(
        db.query(Subscription.plan_id, func.count(Subscription.id))
        .filter(Subscription.status == "active")
        .group_by(Subscription.plan_id)
        .all()
    )
    distribution = {plan: active_plans.get(plan, 0) for plan in ("free", "pro", "enterprise")}

    stats = {
        "totalUsers": db.query(func.count(Profile.id)).scalar() or 0,
        "totalPrompts": db.query(func.count(SavedPrompt.id)).scalar() or 0,
        "imagePrompts": prompts_by_type.get("image", 0),
        "textPrompts": prompts_by_type.get("text", 0),
        "activeSubscriptions": sum(n for plan, n in active_plans.items() if plan != "free"),
        "newUsersLast30Days": profile_service.count_profiles_since(db, now - timedelta(days=30)),
        "dailyRegistrations": profile_service.daily_registrations(db, days=7, now=now),
        "subscriptionDistribution": distribution,
        "lastUpdated": now.isoformat(),
    }
    return {"stats": stats}


@router.get("/users")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1),
    search: str | None = Query(None),
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    limit = min(limit, 100)
    rows, total = profile_service.list_profiles(db, page=page, limit=limit, search=search)

    users = []
    for profile, subscription in rows:
        user = ProfileResponse.model_validate(profile).model_dump(mode="json")
        user["subscription"] = (
            {
                "plan_id": subscription.plan_id,
                "status": subscription.status,
                "current_period_end": (
                    subscription.current_period_end.isoformat()
                    if subscription.current_period_end else None
                ),
            }
            if subscription else None
        )
        users.append(user)

    total_pages = math.ceil(total / limit) if total else 0
    return {
        "users": users,
        "pagination": {
            "currentPage": page,
            "totalPages": total_pages,
            "totalUsers": total,
            "hasNextPage": page < total_pages,
            "hasPrevPage": page > 1,
            "limit": limit,
        },
    }


@router.put("/users")
def update_user_credits(
    request: AdminCreditsUpdate,
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    profile = profile_service.set_credits(db, request.userId, request.credits)
    logger.info("Admin %s set credits of %s to %d", admin.email, request.userId, request.credits)
    return {"success": True, "profile": ProfileResponse.model_validate(profile)}


@router.get("/debug")
def debug_profiles(
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Compare identities known to Supabase Auth with local profiles."""
    auth_users = list_auth_users()
    profiles = db.query(Profile).all()

    auth_ids = {u.id for u in auth_users}
    profile_ids = {p.id for p in profiles}

    return {
        "debug": {
            "authUsersCount": len(auth_users),
            "profilesCount": len(profiles),
            "authUsers": [
                {"id": u.id, "email": u.email, "created_at": u.created_at} for u in auth_users
            ],
            "profiles": [
                {"id": p.id, "email": p.email, "created_at": p.created_at.isoformat()}
                for p in profiles
            ],
            "missingProfiles": [u.id for u in auth_users if u.id not in profile_ids],
            "orphanedProfiles": [p.id for p in profiles if p.id not in auth_ids],
            "adminEmail": os.environ.get("ADMIN_EMAIL"),
        }
    }


@router.post("/debug")
def sync_missing_profiles(
    admin: AuthUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Create a free profile and subscription for every identity lacking one."""
    auth_users = list_auth_users()
    existing = {row[0] for row in db.query(Profile.id).all()}
    missing = [u for u in auth_users if u.id not in existing]

    if missing:
        try:
            for user in missing:
                db.add(Profile(
                    id=user.id,
                    email=user.email or "",
                    image_analysis_credits=FREE_CREDITS,
                    plan_type="free",
                ))
            db.flush()
            for user in missing:
                db.add(Subscription(user_id=user.id, plan_id="free", status="active"))
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            log_error(e, "Failed to create missing profiles")
            raise AppError("Failed to create missing profiles", 500)

    logger.info("Synced %d missing profiles", len(missing))
    return {
        "success": True,
        "message": f"Successfully synced {len(missing)} missing profiles",
        "createdCount": len(missing),
        "totalAuthUsers": len(auth_users),
    }
