from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.auth import get_current_user
from app.database import get_db
from app.errors import AppError
from app.schemas.subscription import SubscriptionCreate, SubscriptionResponse
from app.services.subscription_service import (
    cancel_subscription,
    create_pending_subscription,
    get_current_subscription,
)
from app.services.supabase_auth import AuthUser

router = APIRouter(prefix="/api", tags=["subscription"])

SUBSCRIBABLE_PLANS = ("pro", "enterprise")


@router.get("/subscription")
def get_subscription(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subscription = get_current_subscription(db, current_user.id)
    return {"subscription": SubscriptionResponse.model_validate(subscription)}


@router.post("/subscription")
def create_subscription(
    request: SubscriptionCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if request.plan_id not in SUBSCRIBABLE_PLANS:
        raise AppError("Valid plan ID is required", 400)

    subscription = create_pending_subscription(db, current_user.id, request.plan_id)
    return {
        "subscription": SubscriptionResponse.model_validate(subscription),
        "message": "Subscription created. Please complete payment to activate.",
    }


@router.delete("/subscription")
def cancel_current_subscription(
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    subscription = cancel_subscription(db, current_user.id)
    return {"subscription": SubscriptionResponse.model_validate(subscription)}
