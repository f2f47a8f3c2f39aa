import logging

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from app.config import get_payment_config, get_plan, validate_payment_config
from app.core.auth import get_current_user
from app.database import get_db
from app.errors import AppError, log_error
from app.schemas.payment import CreateIntentRequest, CreateIntentResponse
from app.schemas.subscription import SubscriptionResponse
from app.services.payment_providers import get_payment_provider
from app.services.profile_service import get_or_create_profile
from app.services.subscription_service import (
    attach_payment,
    create_pending_subscription,
    process_webhook,
)
from app.services.supabase_auth import AuthUser
from app.services.webhook_verifiers import get_webhook_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment", tags=["payment"])


@router.post("/create-intent", response_model=CreateIntentResponse)
def create_payment_intent(
    request: CreateIntentRequest,
    current_user: AuthUser = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open a pending subscription and a checkout at the active provider."""
    config = get_payment_config()
    is_valid, errors = validate_payment_config(config)
    if not is_valid:
        raise AppError(f"Payment configuration error: {', '.join(errors)}", 500)

    plan = get_plan(request.planId)
    if plan is None:
        raise AppError("Valid plan ID is required", 400)

    profile = get_or_create_profile(db, current_user)
    subscription = create_pending_subscription(
        db, current_user.id, plan.plan_id, provider=config.default_provider
    )

    provider = get_payment_provider(config)
    email = current_user.email or profile.email or ""
    try:
        intent = provider.create_payment_intent(
            amount=plan.price,
            currency=config.currency,
            metadata={
                "user_id": current_user.id,
                "plan_id": plan.plan_id,
                "subscription_id": subscription.id,
            },
            customer_email=email,
            customer_name=email.split("@")[0] if email else "User",
        )
    except AppError as e:
        log_error(e, f"Failed to create {provider.name} payment intent")
        raise

    subscription = attach_payment(db, subscription, intent.id)

    return {
        "paymentIntent": intent.to_dict(),
        "subscription": SubscriptionResponse.model_validate(subscription),
        "provider": config.default_provider,
    }


@router.post("/webhook")
async def payment_webhook(request: Request, db: Session = Depends(get_db)):
    """Payment notification from the active provider."""
    raw_body = await request.body()

    config = get_payment_config()
    provider = get_payment_provider(config)
    verifier = get_webhook_verifier(provider.name)

    try:
        # Provider lookup and database writes are blocking
        result = await run_in_threadpool(
            process_webhook, db, provider, verifier, raw_body, dict(request.headers)
        )
    except AppError as e:
        log_error(e, "Payment webhook error")
        raise

    logger.info(
        "Webhook for payment %s processed: status=%s activated=%s",
        result.payment_id,
        result.status,
        result.activated,
    )
    return {"received": True}
