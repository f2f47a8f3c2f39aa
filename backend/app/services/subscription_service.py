"""Subscription lifecycle and payment webhook reconciliation.

A subscription row is created ``pending`` at checkout and becomes ``active``
only after a webhook has been authenticated and the provider confirms the
payment. Activation and the matching profile upgrade are committed together.
"""
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import FREE_CREDITS, credits_for_plan
from app.errors import AppError, log_error
from app.models.profile import Profile
from app.models.subscription import Subscription
from app.services.payment_providers import PaymentProvider
from app.services.webhook_verifiers import WebhookVerifier

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def billing_period(start: datetime | None = None) -> tuple[datetime, datetime]:
    """One calendar month starting at ``start`` (default now)."""
    start = start or utc_now()
    return start, start + relativedelta(months=1)


def free_subscription() -> dict[str, Any]:
    """Implicit record for users without an active paid subscription."""
    return {
        "id": None,
        "user_id": None,
        "plan_id": "free",
        "status": "active",
        "current_period_start": None,
        "current_period_end": None,
        "cancel_at_period_end": False,
        "provider": None,
        "provider_payment_id": None,
    }


def get_active_subscription(db: Session, user_id: str) -> Subscription | None:
    """Latest active subscription by creation time, the authoritative one."""
    return (
        db.query(Subscription)
        .filter(Subscription.user_id == user_id, Subscription.status == "active")
        .order_by(Subscription.created_at.desc())
        .first()
    )


def get_current_subscription(db: Session, user_id: str) -> Subscription | dict[str, Any]:
    subscription = get_active_subscription(db, user_id)
    if subscription is None:
        return free_subscription()
    return subscription


def create_pending_subscription(
    db: Session,
    user_id: str,
    plan_id: str,
    provider: str | None = None,
) -> Subscription:
    """Start a checkout for ``plan_id``.

    Prior pending rows are canceled before the new one is inserted, so a user
    never has more than one checkout in flight. An active subscription is left
    alone here; ``activate_subscription`` cancels it once the successor is paid.
    """
    now = utc_now()
    try:
        db.query(Subscription).filter(
            Subscription.user_id == user_id,
            Subscription.status == "pending",
        ).update({"status": "canceled", "updated_at": now}, synchronize_session=False)

        period_start, period_end = billing_period(now)
        subscription = Subscription(
            user_id=user_id,
            plan_id=plan_id,
            status="pending",
            current_period_start=period_start,
            current_period_end=period_end,
            provider=provider,
        )
        db.add(subscription)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_error(e, "Failed to create subscription")
        raise AppError("Failed to create subscription", 500)

    db.refresh(subscription)
    logger.info("Pending %s subscription %s created for user %s", plan_id, subscription.id, user_id)
    return subscription


def attach_payment(db: Session, subscription: Subscription, payment_id: str) -> Subscription:
    """Remember the provider's payment handle on the subscription."""
    subscription.provider_payment_id = payment_id
    db.commit()
    db.refresh(subscription)
    return subscription


def cancel_subscription(db: Session, user_id: str) -> Subscription:
    """Stop renewal of the active subscription at the end of its period."""
    subscription = get_active_subscription(db, user_id)
    if subscription is None:
        raise AppError("No active subscription to cancel", 404)

    subscription.cancel_at_period_end = True
    db.commit()
    db.refresh(subscription)
    return subscription


def activate_subscription(
    db: Session,
    subscription_id: str,
    user_id: str,
    plan_id: str,
) -> Subscription | None:
    """Mark a paid subscription active and upgrade the owner's profile.

    Both rows change in a single transaction. Only ``pending`` rows are
    activated: a row that is already active means the webhook was delivered
    again and nothing changes.

    Returns:
        The active subscription, or None when nothing was activated.
    """
    subscription = db.query(Subscription).filter(Subscription.id == subscription_id).first()
    if subscription is None:
        logger.warning("Payment received for unknown subscription %s", subscription_id)
        return None

    if subscription.user_id != user_id:
        logger.warning(
            "Payment metadata user %s does not own subscription %s", user_id, subscription_id
        )
        return None

    if subscription.status == "active":
        logger.info("Subscription %s already active, ignoring duplicate notification", subscription_id)
        return subscription

    if subscription.status != "pending":
        logger.warning(
            "Payment settled for %s subscription %s; not activating",
            subscription.status,
            subscription_id,
        )
        return None

    plan_id = subscription.plan_id or plan_id
    now = utc_now()
    try:
        period_start, period_end = billing_period(now)
        subscription.status = "active"
        subscription.current_period_start = period_start
        subscription.current_period_end = period_end
        subscription.cancel_at_period_end = False

        db.query(Subscription).filter(
            Subscription.user_id == user_id,
            Subscription.status == "active",
            Subscription.id != subscription_id,
        ).update({"status": "canceled", "updated_at": now}, synchronize_session=False)

        profile = db.query(Profile).filter(Profile.id == user_id).first()
        if profile is None:
            profile = Profile(id=user_id, image_analysis_credits=FREE_CREDITS)
            db.add(profile)
        profile.plan_type = plan_id
        profile.current_subscription_id = subscription_id
        profile.image_analysis_credits = credits_for_plan(plan_id)

        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        log_error(e, "Failed to activate subscription")
        raise AppError("Failed to update subscription", 500)

    db.refresh(subscription)
    logger.info("Payment successful for user %s, plan %s", user_id, plan_id)
    return subscription


@dataclass
class WebhookResult:
    payment_id: str | None
    status: str
    activated: bool


def process_webhook(
    db: Session,
    provider: PaymentProvider,
    verifier: WebhookVerifier,
    raw_body: bytes,
    headers: Mapping[str, str],
) -> WebhookResult:
    """Authenticate a payment notification and reconcile subscription state.

    The notification itself is only a trigger: the payment status used for
    the decision is fetched from the provider, so stale or out-of-order
    notifications converge on the provider's current view.

    Raises:
        AppError: 400 when the request is not authentic or not JSON.
    """
    if not verifier.verify(raw_body, headers, provider.settings):
        logger.warning("Rejected %s webhook with invalid signature", provider.name)
        raise AppError("Invalid webhook signature", 400)

    try:
        payload = json.loads(raw_body)
    except ValueError:
        raise AppError("Invalid webhook payload", 400)
    if not isinstance(payload, dict):
        raise AppError("Invalid webhook payload", 400)

    payment_id = provider.payment_id_from_webhook(payload)
    if not payment_id:
        raise AppError("Unable to extract payment ID", 400)

    verification = provider.verify_payment(payment_id)
    metadata = verification.metadata or {}
    subscription_id = metadata.get("subscription_id")
    user_id = metadata.get("user_id")
    plan_id = metadata.get("plan_id")

    if not (verification.is_valid and subscription_id and user_id and plan_id):
        logger.info(
            "Payment verification failed for payment %s: status=%s", payment_id, verification.status
        )
        return WebhookResult(payment_id=payment_id, status=verification.status, activated=False)

    subscription = activate_subscription(db, subscription_id, user_id, plan_id)
    return WebhookResult(
        payment_id=payment_id,
        status=verification.status,
        activated=subscription is not None and subscription.status == "active",
    )
