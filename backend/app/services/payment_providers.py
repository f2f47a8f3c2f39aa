"""Payment gateway adapters.

Each adapter turns a generic checkout request into the provider's REST call
and normalizes the answer into a ``PaymentIntent``. Nothing here retries: a
failed call raises ``PaymentProviderError`` and the client must try again.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Any

import requests
import stripe

from app.config import (
    PaymentConfig,
    ProviderConfig,
    get_active_provider_config,
    get_app_url,
    get_payment_config,
    get_plan,
)
from app.errors import AppError, PaymentProviderError, log_error

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT_SECONDS = 30


@dataclass
class PaymentIntent:
    """Provider-normalized handle for an initiated, not yet settled payment."""
    id: str
    amount: int
    currency: str
    status: str | None
    payment_url: str | None
    metadata: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "paymentUrl": self.payment_url,
            "metadata": self.metadata,
        }


@dataclass
class PaymentVerification:
    """Result of asking the provider for the current state of a payment."""
    is_valid: bool
    status: str
    metadata: dict[str, str] = field(default_factory=dict)


def build_order_id(subscription_id: str) -> str:
    """Order reference shared by all providers: garuda-ai-<subscription>-<ms>."""
    return f"garuda-ai-{subscription_id}-{int(time.time() * 1000)}"


def _error_body(response: requests.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


class PaymentProvider:
    """Interface implemented by every payment gateway adapter."""

    name = ""
    display_name = ""

    def __init__(self, config: ProviderConfig):
        self.config = config
        self.settings = config.settings

    def create_payment_intent(
        self,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        customer_email: str,
        customer_name: str,
    ) -> PaymentIntent:
        raise NotImplementedError

    def verify_payment(self, payment_id: str) -> PaymentVerification:
        raise NotImplementedError

    def payment_id_from_webhook(self, payload: dict[str, Any]) -> str | None:
        raise NotImplementedError

    def _post(self, url: str, **kwargs) -> requests.Response:
        try:
            return requests.post(url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
        except requests.RequestException as e:
            log_error(e, f"{self.display_name} request failed")
            raise PaymentProviderError(self.display_name, "Payment service unavailable")

    def _lookup(self, url: str, **kwargs) -> requests.Response | None:
        """GET a payment status; None when the provider cannot be reached."""
        try:
            return requests.get(url, timeout=REQUEST_TIMEOUT_SECONDS, **kwargs)
        except requests.RequestException as e:
            logger.warning("%s status lookup failed: %s", self.display_name, e)
            return None


class MidtransProvider(PaymentProvider):
    """Midtrans Core API (``/charge``) adapter."""

    name = "midtrans"
    display_name = "Midtrans"

    SUCCESS_STATUSES = ("capture", "settlement")

    def _auth(self) -> tuple[str, str]:
        # Basic auth with the server key as username and an empty password
        return (self.settings["server_key"], "")

    def create_payment_intent(self, amount, currency, metadata, customer_email, customer_name):
        plan = get_plan(metadata["plan_id"])
        if plan is None:
            raise AppError("Valid plan ID is required", 400)

        payload = {
            "transaction_details": {
                "order_id": build_order_id(metadata["subscription_id"]),
                "gross_amount": amount,
            },
            "credit_card": {"secure": True},
            "customer_details": {
                "email": customer_email,
                "first_name": customer_name,
            },
            "item_details": [{
                "id": plan.midtrans_item_id,
                "price": amount,
                "quantity": 1,
                "name": plan.name,
            }],
            "custom_field1": metadata["user_id"],
            "custom_field2": metadata["plan_id"],
            "custom_field3": metadata["subscription_id"],
        }

        response = self._post(
            f"{self.settings['api_url']}/charge",
            json=payload,
            headers={"Accept": "application/json", "Content-Type": "application/json"},
            auth=self._auth(),
        )
        if not response.ok:
            messages = _error_body(response).get("error_messages") or []
            raise PaymentProviderError(
                self.display_name, messages[0] if messages else "Payment creation failed"
            )

        result = response.json()
        logger.info("Midtrans charge created: %s", result.get("transaction_id"))
        return PaymentIntent(
            id=result["transaction_id"],
            amount=amount,
            currency=currency,
            status=result.get("transaction_status"),
            payment_url=result.get("redirect_url"),
            metadata=metadata,
        )

    def verify_payment(self, payment_id):
        response = self._lookup(
            f"{self.settings['api_url']}/{payment_id}/status",
            headers={"Accept": "application/json"},
            auth=self._auth(),
        )
        if response is None or not response.ok:
            return PaymentVerification(is_valid=False, status="error")

        result = response.json()
        status = result.get("transaction_status", "")
        metadata = {
            "user_id": result.get("custom_field1"),
            "plan_id": result.get("custom_field2"),
            "subscription_id": result.get("custom_field3"),
        }
        return PaymentVerification(
            is_valid=status in self.SUCCESS_STATUSES,
            status=status,
            metadata={k: v for k, v in metadata.items() if v},
        )

    def payment_id_from_webhook(self, payload):
        return payload.get("transaction_id")


class XenditProvider(PaymentProvider):
    """Xendit Invoice API adapter."""

    name = "xendit"
    display_name = "Xendit"

    def _auth(self) -> tuple[str, str]:
        return (self.settings["secret_key"], "")

    def create_payment_intent(self, amount, currency, metadata, customer_email, customer_name):
        plan = get_plan(metadata["plan_id"])
        if plan is None:
            raise AppError("Valid plan ID is required", 400)

        app_url = get_app_url()
        payload = {
            "external_id": build_order_id(metadata["subscription_id"]),
            "amount": amount,
            "currency": currency,
            "payer_email": customer_email,
            "description": f"{plan.name} - Garuda AI",
            "success_redirect_url": f"{app_url}/payment/success",
            "failure_redirect_url": f"{app_url}/payment/failed",
            "metadata": metadata,
        }

        response = self._post(
            f"{self.settings['api_url']}/v2/invoices",
            json=payload,
            headers={"Content-Type": "application/json"},
            auth=self._auth(),
        )
        if not response.ok:
            message = _error_body(response).get("message") or "Payment creation failed"
            raise PaymentProviderError(self.display_name, message)

        result = response.json()
        logger.info("Xendit invoice created: %s", result.get("id"))
        return PaymentIntent(
            id=result["id"],
            amount=amount,
            currency=currency,
            status=result.get("status"),
            payment_url=result.get("invoice_url"),
            metadata=metadata,
        )

    def verify_payment(self, payment_id):
        response = self._lookup(
            f"{self.settings['api_url']}/v2/invoices/{payment_id}",
            auth=self._auth(),
        )
        if response is None or not response.ok:
            return PaymentVerification(is_valid=False, status="error")

        result = response.json()
        status = result.get("status", "")
        return PaymentVerification(
            is_valid=status == "PAID",
            status=status,
            metadata=result.get("metadata") or {},
        )

    def payment_id_from_webhook(self, payload):
        return payload.get("id")


class StripeProvider(PaymentProvider):
    """Stripe Checkout adapter (one-off payment per billing period)."""

    name = "stripe"
    display_name = "Stripe"

    def create_payment_intent(self, amount, currency, metadata, customer_email, customer_name):
        plan = get_plan(metadata["plan_id"])
        if plan is None:
            raise AppError("Valid plan ID is required", 400)

        app_url = get_app_url()
        try:
            session = stripe.checkout.Session.create(
                api_key=self.settings["secret_key"],
                mode="payment",
                customer_email=customer_email or None,
                line_items=[{
                    # IDR is a zero-decimal currency for Stripe
                    "price_data": {
                        "currency": currency.lower(),
                        "unit_amount": amount,
                        "product_data": {"name": f"{plan.name} - Garuda AI"},
                    },
                    "quantity": 1,
                }],
                metadata=metadata,
                client_reference_id=metadata["subscription_id"],
                success_url=f"{app_url}/payment/success",
                cancel_url=f"{app_url}/payment/failed",
            )
        except stripe.StripeError as e:
            raise PaymentProviderError(self.display_name, str(e))

        logger.info("Stripe checkout session created: %s", session.id)
        return PaymentIntent(
            id=session.id,
            amount=amount,
            currency=currency,
            status=session.status,
            payment_url=session.url,
            metadata=metadata,
        )

    def verify_payment(self, payment_id):
        try:
            session = stripe.checkout.Session.retrieve(payment_id, api_key=self.settings["secret_key"])
        except stripe.StripeError as e:
            logger.warning("Stripe session lookup failed for %s: %s", payment_id, e)
            return PaymentVerification(is_valid=False, status="error")

        metadata = dict(session.metadata or {})
        return PaymentVerification(
            is_valid=session.payment_status == "paid",
            status=session.payment_status,
            metadata=metadata,
        )

    def payment_id_from_webhook(self, payload):
        return (payload.get("data") or {}).get("object", {}).get("id")


PROVIDER_CLASSES: dict[str, type[PaymentProvider]] = {
    "midtrans": MidtransProvider,
    "xendit": XenditProvider,
    "stripe": StripeProvider,
}


def get_payment_provider(config: PaymentConfig | None = None) -> PaymentProvider:
    """Instantiate the adapter for the configured default provider."""
    config = config or get_payment_config()
    provider_config = get_active_provider_config(config)
    provider_class = PROVIDER_CLASSES.get(config.default_provider)
    if provider_class is None:
        raise AppError(f"Unsupported payment provider: {config.default_provider}", 500)
    return provider_class(provider_config)
