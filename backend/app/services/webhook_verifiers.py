"""Inbound webhook authentication, one verifier per payment provider.

Providers use unrelated trust models (a digest derived from the payload, a
static shared token, a timestamped HMAC header), so each verifier owns its
whole predicate and the reconciler only ever calls ``verify``.
"""
import hashlib
import json
import logging
import secrets
from typing import Mapping

import stripe

from app.errors import AppError

logger = logging.getLogger(__name__)


class WebhookVerifier:
    """Decides whether a raw webhook request really came from the provider."""

    provider = ""

    def verify(self, raw_body: bytes, headers: Mapping[str, str], settings: Mapping[str, str]) -> bool:
        raise NotImplementedError


def midtrans_signature(order_id: str, status_code: str, gross_amount: str, server_key: str) -> str:
    """SHA-512 hex digest Midtrans sends as ``signature_key``."""
    raw = f"{order_id}{status_code}{gross_amount}{server_key}"
    return hashlib.sha512(raw.encode("utf-8")).hexdigest()


class MidtransWebhookVerifier(WebhookVerifier):
    provider = "midtrans"

    def verify(self, raw_body, headers, settings):
        server_key = settings.get("server_key", "")
        if not server_key:
            logger.error("Midtrans webhook received but no server key is configured")
            return False

        try:
            payload = json.loads(raw_body)
        except (ValueError, TypeError):
            return False
        if not isinstance(payload, dict):
            return False

        fields = [payload.get(name) for name in ("order_id", "status_code", "gross_amount", "signature_key")]
        if any(value is None for value in fields):
            return False
        order_id, status_code, gross_amount, signature_key = (str(value) for value in fields)

        expected = midtrans_signature(order_id, status_code, gross_amount, server_key)
        return secrets.compare_digest(expected, signature_key)


class XenditWebhookVerifier(WebhookVerifier):
    provider = "xendit"

    TOKEN_HEADERS = ("x-callback-token", "x-signature")

    def verify(self, raw_body, headers, settings):
        expected = settings.get("webhook_token", "")
        if not expected:
            logger.error("Xendit webhook received but no webhook token is configured")
            return False

        lowered = {k.lower(): v for k, v in headers.items()}
        token = next((lowered[h] for h in self.TOKEN_HEADERS if lowered.get(h)), "")
        return secrets.compare_digest(token.encode("utf-8"), expected.encode("utf-8"))


class StripeWebhookVerifier(WebhookVerifier):
    provider = "stripe"

    def verify(self, raw_body, headers, settings):
        secret = settings.get("webhook_secret", "")
        if not secret:
            logger.error("Stripe webhook received but no webhook secret is configured")
            return False

        lowered = {k.lower(): v for k, v in headers.items()}
        try:
            stripe.Webhook.construct_event(raw_body, lowered.get("stripe-signature", ""), secret)
        except ValueError:
            return False
        except stripe.SignatureVerificationError:
            return False
        return True


VERIFIERS: dict[str, WebhookVerifier] = {
    "midtrans": MidtransWebhookVerifier(),
    "xendit": XenditWebhookVerifier(),
    "stripe": StripeWebhookVerifier(),
}


def get_webhook_verifier(provider_name: str) -> WebhookVerifier:
    verifier = VERIFIERS.get(provider_name)
    if verifier is None:
        raise AppError("Unsupported payment provider for webhook", 400)
    return verifier
