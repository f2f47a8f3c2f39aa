"""Tests for webhook authentication per payment provider."""
import hashlib
import json
import time

import pytest
import stripe

from app.errors import AppError
from app.services.webhook_verifiers import (
    MidtransWebhookVerifier,
    StripeWebhookVerifier,
    XenditWebhookVerifier,
    get_webhook_verifier,
    midtrans_signature,
)

SERVER_KEY = "SB-Mid-server-abc123"


def midtrans_body(**overrides):
    payload = {
        "order_id": "garuda-ai-sub-1-1700000000000",
        "status_code": "200",
        "gross_amount": "49000.00",
        "transaction_id": "trx-1",
        "transaction_status": "settlement",
    }
    payload.update(overrides)
    if "signature_key" not in payload:
        payload["signature_key"] = midtrans_signature(
            payload["order_id"], payload["status_code"], payload["gross_amount"], SERVER_KEY
        )
    return json.dumps(payload).encode()


class TestMidtransSignature:
    """The signature is SHA-512 over order_id, status_code, gross_amount and server key."""

    def test_matches_sha512_of_concatenation(self):
        expected = hashlib.sha512(b"order-1" + b"200" + b"49000.00" + SERVER_KEY.encode()).hexdigest()
        assert midtrans_signature("order-1", "200", "49000.00", SERVER_KEY) == expected

    def test_valid_signature_accepted(self):
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(midtrans_body(), {}, {"server_key": SERVER_KEY}) is True

    @pytest.mark.parametrize("field,value", [
        ("order_id", "garuda-ai-sub-2-1700000000000"),
        ("status_code", "201"),
        ("gross_amount", "4900.00"),
    ])
    def test_tampered_field_rejected(self, field, value):
        payload = json.loads(midtrans_body())
        payload[field] = value
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(json.dumps(payload).encode(), {}, {"server_key": SERVER_KEY}) is False

    def test_wrong_server_key_rejected(self):
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(midtrans_body(), {}, {"server_key": "other-key"}) is False

    def test_missing_signature_rejected(self):
        payload = json.loads(midtrans_body())
        del payload["signature_key"]
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(json.dumps(payload).encode(), {}, {"server_key": SERVER_KEY}) is False

    def test_invalid_json_rejected(self):
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(b"not json", {}, {"server_key": SERVER_KEY}) is False

    def test_unconfigured_server_key_rejects(self):
        verifier = MidtransWebhookVerifier()
        assert verifier.verify(midtrans_body(), {}, {"server_key": ""}) is False


class TestXenditToken:
    SETTINGS = {"webhook_token": "callback-token-123"}

    def test_matching_callback_token_accepted(self):
        verifier = XenditWebhookVerifier()
        headers = {"X-CALLBACK-TOKEN": "callback-token-123"}
        assert verifier.verify(b"{}", headers, self.SETTINGS) is True

    def test_signature_header_accepted(self):
        verifier = XenditWebhookVerifier()
        headers = {"x-signature": "callback-token-123"}
        assert verifier.verify(b"{}", headers, self.SETTINGS) is True

    def test_wrong_token_rejected(self):
        verifier = XenditWebhookVerifier()
        headers = {"x-callback-token": "guess"}
        assert verifier.verify(b"{}", headers, self.SETTINGS) is False

    def test_missing_header_rejected(self):
        verifier = XenditWebhookVerifier()
        assert verifier.verify(b"{}", {}, self.SETTINGS) is False

    def test_empty_configured_token_never_matches(self):
        verifier = XenditWebhookVerifier()
        headers = {"x-callback-token": ""}
        assert verifier.verify(b"{}", headers, {"webhook_token": ""}) is False


class TestStripeSignature:
    SECRET = "whsec_test_secret"

    def _signed_headers(self, body: bytes, secret: str) -> dict:
        timestamp = int(time.time())
        signature = stripe.WebhookSignature._compute_signature(
            f"{timestamp}.{body.decode()}", secret
        )
        return {"Stripe-Signature": f"t={timestamp},v1={signature}"}

    def test_valid_signature_accepted(self):
        body = json.dumps({"id": "evt_1", "object": "event", "data": {"object": {"id": "cs_1"}}}).encode()
        verifier = StripeWebhookVerifier()
        headers = self._signed_headers(body, self.SECRET)
        assert verifier.verify(body, headers, {"webhook_secret": self.SECRET}) is True

    def test_signature_from_other_secret_rejected(self):
        body = json.dumps({"id": "evt_1", "object": "event"}).encode()
        verifier = StripeWebhookVerifier()
        headers = self._signed_headers(body, "whsec_other")
        assert verifier.verify(body, headers, {"webhook_secret": self.SECRET}) is False

    def test_missing_header_rejected(self):
        verifier = StripeWebhookVerifier()
        assert verifier.verify(b"{}", {}, {"webhook_secret": self.SECRET}) is False


def test_unknown_provider_raises():
    with pytest.raises(AppError) as exc_info:
        get_webhook_verifier("paypal")
    assert exc_info.value.status_code == 400


def test_registry_returns_matching_verifier():
    assert isinstance(get_webhook_verifier("midtrans"), MidtransWebhookVerifier)
    assert isinstance(get_webhook_verifier("xendit"), XenditWebhookVerifier)
    assert isinstance(get_webhook_verifier("stripe"), StripeWebhookVerifier)
