# backend/tests/modules/payments/webhooks/test_webhook_signature.py
# -*- coding: utf-8 -*-
"""
Tests de verify_webhook_signature (stripe.Webhook.construct_event).
"""

import time

import pytest

from app.modules.payments.errors import SecretNotConfigured, SignatureInvalid
from app.modules.payments.webhooks import verify_webhook_signature
from tests.helpers import WEBHOOK_SECRET, encode_event, session_completed_event, sign_payload


def test_valid_signature_returns_event():
    payload = encode_event(session_completed_event("cs_test_1", event_id="evt_ok"))

    data = verify_webhook_signature(payload, sign_payload(payload), webhook_secret=WEBHOOK_SECRET)

    assert data["id"] == "evt_ok"
    assert data["type"] == "checkout.session.completed"


def test_tampered_payload_is_rejected():
    payload = encode_event(session_completed_event("cs_test_1"))
    header = sign_payload(payload)
    tampered = payload.replace(b"4500", b"1")

    with pytest.raises(SignatureInvalid):
        verify_webhook_signature(tampered, header, webhook_secret=WEBHOOK_SECRET)


def test_wrong_secret_and_stale_timestamp_are_rejected():
    payload = encode_event(session_completed_event("cs_test_1"))

    with pytest.raises(SignatureInvalid):
        verify_webhook_signature(payload, sign_payload(payload, secret="whsec_other"), webhook_secret=WEBHOOK_SECRET)

    stale = sign_payload(payload, timestamp=int(time.time()) - 3600)
    with pytest.raises(SignatureInvalid):
        verify_webhook_signature(payload, stale, webhook_secret=WEBHOOK_SECRET, tolerance_seconds=300)


def test_missing_or_garbage_header():
    payload = encode_event(session_completed_event("cs_test_1"))

    with pytest.raises(SignatureInvalid):
        verify_webhook_signature(payload, None, webhook_secret=WEBHOOK_SECRET)
    with pytest.raises(SignatureInvalid):
        verify_webhook_signature(payload, "not-a-signature", webhook_secret=WEBHOOK_SECRET)


def test_secret_must_be_configured():
    payload = encode_event(session_completed_event("cs_test_1"))
    header = sign_payload(payload)

    with pytest.raises(SecretNotConfigured):
        verify_webhook_signature(payload, header, webhook_secret="")
    with pytest.raises(SecretNotConfigured):
        verify_webhook_signature(payload, header, webhook_secret="sk_test_not_a_webhook_secret")


def test_secret_defaults_to_settings(monkeypatch):
    from app.shared.config.settings_payments import reset_payments_settings

    monkeypatch.delenv("STRIPE_WEBHOOK_SECRET", raising=False)
    reset_payments_settings()
    payload = encode_event(session_completed_event("cs_test_1"))

    with pytest.raises(SecretNotConfigured):
        verify_webhook_signature(payload, sign_payload(payload))
