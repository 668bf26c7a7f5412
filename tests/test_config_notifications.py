import asyncio

import pytest

from config import MailSettings, Settings
from notifications import NotificationSkipped, Notifier


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgres://u:p@host/db")
    monkeypatch.setenv("CORS_ORIGINS", "https://shop.example.org, https://admin.example.org")
    monkeypatch.setenv("ACCESS_TOKEN_EXPIRE_MINUTES", "15")

    settings = Settings.from_env()
    assert settings.database_url == "postgresql://u:p@host/db"
    assert settings.cors_origins == ["https://shop.example.org", "https://admin.example.org"]
    assert settings.tokens.access_ttl_minutes == 15
    assert settings.tokens.refresh_ttl_days == 30


def test_default_cors_origins(monkeypatch):
    monkeypatch.delenv("CORS_ORIGINS", raising=False)
    assert "http://localhost:5173" in Settings.from_env().cors_origins


def configured_notifier(sent):
    notifier = Notifier(MailSettings(user="shop@mail.test", password="pw", admin_email="owner@mail.test"))
    notifier._send_sync = lambda to, subject, html: sent.append((to, subject, html))
    return notifier


def test_unconfigured_mail_is_skipped():
    notifier = Notifier(MailSettings())
    with pytest.raises(NotificationSkipped):
        asyncio.run(notifier.send("a@x.com", "Hi", "<p>Hi</p>"))


def test_missing_recipient_is_skipped():
    with pytest.raises(NotificationSkipped):
        asyncio.run(configured_notifier([]).send("", "Hi", "<p>Hi</p>"))


def test_order_confirmation_goes_to_customer():
    sent = []
    order = {
        "id": 12,
        "customer_email": "buyer@mail.test",
        "customer_name": "Sam",
        "tracking_number": "GN-1-ABC",
        "final_price": 180.0,
        "payment_method": "COD",
        "status": "Pending",
        "shipping_address": "1 Main St",
        "items": [{"product_id": "p1", "name": "Watch", "price": 100.0, "quantity": 2}],
    }
    asyncio.run(configured_notifier(sent).send_order_confirmation(order))

    (to, subject, html), = sent
    assert to == "buyer@mail.test"
    assert "GN-1-ABC" in subject + html


def test_contact_alert_goes_to_admin():
    sent = []
    contact = {"id": 1, "name": "Jane", "email": "jane@mail.test", "phone": None,
               "subject": "General Inquiry", "message": "Do you ship abroad?"}
    asyncio.run(configured_notifier(sent).send_contact_alert(contact))
    assert sent[0][0] == "owner@mail.test"
