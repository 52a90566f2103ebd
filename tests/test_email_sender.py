"""SMTP gönderimi ve e-posta şablonları."""
import smtplib

import pytest

from app.core.config import settings
from app.services import email_sender
from app.services.email_sender import (
    build_analysis_email_html,
    build_confirmation_email_html,
    send_analysis_email,
    send_confirmation_email,
    send_email,
)


class _FakeSMTP:
    instances: list["_FakeSMTP"] = []
    fail = False

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.actions = []
        _FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.actions.append("starttls")

    def login(self, user, password):
        self.actions.append(("login", user))

    def sendmail(self, from_addr, to_addrs, msg):
        if _FakeSMTP.fail:
            raise smtplib.SMTPRecipientsRefused({to_addrs[0]: (550, b"no such user")})
        self.actions.append(("sendmail", from_addr, tuple(to_addrs)))


@pytest.fixture
def smtp(monkeypatch):
    _FakeSMTP.instances = []
    _FakeSMTP.fail = False
    monkeypatch.setattr(email_sender.smtplib, "SMTP", _FakeSMTP)
    monkeypatch.setattr(settings, "smtp_host", "smtp.example.com")
    monkeypatch.setattr(settings, "smtp_user", "mailer@example.com")
    monkeypatch.setattr(settings, "smtp_password", "secret")
    return _FakeSMTP


def test_send_email_not_configured(monkeypatch):
    monkeypatch.setattr(settings, "smtp_host", "")
    assert send_email("anna@example.com", "Betreff", "<p>x</p>") is False


def test_send_email_uses_tls_and_login(smtp):
    assert send_email("anna@example.com", "Betreff", "<p>x</p>") is True
    actions = smtp.instances[0].actions
    assert actions[0] == "starttls"
    assert actions[1] == ("login", "mailer@example.com")
    assert actions[2][2] == ("anna@example.com",)


def test_send_email_transport_failure(smtp):
    smtp.fail = True
    assert send_email("anna@example.com", "Betreff", "<p>x</p>") is False


def test_confirmation_email_contains_link():
    subject, body = build_confirmation_email_html("http://testserver/api/confirm/abc")
    assert "bestätigen" in subject
    assert 'href="http://testserver/api/confirm/abc"' in body


def test_analysis_email_escapes_text():
    _, body = build_analysis_email_html("<b>Ich</b>\nbin")
    assert "&lt;b&gt;Ich&lt;/b&gt;<br>bin" in body


def test_send_confirmation_email_uses_given_transport():
    sent = []
    ok = send_confirmation_email(
        "anna@example.com",
        "http://testserver/api/confirm/abc",
        lambda to, subject, body: sent.append((to, subject, body)) or True,
    )
    assert ok is True
    to, subject, body = sent[0]
    assert to == "anna@example.com"
    assert subject == email_sender.CONFIRM_SUBJECT
    assert 'href="http://testserver/api/confirm/abc"' in body


def test_send_analysis_email_reports_transport_failure():
    assert send_analysis_email("anna@example.com", "Text", lambda to, subject, body: False) is False


def test_send_analysis_email_defaults_to_smtp(smtp):
    assert send_analysis_email("anna@example.com", "1. Ich bin nicht genug.") is True
    assert smtp.instances[0].actions[-1][2] == ("anna@example.com",)
