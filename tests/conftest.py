"""Pytest fixtures: test client, test DB (in-memory SQLite), sahte SMTP ve OpenAI."""
import os

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, select

# Test ortamında in-memory SQLite (app import edilmeden önce set edilmeli)
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("OPENAI_API_KEY", "sk-test-dummy")
os.environ.setdefault("PUBLIC_BASE_URL", "http://testserver")
# Analiz rate limit yüksek olsun ki tüm testler geçebilsin
os.environ.setdefault("RATE_LIMIT_ANALYZE_PER_MINUTE", "1000")

from app.api.deps import get_generator, get_send_mail
from app.core.errors import UpstreamError
from app.main import app


class FakeMailer:
    """send_email yerine: gönderilen e-postaları kaydeder, fail=True iken False döner."""

    def __init__(self):
        self.sent: list[tuple[str, str, str]] = []
        self.fail = False

    def __call__(self, to: str, subject: str, html_body: str) -> bool:
        if self.fail:
            return False
        self.sent.append((to, subject, html_body))
        return True


class FakeGenerator:
    """generate_analysis yerine: çağrıları sayar; fail=True ya da situation fail_on içindeyse UpstreamError, error verilmişse onu fırlatır."""

    def __init__(self):
        self.calls: list[str] = []
        self.fail = False
        self.error: Exception | None = None
        self.fail_on: set[str] = set()

    def __call__(self, situation: str) -> str:
        self.calls.append(situation)
        if self.error is not None:
            raise self.error
        if self.fail or situation in self.fail_on:
            raise UpstreamError("Der KI-Dienst ist vorübergehend nicht erreichbar.", "connection reset")
        return f"1. Ich bin nicht genug.\nZu: {situation}"


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def generator():
    return FakeGenerator()


@pytest.fixture(scope="function")
def client(mailer, generator):
    """TestClient; lifespan her testte yeni in-memory DB ve tablolar açar."""
    app.dependency_overrides[get_send_mail] = lambda: mailer
    app.dependency_overrides[get_generator] = lambda: generator
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def db(client):
    """Aynı DB'ye doğrudan erişim (satır kontrolü ve hazırlık için)."""
    with Session(client.app.state.db.engine) as session:
        yield session


@pytest.fixture
def rows(client):
    """rows(Model) -> tablodaki tüm satırlar (her çağrıda taze oturum)."""
    def _rows(model):
        with Session(client.app.state.db.engine) as session:
            return list(session.exec(select(model).order_by(model.id)).all())
    return _rows


@pytest.fixture
def submit(client):
    def _submit(email: str = "anna@example.com", situation: str = "Ich traue mich nicht, im Meeting zu sprechen."):
        return client.post("/api/analyze", json={"email": email, "situation": situation})
    return _submit
