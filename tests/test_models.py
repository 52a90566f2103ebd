"""Tablo tanımları: zaman damgaları zaman dilimli UTC olarak yazılır ve okunur."""
from datetime import timezone

from fastapi.testclient import TestClient

from app.models import Analysis, Contact
from app.models.contact import utcnow
from app.services.lifecycle import claim_confirmation, generate_token


def test_utcnow_is_timezone_aware():
    now = utcnow()
    assert now.tzinfo is not None
    assert now.utcoffset() == timezone.utc.utcoffset(now)


def test_datetime_columns_store_timezone():
    assert Contact.__table__.c.created_at.type.timezone is True
    assert Contact.__table__.c.confirmed_at.type.timezone is True
    assert Analysis.__table__.c.created_at.type.timezone is True
    assert Contact.__table__.c.created_at.nullable is False
    assert Contact.__table__.c.confirmed_at.nullable is True
    assert "ix_contact_created_at" in {ix.name for ix in Contact.__table__.indexes}


def test_default_timestamps_insert_and_update(client: TestClient, db):
    token = generate_token()
    contact = Contact(email="zeit@example.com", confirmation_token=token)
    db.add(contact)
    db.commit()
    db.refresh(contact)
    assert contact.created_at is not None
    assert contact.confirmed_at is None

    analysis = Analysis(contact_id=contact.id, situation="x")
    db.add(analysis)
    db.commit()
    db.refresh(analysis)
    assert analysis.created_at is not None

    # confirmed_at UPDATE ... VALUES ile yazılır
    assert claim_confirmation(db, contact.id, token) is True
    db.refresh(contact)
    assert contact.confirmed_at is not None


def test_submission_and_listing_write_timestamps(client: TestClient, submit):
    assert submit().status_code == 200
    items = client.get("/api/contacts").json()
    assert len(items) == 1
    assert items[0]["created_at"] is not None
    assert items[0]["last_analysis_at"] is not None
