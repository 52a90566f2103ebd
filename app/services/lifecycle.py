"""
Kişi onayı ve analiz yaşam döngüsü.

Contact:  pending --(onay başarılı)--> active ; active --(tekrar tık)--> active (no-op)
          pending --(onay, OpenAI/SMTP hatası)--> pending (aynı linkle tekrar denenir)
Analysis: pending --(OpenAI + sonuç e-postası başarılı)--> completed

Her analiz e-postası gönderilince hemen completed yazılır; token ancak bekleyen analizlerin
tümü teslim edildikten sonra silinir.
"""
import logging
import re
import secrets
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from app.core.config import settings
from app.core.errors import (
    AlreadyConfirmedError,
    NotFoundError,
    StorageError,
    UpstreamError,
    ValidationError,
)
from app.models import Analysis, AnalysisStatus, Contact, ContactStatus
from app.models.contact import utcnow
from app.services.email_sender import send_analysis_email, send_confirmation_email

log = logging.getLogger("clearself.lifecycle")

TOKEN_BYTES = 32
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# send_mail(to, subject, html) -> bool ; generate(situation) -> str
SendMail = Callable[[str, str, str], bool]
Generate = Callable[[str], str]


@dataclass
class ContactSummaryRow:
    contact: Contact
    analysis_count: int
    last_analysis_at: datetime | None


def generate_token() -> str:
    """Kriptografik rastgele, 64 karakter hex."""
    return secrets.token_hex(TOKEN_BYTES)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


def confirmation_link(token: str) -> str:
    return f"{settings.public_base_url}/api/confirm/{token}"


@contextmanager
def _storage(db: Session) -> Iterator[None]:
    """SQLAlchemy hatalarını geri alıp StorageError olarak yükseltir."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        log.exception("Storage error: %s", e)
        raise StorageError("Datenbankfehler. Bitte versuchen Sie es später erneut.", str(e)[:500]) from e


def submit_analysis(db: Session, email: str | None, situation: str | None, send_mail: SendMail) -> Analysis:
    """
    Kişiyi bulur/oluşturur, token'ı (yeniden) üretir, bekleyen analizi kaydeder ve onay e-postası gönderir.
    Analiz satırı e-postadan önce commit edilir; onay handler'ı bekleyen analizi kişi id ile arar.
    """
    if not email or not situation:
        raise ValidationError(
            "E-Mail und Situation sind erforderlich",
            {"received": {"email": bool(email), "situation": bool(situation)}},
        )
    email = normalize_email(email)
    if not is_valid_email(email):
        raise ValidationError("Ungültige E-Mail-Adresse", {"email": email})

    token = generate_token()
    with _storage(db):
        contact = db.exec(select(Contact).where(Contact.email == email)).first()
        if contact is None:
            contact = Contact(email=email, status=ContactStatus.PENDING.value, confirmation_token=token)
            db.add(contact)
            db.flush()
            log.info("Contact created id=%s email=%s", contact.id, email)
        else:
            # Eski link geçersiz olur; aktif kişi de yeni analiz için tekrar onaylar
            if contact.status != ContactStatus.PENDING.value:
                log.info("Contact id=%s back to pending for new submission (was %s)", contact.id, contact.status)
            contact.status = ContactStatus.PENDING.value
            contact.confirmation_token = token
            db.add(contact)
            log.info("Confirmation token reissued contact_id=%s", contact.id)
        analysis = Analysis(contact_id=contact.id, situation=situation, status=AnalysisStatus.PENDING.value)
        db.add(analysis)
        db.commit()
        db.refresh(analysis)

    if not send_confirmation_email(email, confirmation_link(token), send_mail):
        raise UpstreamError(
            "Die Bestätigungs-E-Mail konnte nicht gesendet werden. Bitte versuchen Sie es später erneut.",
            {"email": email},
        )
    log.info("Confirmation email sent contact_id=%s analysis_id=%s", contact.id, analysis.id)
    return analysis


def claim_confirmation(db: Session, contact_id: int, token: str) -> bool:
    """
    Atomik compare-and-set: pending -> active, yalnızca token hâlâ aynıysa.
    Eşzamanlı iki tıklamadan yalnızca biri True alır.
    """
    result = db.exec(
        update(Contact)
        .where(
            Contact.id == contact_id,
            Contact.status == ContactStatus.PENDING.value,
            Contact.confirmation_token == token,
        )
        .values(status=ContactStatus.ACTIVE.value, confirmed_at=utcnow())
    )
    db.commit()
    return result.rowcount == 1


def _revert_to_pending(db: Session, contact_id: int, token: str) -> None:
    db.rollback()
    db.exec(
        update(Contact)
        .where(
            Contact.id == contact_id,
            Contact.status == ContactStatus.ACTIVE.value,
            Contact.confirmation_token == token,
        )
        .values(status=ContactStatus.PENDING.value)
    )
    db.commit()
    log.info("Confirmation reverted to pending contact_id=%s", contact_id)


def confirm_contact(db: Session, token: str, generate: Generate, send_mail: SendMail) -> list[Analysis]:
    """
    Token ile kişiyi aktive eder; bekleyen tüm analizleri (eskiden yeniye) üretip
    her birini ayrı e-postayla gönderir. Teslim edilen analiz hemen completed olarak yazılır.
    Hata durumunda kişi pending'e döner, token geçerli kalır; tekrar tıklama kalanları işler.
    """
    with _storage(db):
        contact = db.exec(select(Contact).where(Contact.confirmation_token == token)).first()
        if contact is None:
            raise NotFoundError("Ungültiger oder bereits verwendeter Bestätigungslink.")
        if contact.status == ContactStatus.ACTIVE.value:
            raise AlreadyConfirmedError("Ihre E-Mail-Adresse wurde bereits bestätigt.")
        contact_id = contact.id
        email = contact.email
        if not claim_confirmation(db, contact_id, token):
            db.refresh(contact)
            if contact.confirmation_token != token:
                raise NotFoundError("Ungültiger oder bereits verwendeter Bestätigungslink.")
            raise AlreadyConfirmedError("Ihre E-Mail-Adresse wurde bereits bestätigt.")
        log.info("Contact confirmed id=%s", contact_id)

        pending = list(
            db.exec(
                select(Analysis)
                .where(Analysis.contact_id == contact_id, Analysis.status == AnalysisStatus.PENDING.value)
                .order_by(Analysis.created_at, Analysis.id)
            ).all()
        )
        if not pending:
            raise NotFoundError("Keine ausstehende Analyse gefunden.", {"contact_id": contact_id})

    try:
        for analysis in pending:
            text = generate(analysis.situation)
            if not send_analysis_email(email, text, send_mail):
                raise UpstreamError(
                    "Die Analyse konnte nicht zugestellt werden. Bitte versuchen Sie es später erneut.",
                    {"email": email, "analysis_id": analysis.id},
                )
            with _storage(db):
                analysis.analysis = text
                analysis.status = AnalysisStatus.COMPLETED.value
                db.add(analysis)
                db.commit()
                db.refresh(analysis)
            log.info("Analysis completed id=%s contact_id=%s", analysis.id, contact_id)
        with _storage(db):
            db.exec(
                update(Contact)
                .where(Contact.id == contact_id, Contact.confirmation_token == token)
                .values(confirmation_token=None)
            )
            db.commit()
    except Exception:
        with _storage(db):
            _revert_to_pending(db, contact_id, token)
        raise
    return pending


def list_contacts(db: Session) -> list[ContactSummaryRow]:
    """Tüm kişiler, en yeni önce; analiz sayısı ve son analiz zamanı ile."""
    stmt = (
        select(Contact, func.count(Analysis.id), func.max(Analysis.created_at))
        .outerjoin(Analysis, Analysis.contact_id == Contact.id)
        .group_by(Contact.id)
        .order_by(Contact.created_at.desc(), Contact.id.desc())
    )
    with _storage(db):
        rows = db.exec(stmt).all()
    return [ContactSummaryRow(contact=c, analysis_count=count or 0, last_analysis_at=last) for c, count, last in rows]


def delete_contact(db: Session, email: str | None) -> None:
    """Önce kişinin tüm analizleri, sonra kişi silinir (FK cascade varsayılmaz)."""
    email = normalize_email(email)
    if not email or not is_valid_email(email):
        raise ValidationError("Ungültige E-Mail-Adresse", {"email": email})
    with _storage(db):
        contact = db.exec(select(Contact).where(Contact.email == email)).first()
        if contact is None:
            raise NotFoundError("Kontakt nicht gefunden", {"email": email})
        result = db.exec(delete(Analysis).where(Analysis.contact_id == contact.id))
        db.delete(contact)
        db.commit()
    log.info("Contact deleted email=%s analyses=%s", email, result.rowcount)
