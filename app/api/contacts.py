from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.database import get_db
from app.schemas.analyze import ContactSummary, DeleteResponse
from app.services.lifecycle import delete_contact, list_contacts

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


@router.get("", response_model=list[ContactSummary])
def contacts_list(db: Session = Depends(get_db)):
    """Tüm kişiler (en yeni önce), analiz sayısı ve son analiz zamanı ile."""
    return [
        ContactSummary(
            id=row.contact.id,
            email=row.contact.email,
            status=row.contact.status,
            created_at=row.contact.created_at,
            confirmed_at=row.contact.confirmed_at,
            analysis_count=row.analysis_count,
            last_analysis_at=row.last_analysis_at,
        )
        for row in list_contacts(db)
    ]


@router.delete("/{email}", response_model=DeleteResponse)
def contacts_delete(email: str, db: Session = Depends(get_db)):
    delete_contact(db, email)
    return DeleteResponse(message="Kontakt und zugehörige Analysen wurden gelöscht.")
