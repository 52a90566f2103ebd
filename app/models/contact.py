from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    """Zaman dilimli UTC; sütunlar DateTime(timezone=True)."""
    return datetime.now(timezone.utc)


class ContactStatus(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    INACTIVE = "inactive"  # rezerve; hiçbir akış bu duruma geçirmiyor


class Contact(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    email: str = Field(unique=True, index=True)
    status: str = ContactStatus.PENDING.value
    # Onay linkindeki tek kullanımlık token; başarılı teslimattan sonra None
    confirmation_token: str | None = Field(default=None, unique=True, index=True)
    confirmed_at: datetime | None = Field(
        default=None,
        sa_column=Column(DateTime(timezone=True), nullable=True),
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, index=True),
    )
