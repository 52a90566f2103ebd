from datetime import datetime
from enum import Enum

from sqlalchemy import Column, DateTime
from sqlmodel import Field, SQLModel

from .contact import utcnow


class AnalysisStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"


class Analysis(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    contact_id: int = Field(foreign_key="contact.id", index=True)
    situation: str
    # OpenAI sonucu; yalnızca status == completed iken dolu
    analysis: str | None = None
    status: str = AnalysisStatus.PENDING.value
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
