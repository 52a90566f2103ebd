from datetime import datetime

from pydantic import BaseModel, field_validator


class AnalyzeRequest(BaseModel):
    # Zorunluluk kontrolü servis katmanında (400 + hangi alanın geldiği)
    email: str | None = None
    situation: str | None = None

    @field_validator("email", "situation", mode="before")
    @classmethod
    def strip_text(cls, v):
        if isinstance(v, str):
            return v.strip() or None
        return v


class AnalyzeResponse(BaseModel):
    success: bool = True
    message: str


class ContactSummary(BaseModel):
    id: int
    email: str
    status: str
    created_at: datetime
    confirmed_at: datetime | None = None
    analysis_count: int = 0
    last_analysis_at: datetime | None = None


class DeleteResponse(BaseModel):
    success: bool = True
    message: str
