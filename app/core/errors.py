"""Servis hataları: handler'lar bunları JSON (veya onay sayfasında HTML) yanıta çevirir."""
from typing import Any


class ServiceError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(ServiceError):
    """Eksik veya biçimsiz zorunlu alan."""
    status_code = 400


class NotFoundError(ServiceError):
    """Bilinmeyen token, e-posta veya bekleyen analiz yok."""
    status_code = 404


class AlreadyConfirmedError(ServiceError):
    """Kişi zaten aktif; aynı linke tekrar tıklandı."""
    status_code = 409


class UpstreamError(ServiceError):
    """OpenAI veya SMTP hatası."""
    status_code = 502


class StorageError(ServiceError):
    status_code = 500
