"""IP bazlı rate limiting (SlowAPI); proxy (X-Forwarded-For) destekli. Yalnızca POST /api/analyze sınırlı."""
from fastapi import Request

from slowapi import Limiter

from .config import settings

# Her gönderim bir onay e-postası tetikler; IP başına dakikada
ANALYZE_LIMIT = f"{settings.rate_limit_analyze_per_minute}/minute"


def _get_client_ip(request: Request) -> str:
    """Proxy arkasında gerçek istemci IP (Render, Nginx)."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"


limiter = Limiter(key_func=_get_client_ip)
