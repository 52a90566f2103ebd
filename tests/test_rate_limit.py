"""Rate limit anahtarı: proxy arkasında X-Forwarded-For'daki ilk IP."""
from starlette.requests import Request

from app.core.rate_limit import _get_client_ip


def _request(headers: dict | None = None, client=("10.0.0.5", 1234)) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "headers": raw, "client": client})


def test_client_ip_from_forwarded_header():
    r = _request({"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert _get_client_ip(r) == "203.0.113.7"


def test_client_ip_from_socket():
    assert _get_client_ip(_request()) == "10.0.0.5"


def test_client_ip_fallback():
    assert _get_client_ip(_request(client=None)) == "127.0.0.1"
