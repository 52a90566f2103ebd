import logging
import time

from openai import APIError, APIConnectionError, AuthenticationError, OpenAI, RateLimitError

from app.core.config import get_openai_keys, settings
from app.core.errors import UpstreamError

logger = logging.getLogger(__name__)
OPENAI_TIMEOUT = 30.0
OPENAI_RETRY_WAIT = 1.5
OPENAI_RETRY_ONCE = (RateLimitError, APIConnectionError)

# Anahtar başına bir istemci (çoklu anahtar fallback için)
_openai_clients: dict[str, OpenAI] = {}

# Bir anahtar auth/rate limit verince diğerine geçilecek
OPENAI_FALLBACK_EXCEPTIONS = (AuthenticationError, RateLimitError)

SYSTEM_PROMPT = """Du bist ein erfahrener Psychologe und Experte für limitierende Glaubenssätze.
Analysiere das folgende Problem und identifiziere die 3 wichtigsten limitierenden
Kernglaubenssätze, die dahinter stecken könnten. Formuliere sie in der Ich-Form.
Erkläre zu jedem Glaubenssatz kurz, wie er sich in der beschriebenen Situation zeigt."""


def _get_client_for_key(key: str) -> OpenAI:
    """Verilen anahtar için OpenAI istemcisi döner (önbelleklenmiş)."""
    if key not in _openai_clients:
        _openai_clients[key] = OpenAI(api_key=key, timeout=OPENAI_TIMEOUT)
    return _openai_clients[key]


def _raise_upstream_error(exc: Exception) -> None:
    """OpenAI hatalarını UpstreamError'a çevirir; kullanıcıya okunur mesaj, detayda SDK mesajı."""
    detail = str(exc).strip()[:500] or type(exc).__name__
    if isinstance(exc, AuthenticationError):
        raise UpstreamError("KI-Zugang fehlgeschlagen. Bitte versuchen Sie es später erneut.", detail) from exc
    if isinstance(exc, RateLimitError):
        raise UpstreamError("Der KI-Dienst ist ausgelastet. Bitte versuchen Sie es später erneut.", detail) from exc
    if isinstance(exc, APIConnectionError):
        raise UpstreamError("Der KI-Dienst ist vorübergehend nicht erreichbar.", detail) from exc
    if isinstance(exc, APIError):
        raise UpstreamError("Fehler beim KI-Dienst. Bitte versuchen Sie es später erneut.", detail) from exc
    raise UpstreamError("Die Analyse konnte nicht erstellt werden.", detail) from exc


def _openai_create_with_fallback(create_fn):
    """
    create_fn(client) çağrısını yapar; AuthenticationError veya RateLimitError olursa
    sıradaki anahtarla tekrar dener. Tüm anahtarlar başarısızsa son hatayı UpstreamError olarak fırlatır.
    """
    keys = get_openai_keys()
    if not keys:
        raise UpstreamError(
            "Der KI-Dienst ist nicht konfiguriert.",
            "OPENAI_API_KEY tanımlı değil veya geçersiz (.env: OPENAI_API_KEY=sk-... veya OPENAI_API_KEYS=sk-1,sk-2).",
        )
    last_exc: Exception | None = None
    for key in keys:
        try:
            client = _get_client_for_key(key)
            return create_fn(client)
        except OPENAI_FALLBACK_EXCEPTIONS as e:
            last_exc = e
            logger.warning("OpenAI anahtar atlandı (%s), sıradakine geçiliyor: %s", key[:12] + "...", e)
            continue
    _raise_upstream_error(last_exc)


def _openai_safe_call(create_fn):
    """OpenAI çağrısını yapar; RateLimitError/APIConnectionError'da 1 kez 1.5 sn bekleyip tekrar dener."""
    try:
        return create_fn()
    except OPENAI_RETRY_ONCE as e:
        logger.warning("OpenAI retry after %s: %s", type(e).__name__, e)
        time.sleep(OPENAI_RETRY_WAIT)
        return create_fn()


def generate_analysis(situation: str) -> str:
    """Durum metninden analiz üretir (senkron; istek boyunca bekler)."""
    def _create(client: OpenAI):
        return _openai_safe_call(lambda: client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": situation},
            ],
            temperature=settings.openai_temperature,
            max_tokens=settings.openai_max_tokens,
        ))

    try:
        response = _openai_create_with_fallback(_create)
    except UpstreamError:
        raise
    except (AuthenticationError, RateLimitError, APIConnectionError, APIError) as e:
        logger.exception("OpenAI API error in generate_analysis: %s", e)
        _raise_upstream_error(e)
    content = (response.choices[0].message.content or "").strip()
    if not content:
        raise UpstreamError("Die Analyse konnte nicht erstellt werden.", "OpenAI boş yanıt döndü.")
    if getattr(response, "usage", None):
        u = response.usage
        logger.info(
            "OpenAI usage prompt_tokens=%s completion_tokens=%s",
            getattr(u, "prompt_tokens", 0) or 0,
            getattr(u, "completion_tokens", 0) or 0,
        )
    return content


def ping_openai() -> tuple[bool, float, str | None]:
    """
    Minimal OpenAI ping (tek token): /health/ai için. Çoklu anahtar varsa sırayla dener.
    Returns: (success, latency_ms, error_message_or_none)
    """
    t0 = time.perf_counter()
    keys = get_openai_keys()
    last_err: str | None = None
    for key in keys:
        try:
            client = _get_client_for_key(key)
            client.chat.completions.create(
                model=settings.openai_model,
                messages=[{"role": "user", "content": "Hi"}],
                max_tokens=1,
            )
            latency_ms = round((time.perf_counter() - t0) * 1000, 2)
            return (True, latency_ms, None)
        except APIError as e:
            last_err = str(e).strip()[:500] if str(e) else type(e).__name__
            if isinstance(e, OPENAI_FALLBACK_EXCEPTIONS):
                continue
            latency_ms = round((time.perf_counter() - t0) * 1000, 2)
            return (False, latency_ms, last_err)
    latency_ms = round((time.perf_counter() - t0) * 1000, 2)
    return (False, latency_ms, last_err or "Geçerli anahtar yok veya tüm anahtarlar denendi.")
