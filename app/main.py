import logging
import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv

# Uvicorn nereden çalışırsa çalışsın .env proje kökünden yüklensin
_PROJ_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(_PROJ_ROOT / ".env")

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException

from app.api.analyze import router as analyze_router
from app.api.contacts import router as contacts_router
from app.core.config import is_openai_configured, settings
from app.core.database import Database
from app.core.errors import ServiceError
from app.core.rate_limit import limiter
from app.logging import setup_logging
from app.services.email_sender import is_mail_configured
from app.services.llm import ping_openai

setup_logging(level=settings.log_level)
log = logging.getLogger("clearself")


def _cors_origins_list() -> list[str]:
    if not settings.cors_origins or settings.cors_origins.strip() == "*":
        return ["*"]
    return [o.strip() for o in settings.cors_origins.split(",") if o.strip()]


# Onay formu (index.html, script.js) varsa / altında sunulur
STATIC_DIR = _PROJ_ROOT / "static"


@asynccontextmanager
async def lifespan(app: FastAPI):
    database = Database(settings.database_url)
    database.init_db()
    app.state.db = database
    log.info("OPENAI_API_KEY loaded: %s", "yes" if is_openai_configured() else "NO (.env dosyasına OPENAI_API_KEY=sk-... ekleyin)")
    log.info("SMTP configured: %s", "yes" if is_mail_configured() else "NO")
    yield
    database.close()


app = FastAPI(
    title="ClearSelf API",
    description="Situationsanalyse per E-Mail mit Bestätigungslink",
    lifespan=lifespan,
)
app.state.limiter = limiter


def _error_response(request: Request, status_code: int, error: str, details=None) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    body = {"error": error, "status_code": status_code}
    if details is not None:
        body["details"] = details
    if rid:
        body["request_id"] = rid
    return JSONResponse(status_code=status_code, content=body)


def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    ip = (request.headers.get("x-forwarded-for") or "").split(",")[0].strip() or (request.client.host if request.client else "")
    log.warning("Rate limit exceeded: ip=%s path=%s", ip, request.url.path)
    return _error_response(request, 429, "Zu viele Anfragen. Bitte warten Sie eine Minute.", str(exc.detail))


def _validation_error_message(exc: RequestValidationError) -> str:
    errs = exc.errors()
    if not errs:
        return "Ungültige Anfrage."
    first = errs[0]
    loc = list(first.get("loc") or [])
    field = str(loc[-1]) if len(loc) > 0 else None
    if first.get("type") == "missing" and field == "body":
        return "Die Daten haben den Server nicht erreicht. Bitte laden Sie die Seite neu und versuchen Sie es erneut."
    if field == "email":
        return "Bitte geben Sie eine gültige E-Mail-Adresse ein."
    if field == "situation":
        return "Bitte beschreiben Sie Ihre Situation."
    return first.get("msg") or "Ungültige Anfrage."


def _jsonable_errors(errs) -> list[dict]:
    # ctx içinde exception nesneleri olabilir; JSON'a yalnızca güvenli alanlar
    return [{"loc": list(e.get("loc") or []), "msg": e.get("msg"), "type": e.get("type")} for e in errs]


@app.exception_handler(RequestValidationError)
def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errs = exc.errors()
    log.warning(
        "Request validation error (422): path=%s method=%s detail=%s",
        request.url.path,
        request.method,
        errs,
    )
    return _error_response(request, 422, _validation_error_message(exc), _jsonable_errors(errs))


app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)


@app.exception_handler(ServiceError)
def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        log.warning("Service error: path=%s status=%s %s detail=%s", request.url.path, exc.status_code, exc.message, exc.details)
    return _error_response(request, exc.status_code, exc.message, exc.details)


@app.exception_handler(HTTPException)
def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(request, exc.status_code, exc.detail if isinstance(exc.detail, str) else str(exc.detail))


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("Unhandled exception: path=%s %s", request.url.path, exc, exc_info=True)
    path = (request.url.path or "").strip()
    if path.startswith("/api/analyze"):
        user_msg = "Ein Fehler ist aufgetreten"
    else:
        user_msg = "Unerwarteter Serverfehler."
    return JSONResponse(status_code=500, content={"error": user_msg, "details": str(exc)[:500]})


@app.middleware("http")
async def request_id_and_latency(request: Request, call_next):
    request.state.request_id = str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    latency_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request.state.request_id
    log.info(
        "request_id=%s method=%s path=%s status=%s latency_ms=%.2f",
        request.state.request_id,
        request.method,
        request.url.path,
        response.status_code,
        latency_ms,
    )
    return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins_list(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(analyze_router)
app.include_router(contacts_router)


@app.get("/health")
def health(request: Request):
    database: Database = request.app.state.db
    return {
        "status": "ok",
        "openai_configured": is_openai_configured(),
        "mail_configured": is_mail_configured(),
        "database": "ok" if database.ping() else "error",
    }


@app.get("/health/ai")
def health_ai():
    """OpenAI erişimi: tek token'lık ping."""
    ok, latency_ms, error = ping_openai()
    return {"ok": ok, "latency_ms": latency_ms, "error": error}


if STATIC_DIR.is_dir():
    app.mount("/", StaticFiles(directory=str(STATIC_DIR), html=True), name="static")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.port)
