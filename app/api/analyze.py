import html
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from sqlmodel import Session

from app.api.deps import get_generator, get_send_mail
from app.core.config import settings
from app.core.database import get_db
from app.core.errors import AlreadyConfirmedError, NotFoundError, ServiceError
from app.core.rate_limit import ANALYZE_LIMIT, limiter
from app.schemas.analyze import AnalyzeRequest, AnalyzeResponse
from app.services.lifecycle import Generate, SendMail, confirm_contact, submit_analysis

router = APIRouter(prefix="/api", tags=["analyze"])
log = logging.getLogger("clearself")

_PAGE = """<html>
    <head>
        <meta charset="UTF-8" />
        <title>ClearSelf</title>
        <style>
            body {{ font-family: Arial; margin: 40px; text-align: center; }}
            .success {{ color: #0f766e; }}
            .error {{ color: #b91c1c; }}
        </style>
    </head>
    <body>
        <h1 class="{css}">{title}</h1>
        <p>{message}</p>
        <p><a href="{site_url}">Zurück zur Website</a></p>
    </body>
</html>"""


def _page(title: str, message: str, status_code: int = 200, css: str = "success") -> HTMLResponse:
    body = _PAGE.format(
        css=css,
        title=html.escape(title),
        message=html.escape(message),
        site_url=html.escape(settings.site_url, quote=True),
    )
    return HTMLResponse(content=body, status_code=status_code)


@router.post("/analyze", response_model=AnalyzeResponse)
@limiter.limit(ANALYZE_LIMIT)
def analyze(
    request: Request,
    body: AnalyzeRequest,
    db: Session = Depends(get_db),
    send_mail: SendMail = Depends(get_send_mail),
):
    """Yeni analiz talebi: kişi + bekleyen analiz, onay e-postası; onay beklenmeden döner."""
    submit_analysis(db, body.email, body.situation, send_mail)
    return AnalyzeResponse(
        message="Bitte bestätigen Sie Ihre E-Mail-Adresse. Sie erhalten gleich eine E-Mail von uns.",
    )


@router.get("/confirm/{token}", response_class=HTMLResponse)
def confirm(
    token: str,
    db: Session = Depends(get_db),
    generate: Generate = Depends(get_generator),
    send_mail: SendMail = Depends(get_send_mail),
):
    """Onay linki: kişiyi aktive eder, analizi üretip e-postayla gönderir. Yanıt HTML sayfa."""
    try:
        confirm_contact(db, token, generate, send_mail)
    except AlreadyConfirmedError as e:
        return _page("E-Mail-Adresse bereits bestätigt", e.message)
    except NotFoundError as e:
        return _page("Bestätigung nicht möglich", e.message, e.status_code, css="error")
    except ServiceError as e:
        log.warning("Confirmation failed token=%s... status=%s: %s", token[:8], e.status_code, e.details)
        return _page(
            "Es ist ein Fehler aufgetreten",
            "Bitte versuchen Sie es später erneut, indem Sie den Link in Ihrer E-Mail noch einmal anklicken.",
            e.status_code,
            css="error",
        )
    except Exception:
        # Kişi pending'e döndü (lifecycle); kullanıcı JSON değil tekrar deneme sayfası görür
        log.exception("Confirmation failed unexpectedly token=%s...", token[:8])
        return _page(
            "Es ist ein Fehler aufgetreten",
            "Bitte versuchen Sie es später erneut, indem Sie den Link in Ihrer E-Mail noch einmal anklicken.",
            500,
            css="error",
        )
    return _page(
        "E-Mail-Adresse bestätigt!",
        "Vielen Dank für Ihre Bestätigung. Ihre Analyse wurde erstellt und per E-Mail an Sie gesendet.",
    )
