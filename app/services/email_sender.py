"""E-posta gönderimi: onay linki ve analiz sonucu (kurumsal ClearSelf şablonu)."""
import html
import logging
import smtplib
from collections.abc import Callable
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from app.core.config import settings

log = logging.getLogger("clearself.email")

CONFIRM_SUBJECT = "Bitte bestätigen Sie Ihre ClearSelf Analyse"
ANALYSIS_SUBJECT = "Ihre ClearSelf Scanner Analyse"

_LAYOUT = """<!DOCTYPE html>
<html lang="de">
<head>
  <meta charset="UTF-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1.0" />
  <title>{title}</title>
</head>
<body style="margin:0;padding:0;background-color:#f1f5f9;font-family:Arial,sans-serif;">
  <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="background-color:#f1f5f9;">
    <tr>
      <td align="center" style="padding:32px 16px;">
        <table role="presentation" width="100%" cellspacing="0" cellpadding="0" style="max-width:600px;background:#ffffff;border-radius:12px;overflow:hidden;">
          <tr>
            <td style="padding:28px 24px;">
              <h2 style="margin:0 0 16px;color:#0f766e;">{heading}</h2>
              {body}
            </td>
          </tr>
          <tr>
            <td style="padding:16px 24px;border-top:1px solid #e2e8f0;font-size:12px;color:#94a3b8;text-align:center;">
              &copy; {from_name}
            </td>
          </tr>
        </table>
      </td>
    </tr>
  </table>
</body>
</html>"""


def _render(title: str, heading: str, body: str) -> str:
    from_name = settings.smtp_from_name or "ClearSelf"
    return _LAYOUT.format(title=title, heading=heading, body=body, from_name=html.escape(from_name))


def build_confirmation_email_html(confirm_link: str) -> tuple[str, str]:
    """Onay e-postası: (subject, html_body)."""
    link = html.escape(confirm_link, quote=True)
    body = f"""<p style="font-size:16px;line-height:1.6;color:#334155;">Vielen Dank für Ihr Interesse an einer ClearSelf Analyse.</p>
              <p style="font-size:16px;line-height:1.6;color:#334155;">Um Ihre Analyse zu erhalten, bestätigen Sie bitte Ihre E-Mail-Adresse:</p>
              <p style="margin:30px 0;text-align:center;">
                <a href="{link}" style="background:#0f766e;color:#ffffff!important;padding:12px 24px;text-decoration:none;border-radius:4px;">Analyse jetzt anfordern</a>
              </p>
              <p style="font-size:13px;color:#64748b;">Wenn Sie diese Analyse nicht angefordert haben, können Sie diese E-Mail ignorieren.</p>"""
    return CONFIRM_SUBJECT, _render(CONFIRM_SUBJECT, "Bestätigen Sie Ihre E-Mail-Adresse", body)


def build_analysis_email_html(analysis_text: str) -> tuple[str, str]:
    """Analiz sonucu e-postası: (subject, html_body). Metin escape edilir, satır sonları <br>."""
    content = html.escape(analysis_text).replace("\n", "<br>")
    body = f"""<p style="font-size:16px;line-height:1.6;color:#334155;">Vielen Dank für Ihr Vertrauen in den ClearSelf Scanner. Hier ist Ihre individuelle Analyse:</p>
              <div style="background:#f5f5f9;padding:20px;border-radius:8px;margin:20px 0;">{content}</div>
              <p style="font-size:12px;color:#666;">Diese Analyse wurde mit Hilfe von KI erstellt und ersetzt keine professionelle therapeutische Beratung.
              Bei ernsthaften Anliegen wenden Sie sich bitte an entsprechende Fachkräfte.</p>"""
    return ANALYSIS_SUBJECT, _render(ANALYSIS_SUBJECT, "Ihre persönliche ClearSelf Analyse", body)


def is_mail_configured() -> bool:
    """SMTP ayarları dolu mu?"""
    host = settings.smtp_host or ""
    return bool(host.strip())


def send_email(to: str, subject: str, html_body: str) -> bool:
    """Tek bir HTML e-posta gönderir. Başarılı ise True."""
    if not is_mail_configured():
        log.warning("SMTP not configured; email not sent to %s", to)
        return False
    host = settings.smtp_host.strip()
    port = int(settings.smtp_port or 587)
    user = (settings.smtp_user or "").strip()
    password = (settings.smtp_password or "").strip()
    from_addr = (settings.smtp_from or "noreply@clearself.ai").strip()
    from_name = (settings.smtp_from_name or "").strip()
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"{from_name} <{from_addr}>" if from_name else from_addr
    msg["To"] = to
    msg.attach(MIMEText(html_body, "html", "utf-8"))
    try:
        with smtplib.SMTP(host, port, timeout=15) as smtp:
            if settings.smtp_use_tls:
                smtp.starttls()
            if user and password:
                smtp.login(user, password)
            smtp.sendmail(from_addr, [to], msg.as_string())
        log.info("Email sent to %s subject=%s", to, subject[:50])
        return True
    except (smtplib.SMTPException, OSError) as e:
        log.exception("Failed to send email to %s: %s", to, e)
        return False


def send_confirmation_email(to: str, confirm_link: str, send: Callable[[str, str, str], bool] = send_email) -> bool:
    """Onay linkini gönderir. send: taşıyıcı (varsayılan SMTP; testlerde sahte)."""
    subject, body = build_confirmation_email_html(confirm_link)
    return send(to, subject, body)


def send_analysis_email(to: str, analysis_text: str, send: Callable[[str, str, str], bool] = send_email) -> bool:
    subject, body = build_analysis_email_html(analysis_text)
    return send(to, subject, body)
