"""
Logging configuration.
Uvicorn ve app logger seviyeleri; OpenAI/SMTP hatalarında logger.exception kullanılır
(app/services/llm.py, app/services/email_sender.py). Seviye LOG_LEVEL ile ayarlanır.
"""
import logging
import sys

# httpx her OpenAI isteğini INFO'da loglar; yalnızca uyarılar kalsın
_NOISY_LOGGERS = ("httpx", "httpcore", "openai")


def setup_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    if format_string is None:
        format_string = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout,
        force=True,
    )
    # Uvicorn loggers: access ve error seviyelerini uyumlu tut
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    # app loggers
    logging.getLogger("clearself").setLevel(level)
    logging.getLogger("app").setLevel(level)
