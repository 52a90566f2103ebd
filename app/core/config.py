from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env proje kökünde: app/core/config.py -> app/core -> app -> proje kökü
_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _ROOT / ".env"

# OpenAI anahtarının geçerli sayılması için (başında boşluk vb. olmaması)
OPENAI_KEY_PREFIX = "sk-"


class Settings(BaseSettings):
    openai_api_key: str = ""
    # Birden fazla anahtar: virgülle ayrılmış. Boşsa OPENAI_API_KEY kullanılır.
    openai_api_keys: str = ""
    openai_model: str = "gpt-4"
    openai_temperature: float = 0.7
    openai_max_tokens: int = 500
    database_url: str = "sqlite:///./clearself.db"
    # CORS: virgülle ayrılmış origin listesi; production'da https://clearself.ai
    cors_origins: str = "*"
    # IP başına dakikada max analiz isteği (rate limit)
    rate_limit_analyze_per_minute: int = 10
    # E-posta (onay linki ve analiz sonucu): SMTP
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "noreply@clearself.ai"
    smtp_from_name: str = "ClearSelf"
    smtp_use_tls: bool = True
    # Onay linkindeki sunucu adresi (e-postadaki buton linki)
    public_base_url: str = "http://127.0.0.1:8000"
    # Onay sayfasındaki "Zurück zur Website" linki
    site_url: str = "https://clearself.ai"
    port: int = 8000
    log_level: str = "INFO"

    model_config = {
        "env_file": _ENV_FILE if _ENV_FILE.is_file() else ".env",
        "extra": "ignore",
    }

    @field_validator("openai_api_key", "openai_api_keys", mode="before")
    @classmethod
    def strip_openai_key(cls, v: str | None) -> str:
        """Boşluk/yanlış kopya kaynaklı hataları azaltır."""
        return (v or "").strip()

    @field_validator("public_base_url", "site_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.strip().rstrip("/")


settings = Settings()


def get_openai_keys() -> list[str]:
    """
    Geçerli OpenAI anahtarlarını döner (sk- ile başlayan, boşluksuz).
    OPENAI_API_KEYS varsa virgülle ayrılmış liste; yoksa OPENAI_API_KEY tek eleman.
    """
    keys_raw = (settings.openai_api_keys or "").strip()
    if keys_raw:
        keys = [k.strip() for k in keys_raw.split(",") if k.strip() and k.strip().startswith(OPENAI_KEY_PREFIX)]
        if keys:
            return keys
    single = (settings.openai_api_key or "").strip()
    if single and single.startswith(OPENAI_KEY_PREFIX):
        return [single]
    return []


def is_openai_configured() -> bool:
    """En az bir geçerli OpenAI anahtarı var mı?"""
    return len(get_openai_keys()) > 0
