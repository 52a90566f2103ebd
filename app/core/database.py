from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

DEFAULT_DATABASE_URL = "sqlite:///./clearself.db"


def normalized_database_url(raw_url: str | None) -> str:
    """
    DATABASE_URL normalizasyonu:
    - postgres:// veya postgresql:// ise psycopg3 dialekti ile çalışacak şekilde dönüştür.
    - Diğer tüm durumlarda olduğu gibi bırak (SQLite vs.).
    """
    if not raw_url or not raw_url.strip():
        return DEFAULT_DATABASE_URL
    raw_url = raw_url.strip()
    # postgres://...  -> postgresql+psycopg://...
    if raw_url.startswith("postgres://"):
        return "postgresql+psycopg://" + raw_url[len("postgres://") :]
    # postgresql://... (driver belirtilmemiş) -> postgresql+psycopg://...
    if raw_url.startswith("postgresql://") and "+psycopg" not in raw_url.split("://", 1)[0]:
        return "postgresql+psycopg://" + raw_url[len("postgresql://") :]
    return raw_url


class Database:
    """
    Uygulamanın tek depolama bileşeni. Lifespan içinde açılır (app.state.db),
    kapanışta engine dispose edilir; handler'lar get_db ile oturum alır.
    """

    def __init__(self, url: str | None = None):
        self.url = normalized_database_url(url)
        connect_args = {"check_same_thread": False} if self.url.startswith("sqlite") else {}
        # In-memory SQLite: tek bağlantı kullan ki init_db tabloları tüm oturumlarda görünsün
        use_static_pool = self.url.startswith("sqlite") and ":memory:" in self.url
        self.engine = create_engine(
            self.url,
            connect_args=connect_args,
            poolclass=StaticPool if use_static_pool else None,
        )

    def init_db(self) -> None:
        # Tablo sınıfları metadata'ya kayıtlı olsun
        import app.models  # noqa: F401

        SQLModel.metadata.create_all(self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        with Session(self.engine) as session:
            yield session

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    def close(self) -> None:
        self.engine.dispose()


def get_db(request: Request) -> Iterator[Session]:
    database: Database = request.app.state.db
    with database.session() as session:
        yield session
