from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker
from sqlalchemy.pool import StaticPool
from app.core.config import Config


class Base(DeclarativeBase):
    pass


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}

    options = {"connect_args": {"check_same_thread": False}}
    # En memoria: todas las sesiones deben compartir la misma conexión
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(Config.DATABASE_URL, **_engine_options(Config.DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
