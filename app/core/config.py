import os
from dotenv import load_dotenv

load_dotenv()


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Configuración de la API (variables de entorno / .env)"""

    # Base de datos
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rewards.db")

    # Tokens
    SECRET_KEY = os.getenv("SECRET_KEY", "cambia-esta-clave-en-produccion")
    ALGORITHM = os.getenv("ALGORITHM", "HS256")
    ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24))

    DEBUG = _as_bool(os.getenv("DEBUG", "False"))

    # Frontend
    CORS_ORIGINS = os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    )

    # Recompensas de temporada: por defecto se suman TODOS los partidos
    # completados del equipo. Si se activa, solo cuentan los partidos cuyo
    # campo `season` coincide con la temporada evaluada.
    SEASON_REWARDS_FILTER_BY_SEASON = _as_bool(
        os.getenv("SEASON_REWARDS_FILTER_BY_SEASON", "False")
    )

    @classmethod
    def get_cors_origins(cls) -> list[str]:
        return [o.strip() for o in cls.CORS_ORIGINS.split(",") if o.strip()]
