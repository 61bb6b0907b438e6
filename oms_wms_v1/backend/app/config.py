import os
from datetime import timedelta

from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))

load_dotenv(os.path.join(basedir, "..", ".env"))


def _bool(value: str | None, default: bool = False) -> bool:
    raw = (value if value is not None else str(default)).strip().lower()
    return raw in ("true", "1", "yes", "y")


def _csv(env_name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    raw = os.environ.get(env_name, "")
    values = tuple(part.strip() for part in raw.split(",") if part.strip())
    return values or default


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")

    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + os.path.join(basedir, "..", "oms_wms.db"),
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(minutes=int(os.getenv("JWT_ACCESS_MINUTES", "60")))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    SUPPORTED_LOCALES = _csv("SUPPORTED_LOCALES", ("ko", "en", "vi"))
    DEFAULT_LOCALE = os.getenv("DEFAULT_LOCALE", "ko")
    LOCALE_COOKIE_NAME = os.getenv("LOCALE_COOKIE_NAME", "NEXT_LOCALE")
    LOCALE_PASSTHROUGH_PREFIXES = _csv("LOCALE_PASSTHROUGH_PREFIXES", ("/static", "/api", "/health"))

    # "memory" keeps requests in-process; "sql" stores them through SQLAlchemy
    INBOUND_STORE_BACKEND = os.getenv("INBOUND_STORE_BACKEND", "memory")
    INBOUND_SEED_SAMPLES = _bool(os.getenv("INBOUND_SEED_SAMPLES"), True)
    INBOUND_ENFORCE_TRANSITIONS = _bool(os.getenv("INBOUND_ENFORCE_TRANSITIONS"), True)

    ADMIN_SETUP_SECRET = os.getenv("ADMIN_SETUP_SECRET") or None
