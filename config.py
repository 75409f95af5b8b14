import os
from dotenv import load_dotenv
load_dotenv()


def _flag(name, default="0"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///thodemy.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    # JSON API; clients authenticate with the session cookie
    WTF_CSRF_ENABLED = _flag("WTF_CSRF_ENABLED")
    DEFAULT_QUIZ_MAX_SCORE = float(os.getenv("DEFAULT_QUIZ_MAX_SCORE", "100"))
    JSON_SORT_KEYS = False


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    WTF_CSRF_ENABLED = False
    LOGIN_DISABLED = False
    LOG_LEVEL = "DEBUG"
