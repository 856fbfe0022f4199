import os

BASE_DIR = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Generated PDFs live under this folder, one subfolder per organization.
    DOCUMENTS_ROOT = os.environ.get("DOCUMENTS_ROOT") or os.path.join(BASE_DIR, "documents")

    # LLM backends (auto | openai | local | mock)
    LLM_BACKEND = os.environ.get("LLM_BACKEND", "auto")
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_MODEL = os.environ.get("OPENAI_MODEL", "gpt-4o-mini")
    LOCAL_LLM_URL = os.environ.get("LOCAL_LLM_URL", "http://localhost:11434")
    LOCAL_LLM_MODEL = os.environ.get("LOCAL_LLM_MODEL", "llama3.1")

    # Third-party integrations
    HTTP_TIMEOUT = _env_int("HTTP_TIMEOUT", 15)
    WEATHER_API_URL = os.environ.get(
        "WEATHER_API_URL",
        "https://weather.visualcrossing.com/VisualCrossingWebServices/rest/services/timeline",
    )
    WEATHER_API_KEY = os.environ.get("WEATHER_API_KEY")
    VENDOR_CATALOG_URL = os.environ.get("VENDOR_CATALOG_URL")
    ANNOTATION_API_URL = os.environ.get("ANNOTATION_API_URL")

    # Outbound email (carrier submissions)
    SMTP_HOST = os.environ.get("SMTP_HOST")
    SMTP_PORT = _env_int("SMTP_PORT", 465)
    SMTP_USER = os.environ.get("SMTP_USER")
    SMTP_PASSWORD = os.environ.get("SMTP_PASSWORD")
    SMTP_FROM = os.environ.get("SMTP_FROM")
    SMTP_ENCRYPTION = os.environ.get("SMTP_ENCRYPTION", "ssl")  # ssl | tls | none


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "testing"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    LLM_BACKEND = "mock"
    OPENAI_API_KEY = None
    WEATHER_API_KEY = None
    VENDOR_CATALOG_URL = None
    ANNOTATION_API_URL = None
    SMTP_HOST = None
