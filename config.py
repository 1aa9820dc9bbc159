import os
from dotenv import load_dotenv
load_dotenv()


def _env_bool(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///insights.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    # completion provider (no key -> heuristic-only mode)
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o")
    OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
    PROVIDER_TIMEOUT_SEC = float(os.getenv("PROVIDER_TIMEOUT_SEC", "30"))
    PROVIDER_MAX_ATTEMPTS = int(os.getenv("PROVIDER_MAX_ATTEMPTS", "3"))
    # wall-time cap for one completion, retries included (unset -> timeout x attempts)
    PROVIDER_BUDGET_SEC = float(os.getenv("PROVIDER_BUDGET_SEC") or 0) or None
    # analysis pipeline
    ANALYSIS_TIMEOUT_SEC = float(os.getenv("ANALYSIS_TIMEOUT_SEC", "120"))
    TRANSCRIPT_CHAR_LIMIT = int(os.getenv("TRANSCRIPT_CHAR_LIMIT", "10000"))
    ANALYSIS_ASYNC = _env_bool("ANALYSIS_ASYNC")
    ANALYSIS_QUEUE = os.getenv("ANALYSIS_QUEUE", "analysis")
