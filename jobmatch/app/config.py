import os
from pathlib import Path
from dotenv import load_dotenv

# Override=True so edits to .env take effect on reload.
# Tests set DISABLE_DOTENV=1 so a developer .env cannot override the test DATABASE_URL.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)


def _env_flag(name: str, default: str) -> bool:
    return (os.getenv(name, default) or default).strip() in {"1", "true", "True", "yes", "YES"}


_raw_database_url = (os.getenv("DATABASE_URL") or "").strip()
# Local SQLite file by default so the service boots out-of-the-box.
_default_sqlite_path = (Path(__file__).resolve().parent.parent / "dev.db").as_posix()
DATABASE_URL = _raw_database_url or f"sqlite:///{_default_sqlite_path}"

# "development" exposes exception details in 500 responses.
APP_ENV = (os.getenv("APP_ENV", "production") or "production").strip().lower()
IS_DEVELOPMENT = APP_ENV == "development"

# Auth / JWT
SECRET_KEY = os.getenv("SECRET_KEY", "dev_secret_change_me")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)) or "10080")

# -------------------- Generative AI (Gemini) --------------------
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY")
GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com")
GEMINI_API_VERSION = os.getenv("GEMINI_API_VERSION", "v1beta")

AI_TIMEOUT_S = float(os.getenv("AI_TIMEOUT_S", "20") or "20")
# Unset sends no maxOutputTokens; thinking tokens count against the cap on 2.5 models.
_raw_max_output_tokens = (os.getenv("AI_MAX_OUTPUT_TOKENS") or "").strip()
AI_MAX_OUTPUT_TOKENS = int(_raw_max_output_tokens) if _raw_max_output_tokens else None
AI_LOG_PAYLOADS = _env_flag("AI_LOG_PAYLOADS", "0")

# Only this much of the resume goes into the parsing prompt.
PROFILE_PROMPT_MAX_CHARS = int(os.getenv("PROFILE_PROMPT_MAX_CHARS", "12000") or "12000")

# -------------------- Embeddings (local) --------------------
EMBEDDINGS_ENABLED = _env_flag("EMBEDDINGS_ENABLED", "1")
EMBEDDINGS_MODEL = os.getenv("EMBEDDINGS_MODEL", "sentence-transformers/all-MiniLM-L6-v2")

# -------------------- Recommendations --------------------
RECOMMEND_DEFAULT_LIMIT = int(os.getenv("RECOMMEND_DEFAULT_LIMIT", "10") or "10")
RECOMMEND_MAX_LIMIT = int(os.getenv("RECOMMEND_MAX_LIMIT", "50") or "50")

# File uploads (held only for the duration of a request)
UPLOAD_DIR = os.getenv("UPLOAD_DIR") or (Path(__file__).resolve().parent.parent / "uploads").as_posix()
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(5 * 1024 * 1024)) or "5242880")

# Comma-separated extra CORS origins
FRONTEND_ORIGINS = [o.strip() for o in os.getenv("FRONTEND_ORIGINS", "").split(",") if o.strip()]
