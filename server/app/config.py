"""LetBabyTalk server configuration.

All settings are loaded from environment variables with sensible defaults
for local development. In production, set via .env or Docker environment.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# --- Paths ---
SERVER_DIR = Path(__file__).resolve().parent.parent
PROJECT_ROOT = SERVER_DIR.parent

# Database (PostgreSQL in production, SQLite file for local development)
DATABASE_URL = os.environ.get(
    "LETBABYTALK_DATABASE_URL",
    f"sqlite:///{SERVER_DIR / 'letbabytalk.db'}",
)
DB_POOL_SIZE = int(os.environ.get("LETBABYTALK_DB_POOL_SIZE", "20"))

# Upload storage. WAV uploads are temporary; kept copies of recordings live
# in AUDIO_DIR when no bucket is configured
UPLOAD_DIR = Path(os.environ.get("LETBABYTALK_UPLOAD_DIR", SERVER_DIR / "uploads"))
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
IMAGE_DIR = UPLOAD_DIR / "images"
IMAGE_DIR.mkdir(parents=True, exist_ok=True)
AUDIO_DIR = UPLOAD_DIR / "recordings"
AUDIO_DIR.mkdir(parents=True, exist_ok=True)

# --- Audio constraints ---
AUDIO_MAX_FILE_SIZE_MB = 50
AUDIO_FORMAT = "audio/wav"
AUDIO_ALLOWED_TYPES = ("audio/wav", "audio/wave", "audio/x-wav")
IMAGE_MAX_FILE_SIZE_MB = 5

# --- Classifier ---
CLASSIFIER_URL = os.environ.get(
    "LETBABYTALK_CLASSIFIER_URL",
    "https://api.letbabytalk.com/process_audio",
)
CLASSIFIER_TIMEOUT_SEC = float(os.environ.get("LETBABYTALK_CLASSIFIER_TIMEOUT", "30"))

# Shown when the classifier could not be reached
FALLBACK_RECOMMENDATIONS = [
    "AI analysis temporarily unavailable",
    "Try common comfort measures",
    "Monitor baby's behavior closely",
]

# --- API ---
API_PREFIX = "/api"

# CORS: comma-separated allowed origins (e.g. "https://myapp.com,http://localhost:5173")
# Empty or unset defaults to localhost-only for development.
_cors_raw = os.environ.get("LETBABYTALK_CORS_ORIGINS", "")
CORS_ORIGINS: list[str] = [
    o.strip() for o in _cors_raw.split(",") if o.strip()
] or ["http://localhost:3000", "http://localhost:5173"]

# --- Auth ---
SESSION_COOKIE = os.environ.get("LETBABYTALK_SESSION_COOKIE", "lbt_session")
SESSION_TTL_DAYS = int(os.environ.get("LETBABYTALK_SESSION_TTL_DAYS", "7"))
SESSION_COOKIE_SECURE = os.environ.get("LETBABYTALK_SESSION_SECURE", "false").lower() == "true"
OTP_TTL_MINUTES = 10
OTP_LENGTH = 6
PASSWORD_MIN_LENGTH = 6
PASSWORD_HASH_ITERATIONS = 260_000
SUPPORTED_LANGUAGES = ("en", "zh", "ar", "id")

# --- Object storage (profile images) ---
# S3-compatible bucket; unset means images are kept on local disk.
S3_BUCKET = os.environ.get("LETBABYTALK_S3_BUCKET", "")
S3_ENDPOINT_URL = os.environ.get("LETBABYTALK_S3_ENDPOINT_URL", "")
S3_ACCESS_KEY = os.environ.get("LETBABYTALK_S3_ACCESS_KEY", "")
S3_SECRET_KEY = os.environ.get("LETBABYTALK_S3_SECRET_KEY", "")
S3_REGION = os.environ.get("LETBABYTALK_S3_REGION") or None
S3_PUBLIC_URL = os.environ.get("LETBABYTALK_S3_PUBLIC_URL", "")

# --- Server ---
HOST = os.environ.get("LETBABYTALK_HOST", "0.0.0.0")
PORT = int(os.environ.get("LETBABYTALK_PORT", "5000"))
WORKERS = int(os.environ.get("LETBABYTALK_WORKERS", "2"))
DEBUG = os.environ.get("LETBABYTALK_DEBUG", "false").lower() == "true"
