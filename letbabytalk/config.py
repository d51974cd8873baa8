"""Configuration for the LetBabyTalk client."""

import os
from pathlib import Path

# --- Paths ---
HOME_DIR = Path(os.environ.get("LETBABYTALK_HOME", Path.home() / ".letbabytalk"))
SETTINGS_FILE = HOME_DIR / "settings.json"
RECORDINGS_DIR = HOME_DIR / "recordings"

# --- Server ---
DEFAULT_API_URL = os.environ.get("LETBABYTALK_API_URL", "http://localhost:5000")
REQUEST_TIMEOUT_SEC = 60     # Upload waits for the classifier (30 s) plus transfer
SESSION_COOKIE = "lbt_session"

# --- Capture ---
MAX_RECORDING_SECONDS = 30   # Hard ceiling, auto-stop fires here
TICK_SECONDS = 1.0           # Chunk collection interval
SAMPLE_RATE = 16000          # Mono int16 at 16 kHz
CHANNELS = 1
FRAMES_PER_BUFFER = 1024
CLIP_MIME_TYPE = "audio/wav"

# --- Cry categories ---
UNKNOWN_LABEL = "unknown"

# Canonical classifier labels and their display titles, in display order
CATEGORY_TITLES = {
    "hunger_food": "Hunger (Food)",
    "hunger_milk": "Hunger (Milk)",
    "sleepiness": "Sleepiness",
    "lack_of_security": "Need for Comfort",
    "diaper_urine": "Wet Diaper",
    "diaper_bowel": "Soiled Diaper",
    "internal_pain": "Internal Pain",
    "external_pain": "External Pain",
    "physical_discomfort": "Physical Discomfort",
    "unmet_needs": "Unmet Needs",
    "breathing_difficulties": "Breathing Difficulties",
    "normal": "Normal Fussiness",
    "no_cry_detected": "No Cry Detected",
    UNKNOWN_LABEL: "Unknown",
}
CANONICAL_CATEGORIES = list(CATEGORY_TITLES)

# --- Settings ---
SUPPORTED_LANGUAGES = ("en", "zh", "ar", "id")
DEFAULT_LANGUAGE = "en"
