import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./booking_platform.db")

# Scheduling
# Wall-clock timezone used to decide "today" and "now" for reschedules and join windows
SCHEDULING_TIMEZONE = os.getenv("SCHEDULING_TIMEZONE", "UTC")
SLOT_DURATION_MINUTES = int(os.getenv("SLOT_DURATION_MINUTES", "30"))
MIN_BOOKING_MINUTES = 30
MAX_BOOKING_MINUTES = 240
BOOKING_STEP_MINUTES = 30

# Live sessions
JOIN_WINDOW_MINUTES = int(os.getenv("JOIN_WINDOW_MINUTES", "2"))
JOIN_TOKEN_TTL_SECONDS = int(os.getenv("JOIN_TOKEN_TTL_SECONDS", "7200"))
REALTIME_TOKEN_URL = os.getenv("REALTIME_TOKEN_URL")
REALTIME_API_KEY = os.getenv("REALTIME_API_KEY")

# Reminders and background sweeps
SESSION_REMINDER_MINUTES = max(int(os.getenv("SESSION_REMINDER_MINUTES", "10")), 1)
REMINDER_CHECK_INTERVAL_SECONDS = int(os.getenv("REMINDER_CHECK_INTERVAL_SECONDS", "60"))
# Only ONE process may run the sweeps; enable this on a single replica
BACKGROUND_SWEEPS_ENABLED = os.getenv("BACKGROUND_SWEEPS_ENABLED", "false").lower() == "true"

# Notification dispatcher (email/push delivery lives behind this webhook)
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "5"))

# Identity provider used to verify bearer tokens
IDENTITY_VERIFY_URL = os.getenv("IDENTITY_VERIFY_URL")

# Frontend base URL for CORS defaults
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
