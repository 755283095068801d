import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./coworking.db")

# Firebase Configuration
FIREBASE_PROJECT_ID = os.getenv("FIREBASE_PROJECT_ID")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

# Public site URL, used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
ADMIN_URL = os.getenv("ADMIN_URL", "http://localhost:3001")

# Local timezone of the coworking space (clock-in times, "today" for bookings)
TIMEZONE = os.getenv("TIMEZONE", "Europe/Paris")

# Resend Email Configuration (fallback)
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "CoworKing Café <noreply@coworkingcafe.fr>")
ADMIN_NOTIFICATION_EMAIL = os.getenv("ADMIN_NOTIFICATION_EMAIL")

# Custom SMTP (takes precedence over Resend when SMTP_HOST is set)
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_USE_TLS = os.getenv("SMTP_USE_TLS", "true").lower() == "true"

# Stripe Configuration
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_CURRENCY = os.getenv("STRIPE_CURRENCY", "eur")

# Bookings further away than this get a saved card (SetupIntent) instead of an immediate hold
DEPOSIT_HOLD_DAYS = int(os.getenv("DEPOSIT_HOLD_DAYS", "6"))

# Clocking terminal security
# Comma-separated list; empty means every IP may clock in
CLOCKING_ALLOWED_IPS = [
    ip.strip() for ip in os.getenv("CLOCKING_ALLOWED_IPS", "").split(",") if ip.strip()
]
PIN_MAX_ATTEMPTS = int(os.getenv("PIN_MAX_ATTEMPTS", "5"))
PIN_LOCKOUT_SECONDS = int(os.getenv("PIN_LOCKOUT_SECONDS", "900"))
SCHEDULE_TOLERANCE_MINUTES = int(os.getenv("SCHEDULE_TOLERANCE_MINUTES", "15"))

# Redis (rate limiting, cache, PIN lockout, ARQ worker)
REDIS_URL = os.getenv("REDIS_URL")
