import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./barbershop.db")

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

# Frontend base URL for notification action links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Shop hours are local-clock concepts; every naive datetime stored is in this zone
SHOP_TIMEZONE = os.getenv("SHOP_TIMEZONE", "America/Sao_Paulo")

# MagicBell push notifications
MAGICBELL_API_URL = os.getenv("MAGICBELL_API_URL", "https://api.magicbell.com")
MAGICBELL_API_KEY = os.getenv("MAGICBELL_API_KEY")
MAGICBELL_API_SECRET = os.getenv("MAGICBELL_API_SECRET")

# Appointment reminders
REMINDER_LEAD_MINUTES = int(os.getenv("REMINDER_LEAD_MINUTES", "45"))
REMINDER_INTERVAL_MINUTES = int(os.getenv("REMINDER_INTERVAL_MINUTES", "15"))

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")
