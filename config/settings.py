"""
Supermarket - Centralized Configuration
========================================
All environment variables and constants are loaded here.
No other module should call os.getenv() directly.
"""

import os
from dotenv import load_dotenv

load_dotenv()


# ==========================================
# 🗄️ Database
# ==========================================
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_NAME = os.getenv("DB_NAME")

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    if all([DB_USER, DB_PASSWORD, DB_NAME]):
        DATABASE_URL = f"postgresql://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
    else:
        # Local development fallback
        DATABASE_URL = "sqlite:///./supermarket.db"

# Bounded wait for row locks during checkout (seconds)
LOCK_WAIT_TIMEOUT_SECONDS = int(os.getenv("LOCK_WAIT_TIMEOUT_SECONDS") or "5")


# ==========================================
# 🔐 Session
# ==========================================
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
SESSION_COOKIE = "supermarket_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 1 week of inactivity
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"


# ==========================================
# 🔧 App
# ==========================================
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
