"""Top-level package for the event metrics ingestion & analytics API."""

__all__ = [
    "APP_ENV",
    "SUPABASE_URL",
    "SUPABASE_KEY",
    "SUPABASE_JWT_SECRET",
]

from dotenv import load_dotenv
import os
load_dotenv()

# Environment variables
SUPABASE_URL = os.environ.get("SUPABASE_URL")
SUPABASE_KEY = os.environ.get("SUPABASE_KEY")

if not SUPABASE_URL or not SUPABASE_KEY:
    raise RuntimeError("Supabase env vars not configured")

# HS256 secret used by Supabase Auth to sign session tokens
SUPABASE_JWT_SECRET = os.environ.get("SUPABASE_JWT_SECRET")

APP_ENV = os.getenv("APP_ENV", "production")
