# seek/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# .env at the project root, for local dev only
load_dotenv(dotenv_path=Path(__file__).resolve().parent.parent / ".env")

# Supabase (service role so the API bypasses RLS and scopes rows itself)
SUPABASE_URL = os.getenv("SUPABASE_URL", "").rstrip("/")
SUPABASE_SERVICE_ROLE = os.getenv("SUPABASE_SERVICE_ROLE", "")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY", "")
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET", "")  # HS256 secret
SUPABASE_DB_URL = os.getenv("SUPABASE_DB_URL")  # postgresql+asyncpg://...

# Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")

# Where the storefront lives; used for Checkout success/cancel redirects
PUBLIC_SITE_URL = os.getenv("PUBLIC_SITE_URL", "http://localhost:3000").rstrip("/")
LOGIN_URL = os.getenv("LOGIN_URL", f"{PUBLIC_SITE_URL}/login")

# Session
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "sb-access-token")
PROTECTED_PATHS = [
    p.strip() for p in os.getenv("PROTECTED_PATHS", "/dashboard").split(",") if p.strip()
]

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
