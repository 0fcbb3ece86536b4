"""
Configuration
━━━━━━━━━━━━━
Reads tunables from environment variables.
Put overrides in a local .env file for development.
"""
import os
from dotenv import load_dotenv

load_dotenv()

# ── Jikan (MyAnimeList) — no key needed ───────────────────────────────────────
JIKAN_BASE_URL  = os.getenv("JIKAN_BASE_URL", "https://api.jikan.moe/v4").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", 12))

# Jikan refuses more than 25 records per request
UPSTREAM_PAGE_LIMIT = 25
# One application page is stitched from two upstream pages
APP_PAGE_SIZE       = UPSTREAM_PAGE_LIMIT * 2

# ── Throttling ────────────────────────────────────────────────────────────────
# Jikan allows ~3 req/sec; calls are spaced by this many seconds
CALL_DELAY     = float(os.getenv("CALL_DELAY", 0.35))
# Quiet period before a typed query / year range triggers a search
DEBOUNCE_DELAY = float(os.getenv("DEBOUNCE_DELAY", 0.5))

# ── Presentation ──────────────────────────────────────────────────────────────
CURATED_LIMIT  = int(os.getenv("CURATED_LIMIT",  10))
SKELETON_COUNT = int(os.getenv("SKELETON_COUNT", 10))

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
