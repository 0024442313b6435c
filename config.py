"""Application configuration driven by environment variables.

All settings have sensible defaults for local development.
Copy ``.env.example`` to ``.env`` and adjust values for your environment.
"""

import os

# ---------------------------------------------------------------------------
# HTTP server
# ---------------------------------------------------------------------------

HTTP_HOST: str = os.getenv("HTTP_HOST", "0.0.0.0")
HTTP_PORT: int = int(os.getenv("HTTP_PORT", "8000"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ---------------------------------------------------------------------------
# Recommendation engine
# ---------------------------------------------------------------------------

NUM_RECOMMENDATIONS: int = int(os.getenv("NUM_RECOMMENDATIONS", "6"))
MAX_RECOMMENDATIONS: int = int(os.getenv("MAX_RECOMMENDATIONS", "50"))

# Requests slower than this are logged at WARNING.
RECOMMENDATION_WARN_THRESHOLD_MS: float = float(
    os.getenv("RECOMMENDATION_WARN_THRESHOLD_MS", "450")
)

# ---------------------------------------------------------------------------
# Preference profile cache
# ---------------------------------------------------------------------------

# Seconds a derived profile may be reused.  0 disables the cache; entries
# are also dropped as soon as the user records a new interaction.
PROFILE_CACHE_TTL_SECONDS: float = float(os.getenv("PROFILE_CACHE_TTL_SECONDS", "0"))

# ---------------------------------------------------------------------------
# Seed data
# ---------------------------------------------------------------------------

# Optional JSON document loaded into the in-memory store at startup.
SEED_FILE: str | None = os.getenv("SEED_FILE") or None
