import os
from pathlib import Path

from dotenv import load_dotenv


def _set_if_missing(name: str, value: str) -> None:
    """Only fill in a default when the variable is missing/empty."""
    if os.getenv(name) is None or os.getenv(name) == "":
        os.environ[name] = value


# ---------------------------------------------------------
# Load .env from project root (same folder as app.py)
# ---------------------------------------------------------
ROOT = Path(__file__).resolve().parents[1]  # project root
load_dotenv(ROOT / ".env", override=True)

# ---------------------------------------------------------
# Make tests deterministic:
# - a known webhook secret (tests sign with settings.SHOPIFY_API_SECRET anyway)
# - no real SMTP server
# - no throwaway app.db in the repo root
# We do NOT override what the user already set explicitly.
# ---------------------------------------------------------
_set_if_missing("SHOPIFY_API_SECRET", "test-webhook-secret")
os.environ["SMTP_HOST"] = ""
os.environ["WEBHOOK_REQUIRE_SIGNATURE"] = "false"
_set_if_missing("DATABASE_URL", "sqlite:///:memory:")
