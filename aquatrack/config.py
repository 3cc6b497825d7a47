"""
CONSOLE CONFIGURATION

Purpose:
- Single place for environment-driven settings
- No secrets hardcoded (use os.getenv)
- Logging bootstrap for the Streamlit entrypoint

Environment:
• AQUATRACK_API_BASE_URL   Backend root URL
• AQUATRACK_API_TIMEOUT    Seconds; unset means requests wait for the backend
• AQUATRACK_API_TOKEN      Optional bootstrap bearer token
• AQUATRACK_BOTTLE_PRICE   Unit price used for revenue and order totals
• AQUATRACK_DATA_SOURCE    "http" or "memory"
• AQUATRACK_LOG_LEVEL      Standard logging level name
"""

import os
import logging
from typing import Optional


def _optional_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(f"Ignoring non-numeric {name}={raw!r}")
        return None


# ==================================================
# BACKEND
# ==================================================
API_BASE_URL = os.getenv("AQUATRACK_API_BASE_URL", "http://localhost:8000").rstrip("/")
API_TIMEOUT = _optional_float("AQUATRACK_API_TIMEOUT")
API_TOKEN = os.getenv("AQUATRACK_API_TOKEN")

DATA_SOURCE_HTTP = "http"
DATA_SOURCE_MEMORY = "memory"
DATA_SOURCE = os.getenv("AQUATRACK_DATA_SOURCE", DATA_SOURCE_MEMORY).lower()

# ==================================================
# BUSINESS CONSTANTS
# ==================================================
BOTTLE_PRICE = int(os.getenv("AQUATRACK_BOTTLE_PRICE", "42"))

DEFAULT_CHANNEL = "GENERAL"
CUSTOM_CHANNEL = "CUSTOM"
KNOWN_CHANNELS = ["BLINKIT", "ZEPTO", "IBM", "GENERAL"]

# Upper bound for a single QR generation request
MAX_QR_BATCH = 5000

# ==================================================
# LOGGING
# ==================================================
LOG_LEVEL = os.getenv("AQUATRACK_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the console log format once per process."""
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL), logging.INFO),
        format=LOG_FORMAT,
    )
