"""
config.py — Environment-based configuration utilities.

- Loads a .env file (python-dotenv) from the working directory or its parents
- Reads provider endpoints, paging limits and timeouts from environment variables
- Provides helper for parsing booleans from env
"""

import os, pathlib
from dotenv import find_dotenv, load_dotenv

# .env is read before any setting below; variables already in the environment win.
load_dotenv(find_dotenv(usecwd=True))

def bool_from_env(name: str, default: bool = False) -> bool:
    # Parse boolean env var into True/False with default fallback.
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}

# YouTube Data API
YT_API_BASE = os.getenv("YT_API_BASE", "https://www.googleapis.com/youtube/v3/")
PAGE_SIZE = int(os.getenv("YT_PAGE_SIZE", "50"))      # search.list maxResults ceiling
PAGE_LIMIT = int(os.getenv("YT_PAGE_LIMIT", "35"))    # max search pages per channel
BATCH_SIZE = int(os.getenv("YT_BATCH_SIZE", "50"))    # videos.list ids per call
REQUEST_TIMEOUT = float(os.getenv("YT_REQUEST_TIMEOUT", "20"))

# Legacy policy: rotate keys on any provider error, not only quota errors
ROTATE_ON_ANY_ERROR = bool_from_env("YT_ROTATE_ON_ANY_ERROR", False)
MAX_PROVIDER_RETRIES = int(os.getenv("YT_MAX_PROVIDER_RETRIES", "3"))

# Retries of 429/5xx responses on the same key, with exponential backoff (seconds)
TRANSIENT_RETRIES = int(os.getenv("YT_TRANSIENT_RETRIES", "3"))
RETRY_BACKOFF = float(os.getenv("YT_RETRY_BACKOFF", "1.0"))

# Storage
DATA_DIR = pathlib.Path(os.getenv("TRACKER_DATA_DIR", "data"))
DB_NAME = os.getenv("TRACKER_DB_NAME", "tracker.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
