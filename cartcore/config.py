"""
Environment configuration.

Values are read once at import, following the same conventions as the
database module: plain os.environ lookups with safe defaults.
"""

import os


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name, "")
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


# Product catalog API
CATALOG_API_URL = os.environ.get("CATALOG_API_URL", "")
CATALOG_API_TOKEN = os.environ.get("CATALOG_API_TOKEN", "")
CATALOG_TIMEOUT_SECONDS = _float_env("CATALOG_TIMEOUT_SECONDS", 10.0)
CATALOG_MAX_RETRIES = _int_env("CATALOG_MAX_RETRIES", 3)

# Upstash Redis (cart persistence)
UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")
CART_TTL_SECONDS = _int_env("CART_TTL_SECONDS", 86400)
