"""
Runtime settings for the smart search backend
Values come from the environment (optionally a .env file)
"""
import os
import logging
from typing import Dict, List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: {raw!r}, using {default}")
        return default


def _get_int(name: str, default: int) -> int:
    return int(_get_float(name, default))


def parse_weight_overrides(raw: Optional[str]) -> Dict[str, float]:
    """
    Parse a "vector=0.5,lexical=0.2" style string into a weights dict

    Unknown or malformed entries are skipped with a warning.
    """
    overrides: Dict[str, float] = {}
    if not raw:
        return overrides

    for item in raw.split(","):
        if not item.strip():
            continue
        key, sep, value = item.partition("=")
        if not sep:
            logger.warning(f"Ignoring weight override without '=': {item!r}")
            continue
        try:
            overrides[key.strip()] = float(value)
        except ValueError:
            logger.warning(f"Ignoring non-numeric weight override: {item!r}")
    return overrides


# ======================
# ===== Database =======
# ======================
DB_HOST = os.getenv("DB_HOST")
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_PORT = _get_int("DB_PORT", 5432)
DB_POOL_MIN_SIZE = _get_int("DB_POOL_MIN_SIZE", 1)
DB_POOL_MAX_SIZE = _get_int("DB_POOL_MAX_SIZE", 10)
DB_COMMAND_TIMEOUT = _get_float("DB_COMMAND_TIMEOUT", 60.0)

# ======================
# ===== Embeddings =====
# ======================
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "text-embedding-3-large")
EMBEDDING_API_URL = os.getenv("EMBEDDING_API_URL", "https://api.openai.com/v1/embeddings")
EMBEDDING_TIMEOUT = _get_float("EMBEDDING_TIMEOUT", 15.0)

# ======================
# ===== Smart search ===
# ======================
DEFAULT_RESULT_LIMIT = 20
MAX_RESULT_LIMIT = 50
CANDIDATE_MULTIPLIER = 3
MIN_CANDIDATE_COUNT = 40
MIN_FALLBACK_COUNT = 10
RETRIEVAL_TIMEOUT = _get_float("RETRIEVAL_TIMEOUT", 10.0)
SMART_SEARCH_WEIGHTS = parse_weight_overrides(os.getenv("SMART_SEARCH_WEIGHTS"))

# ======================
# ===== Server =========
# ======================
HOST = os.getenv("HOST", "0.0.0.0")
PORT = _get_int("PORT", 8000)
DEBUG = os.getenv("DEBUG", "false").lower() == "true"
CORS_ORIGINS: List[str] = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://localhost:5173",
    ).split(",")
    if origin.strip()
]
