"""Project-level configuration and path helpers."""

import os
from decimal import Decimal
from pathlib import Path
from typing import Union

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DATA_DIR = PROJECT_ROOT / "03_data"
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_DB_PATH = DATA_DIR / "beatmarket.db"
DEFAULT_LOG_PATH = LOGS_DIR / "app.log"
DEFAULT_BLOB_DIR = DATA_DIR / "blobs"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(parents=True, exist_ok=True)

# Ledger
MIN_WITHDRAWAL = Decimal("15.00")
CURRENCY = "USD"

# Default tier prices when a producer leaves a price blank
DEFAULT_PRICE_MP3 = Decimal("19.99")
DEFAULT_PRICE_WAV = Decimal("29.99")
DEFAULT_PRICE_EXCLUSIVE = Decimal("149.99")

# Upload limits
MAX_AUDIO_BYTES = 20 * 1024 * 1024
MAX_COVER_BYTES = 2 * 1024 * 1024

# Blob buckets
AUDIO_BUCKET = "beat-files"
COVER_BUCKET = "cover-arts"
BUCKETS = (AUDIO_BUCKET, COVER_BUCKET)

# Fallback for initial session loading (seconds)
SESSION_LOAD_TIMEOUT = 1.5

MIN_PASSWORD_LENGTH = 6


PathLike = Union[str, Path]


def resolve_db_path(env_value: PathLike | None = None) -> PathLike:
    """Resolve DATABASE_URL to an absolute path."""
    if not env_value:
        return DEFAULT_DB_PATH

    if str(env_value) == ":memory:":
        return ":memory:"

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def resolve_blob_dir(env_value: PathLike | None = None) -> Path:
    """Resolve BLOB_DIR to an absolute path."""
    if not env_value:
        return DEFAULT_BLOB_DIR

    candidate = Path(env_value)
    return candidate if candidate.is_absolute() else PROJECT_ROOT / candidate


def public_base_url() -> str:
    """Base URL used when building public blob links."""
    return os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/")
