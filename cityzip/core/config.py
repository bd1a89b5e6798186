"""Configuration management for the city/ZIP resolution engine."""
import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
DUCKDB_PATH = Path(os.getenv("DATABASE_PATH", DATA_DIR / "duckdb" / "cityzip.duckdb"))

# Optional JSON file overriding the built-in location rules
RULES_PATH: Optional[Path] = Path(os.environ["RULES_PATH"]) if os.getenv("RULES_PATH") else None

# Optional JSON file with manual aliases ({"alias": "normalized_city"})
MANUAL_ALIASES_PATH: Optional[Path] = (
    Path(os.environ["MANUAL_ALIASES_PATH"]) if os.getenv("MANUAL_ALIASES_PATH") else None
)

# Danish Address Web API (DAWA / Dataforsyningen)
DAWA_POSTNUMRE_URL: str = os.getenv("DAWA_POSTNUMRE_URL", "https://api.dataforsyningen.dk/postnumre")
DAWA_TIMEOUT: int = int(os.getenv("DAWA_TIMEOUT", "60"))

# Batch backfill settings
BACKFILL_CHUNK_SIZE: int = int(os.getenv("BACKFILL_CHUNK_SIZE", "1000"))
BACKFILL_WORKERS: int = int(os.getenv("BACKFILL_WORKERS", "4"))

# Suggestions for unresolved cities
SUGGESTION_THRESHOLD: float = float(os.getenv("SUGGESTION_THRESHOLD", "0.8"))
SUGGESTION_LIMIT: int = int(os.getenv("SUGGESTION_LIMIT", "3"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# Reference table names
TABLE_NAMES = {
    "zip_codes": "zip_codes",
    "city_aliases": "city_aliases",
}
