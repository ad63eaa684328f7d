"""Configuration management for the geocoder export."""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", PROJECT_ROOT / "data"))
BLOB_STORE_DIR = Path(os.getenv("BLOB_STORE_DIR", DATA_DIR / "blob"))

# Blob names
INPUT_BUCKET: str = os.getenv("INPUT_BUCKET", "stop-places")
INPUT_BLOB_NAME: str = os.getenv("INPUT_BLOB_NAME", "geocoder/stop_places_export_geocoder_latest.zip")
OUTPUT_BUCKET: str = os.getenv("OUTPUT_BUCKET", "geocoder-export")
LATEST_BUCKET: str = os.getenv("LATEST_BUCKET", "geocoder-latest")
LATEST_BLOB_NAME: str = os.getenv("LATEST_BLOB_NAME", "stop_places_csv_export_geocoder_latest.zip")
OUTPUT_FILE_PREFIX: str = os.getenv("OUTPUT_FILE_PREFIX", "stop_places_export_geocoder_")

# Popularity
STOP_PLACE_BOOST_CONFIG: str = os.getenv("STOP_PLACE_BOOST_CONFIG", '{"defaultValue": 1000}')
GOS_BOOST_FACTOR: float = float(os.getenv("GOS_BOOST_FACTOR", "1.0"))
ADMIN_UNIT_POPULARITY: int = int(os.getenv("ADMIN_UNIT_POPULARITY", "1"))

# Documents
DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "nor")
DEFAULT_SOURCE: str = os.getenv("DEFAULT_SOURCE", "nsr")
GOS_INCLUDE: bool = _env_bool("GOS_INCLUDE", "true")
ADMIN_UNITS_INCLUDE: bool = _env_bool("ADMIN_UNITS_INCLUDE", "true")

# Admin units
ADMIN_UNITS_CACHE_MAX_SIZE: int = int(os.getenv("ADMIN_UNITS_CACHE_MAX_SIZE", "30000"))
EXCLUDED_COUNTRY_CODE: str = os.getenv("EXCLUDED_COUNTRY_CODE", "RU")
CENTROID_CRS: str = os.getenv("CENTROID_CRS", "EPSG:25833")  # UTM zone 33N (Norway)

# Execution
MAPPING_WORKERS: int = int(os.getenv("MAPPING_WORKERS", "4"))
RETRY_MAX_ATTEMPTS: int = int(os.getenv("RETRY_MAX_ATTEMPTS", "3"))
RETRY_BASE_WAIT: float = float(os.getenv("RETRY_BASE_WAIT", "5.0"))
RETRY_MULTIPLIER: float = float(os.getenv("RETRY_MULTIPLIER", "3.0"))
RETRY_MAX_WAIT: float = float(os.getenv("RETRY_MAX_WAIT", "60.0"))
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
