"""Configuration and settings."""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# Paths
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))
OUTPUT_DIR = Path(os.getenv("OUTPUT_DIR", str(PROJECT_ROOT / "output")))
CONFIG_DIR = PROJECT_ROOT / "config"

# Ensure directories exist
DATA_DIR.mkdir(parents=True, exist_ok=True)
OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

# Database
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'stock_count.db'}")

# Logging
LOG_DIR = OUTPUT_DIR / "logs"
LOG_FILE = LOG_DIR / "app.jsonl"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
VERBOSE_LOGGING = os.getenv("VERBOSE_LOGGING", "false").lower() == "true"

# Ensure log directory exists
LOG_DIR.mkdir(parents=True, exist_ok=True)

# OpenTelemetry
TRACING_ENABLED = os.getenv("TRACING_ENABLED", "false").lower() == "true"
OTLP_TRACES_ENDPOINT = os.getenv("OTLP_TRACES_ENDPOINT", "http://localhost:4318/v1/traces")
SERVICE_NAME = os.getenv("SERVICE_NAME", "stock-count")
DEPLOYMENT_ENVIRONMENT = os.getenv("DEPLOYMENT_ENVIRONMENT", "development")

# Ledger
# Attempts for a count that keeps losing the optimistic version check.
COUNT_MAX_ATTEMPTS = int(os.getenv("COUNT_MAX_ATTEMPTS", "3"))

# Movement history
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "10"))
MOVEMENTS_PAGE_SIZE = int(os.getenv("MOVEMENTS_PAGE_SIZE", "20"))

# Current inventory flags item as low stock at or below this quantity
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))
# Branch metrics count products with 0 < qty <= this as low stock
BRANCH_LOW_STOCK_THRESHOLD = int(os.getenv("BRANCH_LOW_STOCK_THRESHOLD", "5"))

# ERP reconciliation column mapping (YAML)
RECONCILIATION_CONFIG_PATH = Path(
    os.getenv("RECONCILIATION_CONFIG_PATH", str(CONFIG_DIR / "reconciliation.yaml"))
)

# HTTP API
API_HOST = os.getenv("API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("API_PORT", "8000"))
