import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
INPUT_DIR = BASE_DIR / os.getenv("INPUT_DIR", "input")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Filename Configuration ---
# Snapshots are exported as e.g. inventory_snapshot_2026-01-15.csv
INVENTORY_FILENAME_PREFIX = os.getenv("INVENTORY_FILENAME_PREFIX", "inventory_snapshot_")
REPORT_FILENAME_BASE = os.getenv("REPORT_FILENAME_BASE", "inventory_health")
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "true").lower() == "true"

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")
WEBHOOK_TIMEOUT = int(os.getenv("WEBHOOK_TIMEOUT", "15"))

# --- Alerting ---
# Batches expiring within this many days raise an "expiring" alert.
EXPIRY_HORIZON_DAYS = int(os.getenv("EXPIRY_HORIZON_DAYS", "30"))

# --- Shared Business Logic ---
# Explicit bucket order for every report, table and payload.
STATUS_ORDER = [
    "Adequate",
    "Low Stock",
    "Critical",
]

CATEGORY_ORDER = [
    "OTC",
    "Prescription",
]

# The dashboard, the document store and the CSV exports never agreed on
# field names. Everything is mapped to the document store spelling.
FIELD_ALIASES = {
    "qty": "quantity",
    "currentStock": "quantity",
    "current_stock": "quantity",
    "threshold": "minThreshold",
    "min_threshold": "minThreshold",
    "medicineName": "name",
    "medicine_name": "name",
    "expiry_date": "expiryDate",
    "batch": "batchNumber",
    "batchNo": "batchNumber",
    "batch_number": "batchNumber",
}
