# mission_control/config.py
"""Environment-driven settings for the Mission Control API and client."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

DATA_DIR = Path(os.getenv("DATA_DIR", str(BASE_DIR / "data")))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR / 'tasks.db'}")

# Initial board contents, loaded only into an empty database
SEED_FILE = Path(os.getenv("SEED_FILE", str(BASE_DIR / "tasks.json")))

ALLOWED_ORIGINS = os.getenv(
    "CORS_ORIGINS",
    "http://localhost:5173,http://localhost:3000",
).split(",")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

API_URL = os.getenv("MISSION_CONTROL_API_URL", "http://localhost:3001/api")
