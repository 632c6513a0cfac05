"""Configuration module for the room access-control service.

This module provides centralized configuration management, including directory
paths, API server settings, storage settings, and room/VIP defaults.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# --- Storage Configuration ---

# SQLite database file. DATABASE_URL, when set, wins over DB_PATH.
DB_PATH = Path(os.getenv("DB_PATH", str(DATA_DIR / "rooms.db")))
DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DB_PATH}")

# Seconds a writer waits for the SQLite write lock before giving up
SQLITE_BUSY_TIMEOUT: float = float(os.getenv("SQLITE_BUSY_TIMEOUT", "30"))

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "3000"))

# CORS allowed origins (comma-separated list)
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:3000,http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# --- Room Configuration ---

ROOM_NAME_MAX_LENGTH: int = int(os.getenv("ROOM_NAME_MAX_LENGTH", "50"))
PAYMENT_LABEL_MAX_LENGTH: int = int(os.getenv("PAYMENT_LABEL_MAX_LENGTH", "80"))
PAYMENT_URL_MAX_LENGTH: int = int(os.getenv("PAYMENT_URL_MAX_LENGTH", "500"))
TITLE_MAX_LENGTH: int = int(os.getenv("TITLE_MAX_LENGTH", "100"))

# How many times update_room reloads and re-applies a mutation after losing
# a version race before reporting a conflict
ROOM_UPDATE_MAX_RETRIES: int = int(os.getenv("ROOM_UPDATE_MAX_RETRIES", "5"))

# --- VIP Code Configuration ---

VIP_CODE_LENGTH: int = int(os.getenv("VIP_CODE_LENGTH", "6"))

# No 0/O or 1/I, codes are read aloud on stream
VIP_CODE_ALPHABET: str = os.getenv(
    "VIP_CODE_ALPHABET", "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
)
VIP_CODE_GENERATION_ATTEMPTS: int = int(
    os.getenv("VIP_CODE_GENERATION_ATTEMPTS", "10")
)
