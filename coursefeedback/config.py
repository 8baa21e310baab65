"""
Configuration settings for the course feedback service.

Loads settings from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = Path(os.getenv("DATA_DIR", str(PROJECT_ROOT / "data")))

# Debug mode
DEBUG = os.getenv("DEBUG", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG" if DEBUG else "INFO").upper()

# Which backend stores feedback: "local", "table" or "remote"
FEEDBACK_BACKEND = os.getenv("FEEDBACK_BACKEND", "local").lower()
FEEDBACK_BACKENDS = ("local", "table", "remote")

# Local key-value storage (one JSON file, one named slot)
FEEDBACK_FILE = Path(os.getenv("FEEDBACK_FILE", str(DATA_DIR / "local_storage.json")))
FEEDBACK_SLOT = os.getenv("FEEDBACK_SLOT", "feedback_data")

# DuckDB settings
DUCKDB_PATH = Path(os.getenv("DUCKDB_PATH", str(DATA_DIR / "feedback.duckdb")))

# Hosted table (PostgREST / Supabase style REST endpoint)
REMOTE_TABLE_URL = os.getenv("REMOTE_TABLE_URL", "")
REMOTE_TABLE_API_KEY = os.getenv("REMOTE_TABLE_API_KEY", "")
REMOTE_TABLE_NAME = os.getenv("REMOTE_TABLE_NAME", "feedback")
# Transport timeout in seconds; empty means wait indefinitely
_remote_timeout = os.getenv("REMOTE_TABLE_TIMEOUT", "30")
REMOTE_TABLE_TIMEOUT = float(_remote_timeout) if _remote_timeout else None

# Fetch-latest limits
DEFAULT_LATEST_LIMIT = int(os.getenv("DEFAULT_LATEST_LIMIT", "5"))
MAX_LATEST_LIMIT = int(os.getenv("MAX_LATEST_LIMIT", "100"))

# Insert the sample record into an empty store when the API starts
SEED_ON_STARTUP = os.getenv("SEED_ON_STARTUP", "true").lower() in ("true", "1", "yes")

# API settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))


def validate_config():
    """Validate the configuration settings."""
    errors = []

    if FEEDBACK_BACKEND not in FEEDBACK_BACKENDS:
        errors.append(
            f"Unknown FEEDBACK_BACKEND '{FEEDBACK_BACKEND}'. Valid: {', '.join(FEEDBACK_BACKENDS)}"
        )

    if FEEDBACK_BACKEND == "remote" and not REMOTE_TABLE_URL:
        errors.append("REMOTE_TABLE_URL must be set when FEEDBACK_BACKEND=remote")

    if not 0 <= DEFAULT_LATEST_LIMIT <= MAX_LATEST_LIMIT:
        errors.append(
            f"DEFAULT_LATEST_LIMIT ({DEFAULT_LATEST_LIMIT}) must be between 0 and "
            f"MAX_LATEST_LIMIT ({MAX_LATEST_LIMIT})"
        )

    if errors:
        for error in errors:
            print(f"Config Error: {error}")
        return False

    return True


if __name__ == "__main__":
    print("Configuration Settings")
    print("=" * 50)
    print(f"PROJECT_ROOT: {PROJECT_ROOT}")
    print(f"DATA_DIR: {DATA_DIR}")
    print(f"FEEDBACK_BACKEND: {FEEDBACK_BACKEND}")
    print(f"FEEDBACK_FILE: {FEEDBACK_FILE}")
    print(f"FEEDBACK_SLOT: {FEEDBACK_SLOT}")
    print(f"DUCKDB_PATH: {DUCKDB_PATH}")
    print(f"REMOTE_TABLE_URL: {REMOTE_TABLE_URL or '(not set)'}")
    print(f"REMOTE_TABLE_NAME: {REMOTE_TABLE_NAME}")
    print(f"REMOTE_TABLE_TIMEOUT: {REMOTE_TABLE_TIMEOUT}")
    print(f"DEFAULT_LATEST_LIMIT: {DEFAULT_LATEST_LIMIT}")
    print(f"MAX_LATEST_LIMIT: {MAX_LATEST_LIMIT}")
    print(f"SEED_ON_STARTUP: {SEED_ON_STARTUP}")
    print(f"DEBUG: {DEBUG}")
    print(f"LOG_LEVEL: {LOG_LEVEL}")
    print(f"API_HOST: {API_HOST}")
    print(f"API_PORT: {API_PORT}")
    print("=" * 50)
    print(f"Config valid: {validate_config()}")
