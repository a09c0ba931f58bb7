"""Configuration: env, shared data container, link resolver settings."""
import os
from pathlib import Path

from dotenv import load_dotenv

# Base paths (project root = parent of beatbridge package)
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env from project root so ODESLI_API_KEY etc. are set
load_dotenv(BASE_DIR / ".env")

# Shared container: read and written by both the host service and the share intake process
DATA_DIR = Path(os.getenv("BEATBRIDGE_DATA_DIR", str(BASE_DIR / "data")))
PREFERENCES_PATH = DATA_DIR / "preferences.json"
HISTORY_PATH = DATA_DIR / "history.json"
MAILBOX_PATH = DATA_DIR / "mailbox.json"

# API
API_HOST = os.getenv("BEATBRIDGE_API_HOST", "127.0.0.1")
API_PORT = int(os.getenv("BEATBRIDGE_API_PORT", "8000"))
# Where the share intake process signals the host service
API_URL = os.getenv("BEATBRIDGE_API_URL", f"http://{API_HOST}:{API_PORT}")

# Deep links (beatbridge://share, beatbridge://selectservice)
URL_SCHEME = os.getenv("BEATBRIDGE_URL_SCHEME", "beatbridge")

# Odesli / song.link
ODESLI_API_URL = os.getenv("ODESLI_API_URL", "https://api.song.link/v1-alpha.1/links")
ODESLI_API_KEY = os.getenv("ODESLI_API_KEY", "")
ODESLI_USER_COUNTRY = os.getenv("ODESLI_USER_COUNTRY", "")
RESOLVER_TIMEOUT_SEC = float(os.getenv("BEATBRIDGE_RESOLVER_TIMEOUT", "10"))
RESOLVER_MAX_RETRIES = int(os.getenv("BEATBRIDGE_RESOLVER_RETRIES", "2"))
RESOLVER_BACKOFF_SEC = float(os.getenv("BEATBRIDGE_RESOLVER_BACKOFF", "0.5"))

# Text handed to the message composer
MESSAGE_TEMPLATE = os.getenv("BEATBRIDGE_MESSAGE_TEMPLATE", "Check out this song: {link}")


def ensure_data_dir() -> None:
    DATA_DIR.mkdir(parents=True, exist_ok=True)
