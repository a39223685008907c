import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

BOT_TOKEN = os.getenv("BOT_TOKEN")

GOOGLE_SERVICE_ACCOUNT_EMAIL = os.getenv("GOOGLE_SERVICE_ACCOUNT_EMAIL")
GOOGLE_PRIVATE_KEY = (os.getenv("GOOGLE_PRIVATE_KEY") or "").replace("\\n", "\n")
SPREADSHEET_ID = os.getenv("SPREADSHEET_ID")

STORE_BACKEND = os.getenv("STORE_BACKEND", "sheets").strip().lower()
SQLITE_PATH = os.getenv("SQLITE_PATH", "tarot_store.db")
SEED_DIR = os.getenv("SEED_DIR") or None

PORT = int(os.getenv("PORT", "3000"))
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "/divine")
TIMEZONE = os.getenv("TIMEZONE", "Asia/Tokyo")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def check():
    """Logs what is missing; returns False when the bot cannot start talking."""
    ok = True
    if not BOT_TOKEN:
        logger.error("❌ ERROR: BOT_TOKEN not provided!")
        ok = False
    if STORE_BACKEND == "sheets":
        if not SPREADSHEET_ID:
            logger.error("❌ ERROR: SPREADSHEET_ID not provided!")
        if not GOOGLE_SERVICE_ACCOUNT_EMAIL or not GOOGLE_PRIVATE_KEY:
            logger.error("❌ ERROR: Google service account credentials not provided!")
    elif STORE_BACKEND != "sqlite":
        logger.error("❌ ERROR: unknown STORE_BACKEND %r", STORE_BACKEND)
    return ok
