import logging
import os

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Database: local SQLite by default, Postgres (or any SQLAlchemy URL) in prod
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///finance_tracker.db")

# Session cookie signing
SECRET_KEY = os.getenv("SECRET_KEY", "dev")
SESSION_MAX_AGE = int(os.getenv("SESSION_MAX_AGE", str(14 * 24 * 60 * 60)))

# 'development' exposes exception text in 500 responses
APP_ENV = os.getenv("APP_ENV", "development")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def is_development() -> bool:
    return APP_ENV.lower() == "development"


def configure_logging(level: str | None = None):
    """Configure the root logger once; later calls only adjust the level."""
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level or LOG_LEVEL, format=LOG_FORMAT)
    else:
        root.setLevel(level or LOG_LEVEL)
