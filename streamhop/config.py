"""
Runtime settings, read from the environment (and a local .env file).
"""
import logging
import os

from dotenv import load_dotenv

load_dotenv()

FETCH_TIMEOUT = int(os.getenv("STREAMHOP_TIMEOUT", "12"))
FETCH_PROXY = os.getenv("STREAMHOP_PROXY") or None
LOG_LEVEL = os.getenv("STREAMHOP_LOG_LEVEL", "INFO").upper()

VIDSRC_BASE = os.getenv("VIDSRC_BASE", "https://vidsrc.me").rstrip("/")
VIDSRC_RCP_BASE = os.getenv("VIDSRC_RCP_BASE", "https://rcp.vidsrc.me").rstrip("/")
# Hashes resolved at once; 1 keeps the walk strictly sequential
VIDSRC_CONCURRENCY = max(1, int(os.getenv("VIDSRC_CONCURRENCY", "1")))


def configure_logging(level: str | None = None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
