# ─────────────────────────────────────────────────────────────────
# config.py — Settings & Logging Setup
#
# Everything that changes between a laptop and a deployment is read
# from environment variables here. Domain constants (TTLs, windows,
# retention) live next to the code that uses them.
# ─────────────────────────────────────────────────────────────────

import logging
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Runtime configuration for the service.

    TEMPALERT_STORE is either "memory" or a path to a SQLite file that
    holds the key-value state between restarts.
    """

    def __init__(self):
        self.api_base_url = os.environ.get("TEMPALERT_API_BASE_URL") or \
            "https://tempalert.onensensy.com"
        self.store = os.environ.get("TEMPALERT_STORE") or "memory"
        self.simulator_tick_seconds = float(
            os.environ.get("TEMPALERT_SIMULATOR_TICK_SECONDS") or 310
        )
        self.simulator_tick_enabled = _env_bool("TEMPALERT_SIMULATOR_TICK_ENABLED", True)
        self.log_level = (os.environ.get("TEMPALERT_LOG_LEVEL") or "INFO").upper()


# ── LOGGING CONFIGURATION ─────────────────────────────────────────
# %(name)s is the per-module logger, e.g. "simulator" or "alert_log"

LOG_FORMAT = "%(asctime)s — %(levelname)s — [%(name)s] — %(message)s"


def configure_logging(level: str = "INFO"):
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
