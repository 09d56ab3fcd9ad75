"""Settings read from the environment (and a .env file, via python-dotenv)."""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("%s=%r is not a number, using %s", name, raw, default)
        return default
    if value < 0:
        logger.warning("%s=%r is negative, using %s", name, raw, default)
        return default
    return value


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")
    TTT_DATA_DIR = os.environ.get("TTT_DATA_DIR", ".tictactoe")
    # pause before the AI commits its move, purely for pacing
    TTT_AI_DELAY = _float_env("TTT_AI_DELAY", 0.7)
    TTT_DEFAULT_MODE = os.environ.get("TTT_DEFAULT_MODE", "pvai")
    TTT_DEFAULT_DIFFICULTY = os.environ.get("TTT_DEFAULT_DIFFICULTY", "medium")
    TTT_LOG_LEVEL = os.environ.get("TTT_LOG_LEVEL", "INFO").upper()
