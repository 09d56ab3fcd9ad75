"""
storage.py

Persistence for Tic-Tac-Toe: a small key/value store (JSON file backed or
in-memory) and the lifetime statistics kept on top of it.
"""

from __future__ import annotations
import copy
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

STATS_KEY = "tictactoe_stats_pro"   # lifetime statistics (JSON)
STATE_KEY = "tictactoe_state_pro"   # unfinished game (JSON)
THEME_KEY = "tictactoe_theme_pro"   # 'light' / 'dark' (plain string)
MUTE_KEY = "tictactoe_mute_pro"     # 'true' / 'false' (plain string)

SIMPLE_VALUE_KEYS = (THEME_KEY, MUTE_KEY)


def _encode(key: str, value: Any) -> str:
    if key in SIMPLE_VALUE_KEYS:
        return str(value)
    return json.dumps(value)


def _decode(key: str, raw: Optional[str], default: Any) -> Any:
    if not raw:
        return default
    if key in SIMPLE_VALUE_KEYS:
        return raw
    try:
        return json.loads(raw)
    except ValueError:
        logger.error("Failed to parse data for %s, falling back to default", key)
        return default


class LocalStore:
    """load(key, default) / save(key, value) / remove(key) over raw strings."""

    def _read(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def _write(self, key: str, data: str) -> None:
        raise NotImplementedError

    def _delete(self, key: str) -> None:
        raise NotImplementedError

    def load(self, key: str, default: Any = None) -> Any:
        try:
            raw = self._read(key)
        except OSError as e:
            logger.error("Failed to read %s: %s", key, e)
            return default
        return _decode(key, raw, default)

    def save(self, key: str, value: Any) -> None:
        try:
            self._write(key, _encode(key, value))
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to save data for %s: %s", key, e)

    def remove(self, key: str) -> None:
        try:
            self._delete(key)
        except OSError as e:
            logger.error("Failed to remove %s: %s", key, e)


class MemoryStore(LocalStore):
    def __init__(self):
        self.data: Dict[str, str] = {}

    def _read(self, key):
        return self.data.get(key)

    def _write(self, key, data):
        self.data[key] = data

    def _delete(self, key):
        self.data.pop(key, None)


class JsonFileStore(LocalStore):
    """One file per key under `directory`."""

    def __init__(self, directory):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def _read(self, key):
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def _write(self, key, data):
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(data, encoding="utf-8")
        os.replace(tmp, path)

    def _delete(self, key):
        path = self._path(key)
        if path.exists():
            path.unlink()


# -------------------------
# Statistics
# -------------------------
def _counters() -> Dict[str, int]:
    return {"wins": 0, "losses": 0, "draws": 0}


DEFAULT_STATS = {
    "pvai": {
        "total": _counters(),
        "easy": _counters(),
        "medium": _counters(),
        "hard": _counters(),
    },
    "pvp": {
        "X": _counters(),
        "O": _counters(),
    },
}


def _merge_counters(loaded: Any, default: Dict[str, int]) -> Dict[str, int]:
    merged = dict(default)
    if isinstance(loaded, dict):
        for name in merged:
            value = loaded.get(name)
            if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
                merged[name] = value
    return merged


class StatsManager:
    def __init__(self, store: LocalStore):
        self.store = store
        self.stats = copy.deepcopy(DEFAULT_STATS)

    def load(self) -> Dict[str, Any]:
        """Load stats, filling any missing bucket, and recompute the PvAI total."""
        loaded = self.store.load(STATS_KEY, None)
        if loaded is not None and not isinstance(loaded, dict):
            logger.warning("Ignoring malformed statistics of type %s", type(loaded).__name__)
            loaded = None
        loaded = loaded or {}

        stats = copy.deepcopy(DEFAULT_STATS)
        for mode, buckets in stats.items():
            section = loaded.get(mode) if isinstance(loaded.get(mode), dict) else {}
            for bucket, default in buckets.items():
                buckets[bucket] = _merge_counters(section.get(bucket), default)

        pvai = stats["pvai"]
        pvai["total"] = {
            name: pvai["easy"][name] + pvai["medium"][name] + pvai["hard"][name]
            for name in ("wins", "losses", "draws")
        }
        self.stats = stats
        return stats

    def record_game_result(self, winner: Optional[str], mode: str, difficulty: str,
                           human_marker: str = "X") -> None:
        """
        winner: 'X', 'O', or None for a draw.
        PvAI results are counted from the human's point of view.
        """
        if mode == "pvai":
            if winner is None:
                field = "draws"
            elif winner == human_marker:
                field = "wins"
            else:
                field = "losses"
            bucket = self.stats["pvai"].get(difficulty)
            if bucket is not None:
                bucket[field] += 1
            self.stats["pvai"]["total"][field] += 1
        elif mode == "pvp":
            pvp = self.stats["pvp"]
            if winner is None:
                pvp["X"]["draws"] += 1
                pvp["O"]["draws"] += 1
            else:
                loser = "O" if winner == "X" else "X"
                pvp[winner]["wins"] += 1
                pvp[loser]["losses"] += 1
        else:
            raise ValueError(f"unknown mode: {mode!r}")

        self.store.save(STATS_KEY, self.stats)

    def summary(self, mode: str, difficulty: str) -> Dict[str, int]:
        """The counters shown for the current mode."""
        if mode == "pvai":
            return dict(self.stats["pvai"].get(difficulty) or self.stats["pvai"]["total"])
        pvp = self.stats["pvp"]
        return {"x_wins": pvp["X"]["wins"], "o_wins": pvp["O"]["wins"], "draws": pvp["X"]["draws"]}
