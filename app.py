# app.py
import logging
from typing import Dict, Optional
from uuid import uuid4

from flask import Flask, jsonify, render_template, request

from config import Config
from game_session import GameSession, Presenter
from storage import (
    MUTE_KEY,
    STATE_KEY,
    THEME_KEY,
    JsonFileStore,
    LocalStore,
    StatsManager,
)

app = Flask(__name__)
app.config.from_object(Config)

THEMES = ("light", "dark")


class JsonPresenter(Presenter):
    """Keeps the latest view state of a session so the API can return it."""

    def __init__(self):
        self.cells = [""] * 9
        self.message = ""
        self.active_marker: Optional[str] = None
        self.outcome: Optional[dict] = None
        self.interactive = False
        self.mode: Optional[str] = None
        self.difficulty: Optional[str] = None
        self.resume_prompt: Optional[dict] = None

    def render(self, cells):
        self.cells = list(cells)

    def announce(self, message, active_marker):
        self.message = message
        self.active_marker = active_marker
        self.outcome = None

    def show_outcome(self, message, winning_marker, line):
        self.message = message
        self.outcome = {
            "message": message,
            "winner": winning_marker,
            "line": list(line) if line else None,
        }

    def set_interactivity(self, enabled):
        self.interactive = bool(enabled)

    def reflect_mode_and_difficulty(self, mode, difficulty):
        self.mode = mode
        self.difficulty = difficulty
        self.resume_prompt = None

    def prompt_resume(self, saved_state):
        self.resume_prompt = saved_state


# Shared persistence. Only one game is live at a time: registering a new
# session drops the previous one, since they all share the saved-game key.
store: LocalStore = JsonFileStore(app.config["TTT_DATA_DIR"])
stats = StatsManager(store)
stats.load()
games: Dict[str, GameSession] = {}


def init_storage(new_store: LocalStore) -> None:
    """Swap the backing store (and forget all sessions)."""
    global store, stats
    store = new_store
    stats = StatsManager(store)
    stats.load()
    games.clear()


def make_session() -> GameSession:
    return GameSession(
        store,
        stats=stats,
        presenter=JsonPresenter(),
        ai_delay=app.config["TTT_AI_DELAY"],
        mode=app.config["TTT_DEFAULT_MODE"],
        difficulty=app.config["TTT_DEFAULT_DIFFICULTY"],
    )


def register_session(session: GameSession) -> str:
    for old in games.values():
        old.timer.cancel()
    games.clear()
    g_id = str(uuid4())
    games[g_id] = session
    return g_id


@app.route("/")
def index():
    return render_template("index.html")


@app.route("/api/load", methods=["POST"])
def api_load():
    """
    Page startup. Creates a session and either offers the saved game
    ("resume_prompt" is set) or starts a fresh one.
    """
    session = make_session()
    g_id = register_session(session)
    saved = session.load()
    return jsonify({"game_id": g_id, "resume_prompt": saved,
                    "state": serialize_session(session)})


@app.route("/api/new", methods=["POST"])
def api_new():
    """
    Create a new game. Optional JSON body:
    {"mode": "pvai|pvp", "difficulty": "easy|medium|hard", "ai_first": bool}
    Returns: {"game_id": "...", "state": {...}}
    """
    body = request.get_json(silent=True) or {}
    session = make_session()
    try:
        session.start_new_game(body.get("mode"), body.get("difficulty"),
                               ai_first=body.get("ai_first"))
    except ValueError as e:
        app.logger.warning("Rejected new game %r: %s", body, e)
        return jsonify({"error": str(e)}), 400
    g_id = register_session(session)
    return jsonify({"game_id": g_id, "state": serialize_session(session)})


@app.route("/api/resume/<game_id>", methods=["POST"])
def api_resume(game_id):
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404
    saved = store.load(STATE_KEY, None)
    if saved is None:
        return jsonify({"error": "no saved game"}), 404
    resumed = session.resume_game(saved)
    return jsonify({"resumed": resumed, "state": serialize_session(session)})


@app.route("/api/state/<game_id>", methods=["GET"])
def api_state(game_id):
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404
    session.run_pending()
    return jsonify({"state": serialize_session(session)})


@app.route("/api/move/<game_id>", methods=["POST"])
def api_move(game_id):
    """
    Human makes a move.
    Body: {"index": 0-8}
    Returns: {"state": {...}, "ok": true/false}
    """
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404

    body = request.get_json(silent=True) or {}
    idx = body.get("index")
    if idx is None or not isinstance(idx, int) or isinstance(idx, bool):
        return jsonify({"error": "invalid index"}), 400

    if session.is_ai_turn:
        return jsonify({"error": "not human's turn", "state": serialize_session(session)}), 400

    # Occupied or out-of-range cells are a silent no-op (stale clicks).
    ok = session.apply_move(idx)
    return jsonify({"ok": ok, "state": serialize_session(session)})


@app.route("/api/ai_move/<game_id>", methods=["POST"])
def api_ai_move(game_id):
    """
    Commit the pending AI move now instead of waiting for its delay.
    Returns updated state.
    """
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404

    if not session.active:
        return jsonify({"error": "game not in progress", "state": serialize_session(session)}), 400

    if not session.is_ai_turn:
        return jsonify({"error": "not AI's turn", "state": serialize_session(session)}), 400

    moved = session.run_pending(force=True)
    return jsonify({"ok": moved, "state": serialize_session(session)})


@app.route("/api/reset/<game_id>", methods=["POST"])
def api_reset(game_id):
    """
    Start over in the same session. Optional JSON body:
    {"mode": ..., "difficulty": ..., "ai_first": bool, "fresh": bool}
    "fresh": false keeps the current board and hands the turn back to X.
    """
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404
    body = request.get_json(silent=True) or {}
    fresh = body.get("fresh", True)
    if not isinstance(fresh, bool):
        app.logger.warning("Rejected reset of %s: fresh=%r", game_id, fresh)
        return jsonify({"error": "fresh must be a boolean"}), 400
    try:
        session.start_new_game(body.get("mode"), body.get("difficulty"),
                               fresh=fresh, ai_first=body.get("ai_first"))
    except ValueError as e:
        app.logger.warning("Rejected reset of %s: %s", game_id, e)
        return jsonify({"error": str(e)}), 400
    return jsonify({"state": serialize_session(session)})


@app.route("/api/settings/<game_id>", methods=["GET"])
def api_settings(game_id):
    session = games.get(game_id)
    if not session:
        return jsonify({"error": "game not found"}), 404
    return jsonify(session.current_settings())


@app.route("/api/stats", methods=["GET"])
def api_stats():
    return jsonify({"stats": stats.stats})


@app.route("/api/preferences", methods=["GET", "POST"])
def api_preferences():
    if request.method == "POST":
        body = request.get_json(silent=True) or {}
        theme = body.get("theme")
        muted = body.get("muted")
        if theme is not None and theme not in THEMES:
            app.logger.warning("Rejected theme %r", theme)
            return jsonify({"error": f"theme must be one of {THEMES}"}), 400
        if muted is not None and not isinstance(muted, bool):
            app.logger.warning("Rejected muted=%r", muted)
            return jsonify({"error": "muted must be a boolean"}), 400
        if theme is not None:
            store.save(THEME_KEY, theme)
        if muted is not None:
            store.save(MUTE_KEY, "true" if muted else "false")
    return jsonify({
        "theme": store.load(THEME_KEY, "dark"),
        "muted": store.load(MUTE_KEY, "false") == "true",
    })


# Helper to turn a GameSession into JSON-able dict
def serialize_session(session: GameSession):
    view: JsonPresenter = session.presenter
    return {
        "board": session.board.snapshot(),
        "current_player": session.current_marker,
        "status": session.status,
        "winner": session.winner,
        "winning_line": list(session.winning_line) if session.winning_line else None,
        "message": view.message,
        "interactive": view.interactive,
        "mode": session.mode,
        "difficulty": session.difficulty,
        "ai_marker": session.ai_marker,
        "ai_pending": session.timer.pending,
        "ai_due_in": session.timer.seconds_remaining(),
        "available_moves": session.board.empty_indices() if session.active else [],
        "stats": stats.summary(session.mode, session.difficulty),
    }


if __name__ == "__main__":
    logging.basicConfig(
        level=app.config["TTT_LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    # Use debug only during development
    app.run(debug=True)
