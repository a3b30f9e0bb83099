from __future__ import annotations

import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

# ── Path setup: must happen before any local imports ────────────────────────
_HERE = Path(__file__).resolve().parent        # /app/api
_ROOT = _HERE.parent                            # /app
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from flask import Flask, current_app, jsonify, request
from flask_cors import CORS

import gymactivity as ga
from config import settings

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("gym_activity")


def _identity(member_id: str, body: dict[str, Any] | None = None) -> ga.MemberIdentity:
    source = body if body is not None else request.args
    return ga.MemberIdentity(
        member_id=member_id,
        gym_id=(source.get("gymId") or "").strip() or None,
        membership_id=(source.get("membershipId") or "").strip() or None,
    )


def _range_bound(name: str, end_of_day: bool = False) -> datetime | None:
    """?from= / ?to= as a datetime; a bare YYYY-MM-DD `to` covers that whole day."""
    text = (request.args.get(name) or "").strip()
    if not text:
        return None
    ts = ga.parse_timestamp(text)
    if ts is None:
        raise ValueError(f"{name} must be a date")
    if end_of_day and len(text) == 10:
        ts += timedelta(days=1, microseconds=-1)
    return ts


def _repository() -> ga.StoreRepository:
    return current_app.extensions["gym_repository"]


def create_app(repository: ga.StoreRepository | None = None) -> Flask:
    app = Flask(__name__)
    app.url_map.strict_slashes = False
    CORS(app, origins="*")

    if repository is None:
        repository = ga.StoreRepository(ga.JsonDocumentStore(settings.STORE_FILE))
    app.extensions["gym_repository"] = repository

    # Always return JSON for errors, never HTML
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "detail": str(e)}), 500

    @app.get("/")
    def root():
        return jsonify({"name": "Gym Activity API", "status": "ok"})

    @app.get("/api/health")
    def health():
        repo = _repository()
        store = repo.store
        info: dict[str, Any] = {
            "status":        "ok",
            "store":         type(store).__name__,
            "fetch_timeout": settings.FETCH_TIMEOUT,
            "locale":        settings.LOCALE,
        }
        if isinstance(store, ga.JsonDocumentStore):
            info["store_file"] = str(store.path)
            info["store_file_exists"] = store.path.exists()
        try:
            info["collections"] = store.paths()
        except Exception as exc:
            info["status"] = "degraded"
            info["error"] = str(exc)
        return jsonify(info)

    @app.get("/api/members/<member_id>/dashboard")
    async def dashboard(member_id: str):
        try:
            recent = int(request.args.get("recent", settings.RECENT_LIMIT))
        except ValueError:
            return jsonify({"error": "recent must be an integer"}), 400
        identity = _identity(member_id)
        try:
            payload = await ga.build_dashboard(
                _repository(), identity,
                recent_limit=recent, locale=request.args.get("locale"),
            )
        except Exception as exc:
            log.exception("Dashboard build failed for %s: %s", member_id, exc)
            payload = {**ga.empty_dashboard(identity), "_stub": True}
        return jsonify(payload)

    @app.get("/api/members/<member_id>/attendance")
    async def attendance(member_id: str):
        try:
            start, end = _range_bound("from"), _range_bound("to", end_of_day=True)
        except (ValueError, OverflowError) as exc:
            return jsonify({"error": str(exc)}), 400
        payload = await ga.build_attendance_view(
            _repository(), _identity(member_id),
            locale=request.args.get("locale"), start=start, end=end,
        )
        return jsonify(payload)

    @app.get("/api/members/<member_id>/payments")
    async def payments(member_id: str):
        payload = await ga.build_payments_view(_repository(), _identity(member_id))
        return jsonify(payload)

    @app.post("/api/members/<member_id>/checkin")
    async def checkin(member_id: str):
        body = request.get_json(silent=True) or {}
        identity = _identity(member_id, body)
        result = await _repository().check_in(
            identity,
            membership_id=identity.membership_id,
            now=datetime.now(),
            allow_repeat=bool(body.get("allowRepeat")),
        )
        payload: dict[str, Any] = {"success": result.success, "message": result.message}
        if result.record is not None:
            payload["record"] = {
                "id":   result.record.id,
                "date": result.record.timestamp.isoformat(timespec="seconds"),
                "time": result.record.time,
                "type": result.record.event,
            }
        if result.success:
            return jsonify(payload), 201
        if result.already_checked_in:
            return jsonify(payload), 409
        payload["retryable"] = True
        return jsonify(payload), 502

    return app


app = create_app()


if __name__ == "__main__":
    log.info("Gym Activity API on port %d", settings.PORT)
    app.run(host="0.0.0.0", port=settings.PORT, debug=settings.DEBUG, threaded=True)
