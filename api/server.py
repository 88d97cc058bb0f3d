from __future__ import annotations

import base64
import binascii
import logging
import os
import sys
import urllib.parse
from pathlib import Path
from typing import Any

# ── Path setup: must happen before any local imports ────────────────────────
_HERE = Path(__file__).resolve().parent        # /app/api
_ROOT = _HERE.parent                            # /app
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from flask import Flask, Response, jsonify, request
from flask_cors import CORS

import tzbuddy as tb
from tzbuddy.registry import DirectoryStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("tzbuddy")

EXPORT_FILENAME = "TimezoneBuddyExport.json"


def email_link(email: str | None) -> str | None:
    return f"mailto:{email}" if email else None


def slack_link(workspace_id: str, slack_id: str | None) -> str | None:
    if not slack_id:
        return None
    qs = urllib.parse.urlencode({"team": workspace_id, "id": slack_id})
    return f"slack://channel?{qs}"


def _text(body: dict[str, Any], key: str) -> str | None:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"{key} must be a string")
    return value.strip() or None


def _json_object() -> dict[str, Any] | None:
    """The request's JSON body when it is an object, else None."""
    body = request.get_json(silent=True)
    if body is None:
        return {}
    return body if isinstance(body, dict) else None


def _teammate_fields(body: dict[str, Any]) -> dict[str, Any]:
    """Validate an editor payload. Raises ValueError with a user-facing message."""
    name = (body.get("name") or "")
    if not isinstance(name, str) or not name.strip():
        raise ValueError("name is required")
    zone = body.get("timeZoneIdentifier") or ""
    if not isinstance(zone, str) or not zone.strip():
        raise ValueError("timeZoneIdentifier is required")

    groups = body.get("groups") or []
    if not isinstance(groups, list) or not all(isinstance(g, str) for g in groups):
        raise ValueError("groups must be a list of strings")

    image = None
    if body.get("imageData"):
        try:
            image = base64.b64decode(body["imageData"], validate=True)
        except (binascii.Error, ValueError, TypeError) as exc:
            raise ValueError("imageData must be base64") from exc

    return {
        "name":                 name.strip(),
        "time_zone_identifier": zone.strip(),
        "email":                _text(body, "email"),
        "slack_id":             _text(body, "slackId"),
        "groups":               {g for g in groups if g.strip()},
        "image_data":           image,
    }


def create_app(store: DirectoryStore | None = None) -> Flask:
    if store is None:
        store = DirectoryStore(tb.FileStorage())

    app = Flask(__name__)
    app.url_map.strict_slashes = False
    CORS(app, origins="*")
    app.extensions["tzbuddy.store"] = store

    store.subscribe(
        lambda snap: log.info(
            "Directory changed: %d teammate(s), %d group(s)",
            len(snap.teammates), len(snap.groups),
        )
    )

    # Always return JSON for errors, never HTML
    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({"error": "Bad request"}), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(500)
    def internal_error(e):
        return jsonify({"error": "Internal server error", "detail": str(e)}), 500

    def row(t: tb.Teammate) -> dict[str, Any]:
        payload = tb.teammate_payload(t)
        payload["links"] = {
            "email": email_link(t.email),
            "slack": slack_link(store.workspace_id, t.slack_id),
        }
        return payload

    @app.get("/")
    def root():
        return jsonify({"name": "Timezone Buddy API", "status": "ok"})

    @app.get("/api/health")
    def health():
        snap = store.snapshot()
        storage = store.storage
        return jsonify({
            "status":       "ok",
            "team_size":    len(snap.teammates),
            "groups":       len(snap.groups),
            "data_home":    str(getattr(storage, "home", "")) or None,
            "slack_ready":  bool(store.workspace_id),
        })

    # ── teammates ────────────────────────────────────────────────────────────

    @app.get("/api/teammates")
    def list_teammates():
        try:
            buckets = tb.project(
                store.snapshot(),
                search_text=request.args.get("search", ""),
                sort_order=request.args.get("sort", tb.SortOrder.NAME.value),
                group_mode=request.args.get("group", tb.GroupMode.NONE.value),
            )
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        return jsonify([
            {"key": key, "teammates": [row(t) for t in members]}
            for key, members in buckets
        ])

    @app.post("/api/teammates")
    def create_teammate():
        body = _json_object()
        if body is None:
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            fields = _teammate_fields(body)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        teammate = store.add(tb.Teammate(**fields))
        return jsonify(row(teammate)), 201

    @app.get("/api/teammates/<teammate_id>")
    def get_teammate(teammate_id: str):
        teammate = store.get(teammate_id)
        if not teammate:
            return jsonify({"error": "Teammate not found"}), 404
        return jsonify(row(teammate))

    @app.put("/api/teammates/<teammate_id>")
    def update_teammate(teammate_id: str):
        existing = store.get(teammate_id)
        if not existing:
            return jsonify({"error": "Teammate not found"}), 404
        body = _json_object()
        if body is None:
            return jsonify({"error": "Expected a JSON object"}), 400
        try:
            fields = _teammate_fields(body)
        except ValueError as exc:
            return jsonify({"error": str(exc)}), 400
        # Editor sends no imageData when the avatar is unchanged
        if fields["image_data"] is None and not body.get("removeImage"):
            fields["image_data"] = existing.image_data
        updated = existing.copy(**fields)
        store.update(updated)
        return jsonify(row(updated))

    @app.delete("/api/teammates/<teammate_id>")
    def delete_teammate(teammate_id: str):
        teammate = store.get(teammate_id)
        if not teammate or not store.delete(teammate_id):
            return jsonify({"error": "Teammate not found"}), 404
        return jsonify({"message": f"Removed {teammate.name}"}), 200

    @app.get("/api/teammates/<teammate_id>/avatar")
    def get_avatar(teammate_id: str):
        teammate = store.get(teammate_id)
        if not teammate or teammate.image_data is None:
            return jsonify({"error": "Avatar not found"}), 404
        mimetype = "image/jpeg" if teammate.image_data[:2] == b"\xff\xd8" else "application/octet-stream"
        return Response(teammate.image_data, mimetype=mimetype)

    @app.put("/api/teammates/<teammate_id>/avatar")
    def put_avatar(teammate_id: str):
        teammate = store.get(teammate_id)
        if not teammate:
            return jsonify({"error": "Teammate not found"}), 404
        try:
            image = tb.resize_avatar(request.get_data())
        except tb.AvatarError as exc:
            return jsonify({"error": str(exc)}), 400
        store.update(teammate.copy(image_data=image))
        return jsonify({"message": "Avatar updated", "bytes": len(image)}), 200

    # ── groups ───────────────────────────────────────────────────────────────

    @app.get("/api/groups")
    def list_groups():
        return jsonify(sorted(store.groups))

    @app.post("/api/groups")
    def add_group():
        body  = _json_object() or {}
        label = body.get("name")
        if not isinstance(label, str) or not label.strip():
            return jsonify({"error": "name is required"}), 400
        created = store.add_group(label.strip())
        return jsonify(sorted(store.groups)), 201 if created else 200

    @app.delete("/api/groups/<path:label>")
    def remove_group(label: str):
        store.remove_group(label)
        return jsonify(sorted(store.groups)), 200

    # ── export / import / reset ──────────────────────────────────────────────

    @app.get("/api/export")
    def export_teammates():
        data = store.export_snapshot()
        if data is None:
            return jsonify({"error": "Export failed"}), 500
        return Response(
            data,
            mimetype="application/json",
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.post("/api/import")
    def import_teammates():
        if not store.import_snapshot(request.get_data()):
            return jsonify({"error": "The selected file doesn't contain valid teammate data."}), 422
        return jsonify({"message": "Imported", "team_size": len(store)}), 200

    @app.post("/api/reset")
    def reset():
        store.reset()
        return jsonify({"message": "All app data removed"}), 200

    # ── settings ─────────────────────────────────────────────────────────────

    @app.get("/api/settings/slack")
    def get_slack():
        return jsonify({"teamId": store.workspace_id})

    @app.put("/api/settings/slack")
    def put_slack():
        body    = _json_object() or {}
        team_id = body.get("teamId")
        if not isinstance(team_id, str):
            return jsonify({"error": "teamId must be a string"}), 400
        store.set_workspace_id(team_id)
        return jsonify({"teamId": store.workspace_id})

    # ── zone search ──────────────────────────────────────────────────────────

    @app.get("/api/zones")
    def search_zones():
        query = request.args.get("q", "")
        return jsonify([
            {"id": z, "name": tb.zone_display_name(z), "localTime": tb.local_time(z)}
            for z in tb.search_zones(query)
        ])

    return app


if __name__ == "__main__":
    port  = int(os.environ.get("PORT", 5050))
    debug = os.environ.get("FLASK_DEBUG", "false").lower() == "true"
    log.info("Timezone Buddy API on port %d", port)
    create_app().run(host="0.0.0.0", port=port, debug=debug, threaded=True)
