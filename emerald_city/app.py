"""
HTTP surface: JSON API under /api/ plus static assets with SPA fallback.

Every API failure is reported as {"success": false, "error": ...}:
404 for unknown routes, 500 for anything a handler raises.
"""

import logging
import time
from urllib.parse import parse_qs

from flask import Flask, Response, jsonify, request, send_from_directory
from werkzeug.exceptions import HTTPException, InternalServerError, NotFound as HTTPNotFound

from .captcha import CaptchaVerifier, build_verifier
from .config import Settings
from .errors import BadRequest, EmeraldError
from .layers.chain import MessageCipher
from .rooms import RoomService
from .store import KeyValueStore, open_store

logger = logging.getLogger(__name__)

SERVICE_NAME = "emerald-city"

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}

ANY_METHOD = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def _json_body() -> dict:
    data = request.get_json(force=True)
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")
    return data


def _client_ip() -> str:
    return request.headers.get("CF-Connecting-IP") or request.remote_addr or ""


def _turnstile_token() -> str:
    """Pull the token from a JSON, urlencoded or multipart body."""
    ct = request.headers.get("Content-Type", "")
    if "application/json" in ct:
        data = request.get_json(silent=True) or {}
    elif "application/x-www-form-urlencoded" in ct:
        data = {k: v[0] for k, v in parse_qs(request.get_data(as_text=True)).items()}
    else:
        data = request.form
    return data.get("cf-turnstile-response") or data.get("token") or ""


def create_app(settings: Settings = None, store: KeyValueStore = None,
               captcha: CaptchaVerifier = None, cipher: MessageCipher = None) -> Flask:
    settings = settings or Settings.from_env()
    store    = store if store is not None else open_store(settings.store_url)
    captcha  = captcha or build_verifier(settings)
    rooms    = RoomService(store, cipher=cipher, captcha=captcha)

    app = Flask(__name__, static_folder=None)
    app.config["EMERALD_SETTINGS"] = settings
    app.extensions["emerald_rooms"] = rooms

    def api_json(data, status=200):
        resp = jsonify(data)
        resp.status_code = status
        return resp

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return Response(status=200)

    @app.after_request
    def add_cors(resp):
        if request.method == "OPTIONS" or request.path.startswith("/api/"):
            resp.headers.update(CORS_HEADERS)
        return resp

    @app.errorhandler(Exception)
    def handle_error(exc):
        if not request.path.startswith("/api/"):
            if isinstance(exc, HTTPException):
                return exc
            logger.exception(f"Unhandled error on {request.path}")
            return InternalServerError()
        if isinstance(exc, EmeraldError):
            logger.info(f"{request.path} failed: {exc.message}")
            return api_json({"success": False, "error": exc.message}, 500)
        if isinstance(exc, HTTPException):
            message = exc.description or exc.name
        else:
            logger.exception(f"Unhandled error on {request.path}")
            message = str(exc)
        return api_json({"success": False, "error": message}, 500)

    # -- API -------------------------------------------------------------

    @app.route("/api/health", methods=ANY_METHOD)
    def health():
        return api_json({"status": "healthy", "ts": int(time.time() * 1000),
                         "service": SERVICE_NAME})

    @app.route("/api/turnstile/verify", methods=["POST"])
    def turnstile_verify():
        data = captcha.siteverify(_turnstile_token(), _client_ip())
        resp = api_json(data)
        resp.headers["Cache-Control"] = "no-store"
        return resp

    @app.route("/api/room/create", methods=["POST"])
    def room_create():
        body = _json_body()
        room_id = rooms.create_room(body.get("roomName"), body.get("password"),
                                    body.get("token"), _client_ip())
        return api_json({"success": True, "roomId": room_id,
                         "roomName": body.get("roomName")})

    @app.route("/api/room/join", methods=["POST"])
    def room_join():
        body = _json_body()
        room = rooms.join_room(body.get("roomId"), body.get("password"),
                               body.get("token"), _client_ip())
        return api_json({"success": True, "room": room})

    @app.route("/api/message/send", methods=["POST"])
    def message_send():
        body = _json_body()
        message = rooms.send_message(body.get("roomId"), body.get("message"),
                                     body.get("senderName"))
        return api_json({"success": True, "messageId": message.id,
                         "encryptedMessage": message.to_record()})

    @app.route("/api/room/<room_id>/messages", methods=ANY_METHOD)
    def room_messages(room_id):
        messages = rooms.get_messages(room_id)
        return api_json({"success": True,
                         "messages": [m.to_record() for m in messages]})

    @app.route("/api/room/<room_id>", methods=["DELETE"])
    def room_delete(room_id):
        body = _json_body()
        rooms.delete_room(room_id, body.get("adminPassword"))
        return api_json({"success": True, "message": "Room deleted"})

    @app.route("/api/", defaults={"rest": ""}, methods=ANY_METHOD)
    @app.route("/api/<path:rest>", methods=ANY_METHOD)
    def api_not_found(rest):
        return api_json({"success": False, "error": "Not Found"}, 404)

    # -- static assets ---------------------------------------------------

    @app.route("/", defaults={"path": ""}, methods=ANY_METHOD)
    @app.route("/<path:path>", methods=ANY_METHOD)
    def assets(path):
        assets_dir = settings.assets_dir
        if assets_dir:
            try:
                return send_from_directory(assets_dir, path or "index.html")
            except HTTPNotFound:
                pass
            if request.method == "GET" and "text/html" in request.headers.get("Accept", ""):
                try:
                    return send_from_directory(assets_dir, "index.html")
                except HTTPNotFound:
                    pass
        return Response("Not Found", status=404, mimetype="text/plain")

    return app
