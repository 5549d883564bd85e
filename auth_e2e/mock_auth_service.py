"""In-process stand-in for the auth service.

Implements the endpoints the harness drives, with the same status codes and
response shapes as the real service:
- GET  /                landing page (navbar, logo, brand title)
- GET  /health-check    200
- POST /signup          201 / 400 / 409 / 422
- POST /login           200 (+ jwt cookies) / 206 (2FA) / 400 / 401 / 422
- POST /logout          200 / 400 (no cookie) / 401 (invalid or banned token)
- POST /verify-2fa      200 (+ jwt cookies) / 400 / 401 / 422
- POST /verify-token    200 / 401 / 422
- DELETE /delete-account 204 / 400 / 422

Each app built by `create_mock_auth_app()` owns its own `MockAuthState`
in `app.extensions["auth_e2e_mock"]`, so two servers never share users,
tokens or 2FA codes.
"""
from __future__ import annotations

import base64
import logging
import re
import secrets
import threading
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set, Tuple

from flask import Flask, Response, jsonify, request
from werkzeug.serving import make_server

from auth_e2e.readiness import wait_for_service_sync

logger = logging.getLogger(__name__)

JWT_COOKIE_NAME = "jwt"
JWT_REFRESH_COOKIE_NAME = "jwt-refresh"
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

STATE_EXTENSION = "auth_e2e_mock"

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# 1x1 transparent PNG
LOGO_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)

LANDING_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Auth Service</title></head>
<body>
  <nav class="navbar">
    <a class="navbar-brand" href="/">
      <img src="/lgr_logo.png" width="25" height="25" alt="logo">
      Auth Service
    </a>
  </nav>
  <main><h1>Welcome</h1></main>
</body>
</html>
"""


@dataclass
class MockAuthState:
    """In-memory stores backing one mock app."""

    users: Dict[str, Dict[str, Any]] = field(default_factory=dict)  # email -> {password, requires2FA}
    tokens: Dict[str, str] = field(default_factory=dict)  # token -> email
    banned_tokens: Set[str] = field(default_factory=set)
    two_fa_codes: Dict[str, Tuple[str, str]] = field(default_factory=dict)  # email -> (login_attempt_id, code)
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def reset_mock_state(self) -> None:
        with self.lock:
            self.users.clear()
            self.tokens.clear()
            self.banned_tokens.clear()
            self.two_fa_codes.clear()

    def two_fa_code(self, email: str) -> Optional[Tuple[str, str]]:
        """Pending (login_attempt_id, code) for `email`, as the service would email it."""
        with self.lock:
            return self.two_fa_codes.get(email)


def get_mock_state(app: Flask) -> MockAuthState:
    return app.extensions[STATE_EXTENSION]


def _valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_RE.match(email))


def _valid_password(password: Any) -> bool:
    return isinstance(password, str) and MIN_PASSWORD_LENGTH <= len(password) <= MAX_PASSWORD_LENGTH


def _error(message: str, status: int):
    return jsonify({"error": message}), status


def _issue_tokens(state: MockAuthState, response: Response, email: str) -> Response:
    access, refresh = secrets.token_urlsafe(24), secrets.token_urlsafe(24)
    state.tokens[access] = email
    state.tokens[refresh] = email
    response.set_cookie(JWT_COOKIE_NAME, access, httponly=True, samesite="Lax", path="/")
    response.set_cookie(JWT_REFRESH_COOKIE_NAME, refresh, httponly=True, samesite="Lax", path="/")
    return response


def create_mock_auth_app() -> Flask:
    """Create and configure the mock auth service Flask app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    state = MockAuthState()
    app.extensions[STATE_EXTENSION] = state

    def _json_fields(*names: str) -> Dict[str, Any] | None:
        data = request.get_json(silent=True)
        if not isinstance(data, dict) or any(name not in data for name in names):
            return None
        return data

    @app.route("/", methods=["GET"])
    def index():
        return Response(LANDING_PAGE, mimetype="text/html")

    @app.route("/lgr_logo.png", methods=["GET"])
    def logo():
        return Response(LOGO_PNG, mimetype="image/png")

    @app.route("/health-check", methods=["GET"])
    def health_check():
        return "", 200

    @app.route("/signup", methods=["POST"])
    def signup():
        data = _json_fields("email", "password", "requires2FA")
        if data is None or not isinstance(data["requires2FA"], bool):
            return _error("Malformed input", 422)
        email, password = data["email"], data["password"]
        if not _valid_email(email) or not _valid_password(password):
            return _error("Invalid credentials", 400)
        with state.lock:
            if email in state.users:
                return _error("User already exists", 409)
            state.users[email] = {"password": password, "requires2FA": data["requires2FA"]}
        return jsonify({"message": "User created successfully!"}), 201

    @app.route("/login", methods=["POST"])
    def login():
        data = _json_fields("email", "password")
        if data is None:
            return _error("Malformed input", 422)
        email, password = data["email"], data["password"]
        if not _valid_email(email) or not _valid_password(password):
            return _error("Invalid credentials", 400)
        with state.lock:
            user = state.users.get(email)
            if user is None or user["password"] != password:
                return _error("Incorrect credentials", 401)
            if user["requires2FA"]:
                login_attempt_id = str(uuid.uuid4())
                state.two_fa_codes[email] = (login_attempt_id, f"{secrets.randbelow(10**6):06d}")
                return jsonify({"message": "2FA required", "loginAttemptId": login_attempt_id}), 206
            return _issue_tokens(state, jsonify({"message": "Login successful"}), email)

    @app.route("/logout", methods=["POST"])
    def logout():
        token = request.cookies.get(JWT_COOKIE_NAME)
        if not token:
            return _error("Missing auth token", 400)
        with state.lock:
            if token not in state.tokens or token in state.banned_tokens:
                return _error("Invalid auth token", 401)
            state.banned_tokens.add(token)
        response = jsonify({"message": "Logged out"})
        response.delete_cookie(JWT_COOKIE_NAME)
        return response

    @app.route("/verify-2fa", methods=["POST"])
    def verify_2fa():
        data = _json_fields("email", "loginAttemptId", "2FACode")
        if data is None:
            return _error("Malformed input", 422)
        email, attempt_id, code = data["email"], data["loginAttemptId"], data["2FACode"]
        try:
            uuid.UUID(str(attempt_id))
        except ValueError:
            return _error("Invalid login attempt id", 400)
        if not _valid_email(email) or not (isinstance(code, str) and len(code) == 6 and code.isdigit()):
            return _error("Invalid credentials", 400)
        with state.lock:
            if state.two_fa_codes.get(email) != (attempt_id, code):
                return _error("Incorrect credentials", 401)
            del state.two_fa_codes[email]
            return _issue_tokens(state, jsonify({"message": "2FA verified"}), email)

    @app.route("/verify-token", methods=["POST"])
    def verify_token():
        data = _json_fields("token")
        if data is None:
            return _error("Malformed input", 422)
        with state.lock:
            if data["token"] not in state.tokens or data["token"] in state.banned_tokens:
                return _error("Invalid auth token", 401)
        return "", 200

    @app.route("/delete-account", methods=["DELETE"])
    def delete_account():
        data = _json_fields("email")
        if data is None:
            return _error("Malformed input", 422)
        if not _valid_email(data["email"]):
            return _error("Invalid credentials", 400)
        with state.lock:
            state.users.pop(data["email"], None)
        return "", 204

    return app


class MockAuthServiceServer:
    """Runs the mock auth service in a background thread."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0):
        self.host = host
        self.port = port
        self.app = create_mock_auth_app()
        self.server = None
        self.thread = None

    def start(self) -> "MockAuthServiceServer":
        self.server = make_server(self.host, self.port, self.app, threaded=True)
        self.port = self.server.server_port
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        wait_for_service_sync(self.url, max_attempts=50, poll_interval_ms=100)
        logger.info("Mock auth service listening on %s", self.url)
        return self

    def stop(self) -> None:
        if self.server:
            self.server.shutdown()
            self.thread.join(timeout=5)
            self.server = None

    def __enter__(self) -> "MockAuthServiceServer":
        return self.start()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    @property
    def state(self) -> MockAuthState:
        return get_mock_state(self.app)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"
