"""
origin-guard HTTP server

Thin stdlib HTTP layer around the CORS origin policy:
- OPTIONS preflight: evaluated and terminated here (204, empty body)
- other methods: evaluated, dispatched to registered routes, CORS headers
  attached to the response
- HEAD: answered by the GET route, headers only
- denied origins are still served unless reject_denied is set (403)

Usage:
    from originguard.server import OriginGuardServer
    server = OriginGuardServer(allow_list, cors_config, port=8080)

    @server.route("GET", "/api/items")
    def list_items(request):
        return 200, {"items": []}

    server.start_background()
"""
from __future__ import annotations

import http.server
import json
import threading
import time
from typing import Callable, Optional
from urllib.parse import urlparse

from cors import CORSConfig, PolicyDecision, evaluate, respond_actual, respond_preflight
from logging_config import get_logger
from originguard.allowlist import AllowList, AllowListHolder

logger = get_logger("server")

_MAX_BODY_SIZE = 1_048_576  # 1MB

RouteHandler = Callable[["CORSRequestHandler"], tuple]


class HTTPError(Exception):
    """Raised by route handlers to produce a JSON error response."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


class CORSRequestHandler(http.server.BaseHTTPRequestHandler):
    """Request handler applying the origin policy before routing."""

    server_version = "origin-guard"

    @property
    def guard(self) -> "OriginGuardServer":
        return self.server.guard

    # ---- policy ----

    def _evaluate(self) -> PolicyDecision:
        origin = self.headers.get("Origin")
        guard = self.guard
        decision = evaluate(origin, guard.allow_list, guard.cors_config.credentials)
        if origin is not None:
            if decision.allowed:
                logger.debug("Allowed origin %s for %s %s", origin, self.command, self.path)
            else:
                logger.info("Denied origin %s for %s %s", origin, self.command, self.path)
        return decision

    def _reject(self, decision: PolicyDecision) -> bool:
        """Send a 403 when the decision is a denial and rejection is on."""
        if decision.allowed or not self.guard.reject_denied:
            return False
        self._send_json({"error": "Origin not allowed"}, 403)
        return True

    # ---- helpers ----

    def _send_json(self, data, status=200, extra_headers: Optional[dict] = None):
        """JSON 응답 전송"""
        body = json.dumps(data, ensure_ascii=False, default=str).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json; charset=utf-8")
        self.send_header("Content-Length", str(len(body)))
        self.send_header("X-Content-Type-Options", "nosniff")
        self.send_header("Cache-Control", "no-store")
        for key, value in (extra_headers or {}).items():
            self.send_header(key, value)
        self.end_headers()
        if self.command != "HEAD":
            self.wfile.write(body)

    def read_json(self):
        """Read the request body as JSON (size-limited). Empty body -> {}."""
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            raise HTTPError(400, "Invalid Content-Length")
        if length > _MAX_BODY_SIZE:
            raise HTTPError(413, "Request body too large (max 1MB)")
        if length <= 0:
            return {}
        try:
            return json.loads(self.rfile.read(length).decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise HTTPError(400, "Invalid JSON body")

    def log_message(self, format, *args):
        logger.debug("%s %s", self.address_string(), format % args)

    # ---- HTTP methods ----

    def do_OPTIONS(self):
        """CORS preflight 처리"""
        decision = self._evaluate()
        if self._reject(decision):
            return
        guard = self.guard
        headers = respond_preflight(decision, guard.cors_config.credentials, guard.cors_config)
        self.send_response(204)
        for key, value in headers.items():
            self.send_header(key, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _dispatch(self):
        decision = self._evaluate()
        if self._reject(decision):
            return
        guard = self.guard
        cors_headers = respond_actual(decision, guard.cors_config.credentials, guard.cors_config)

        path = urlparse(self.path).path
        method = "GET" if self.command == "HEAD" else self.command
        handler = guard.find_route(method, path)
        if handler is None:
            return self._send_json({"error": "Not Found"}, 404, cors_headers)
        try:
            status, data = handler(self)
        except HTTPError as e:
            status, data = e.status, {"error": e.message}
        except Exception:
            logger.exception("Route %s %s failed", self.command, path)
            status, data = 500, {"error": "Internal Server Error"}
        self._send_json(data, status, cors_headers)

    do_GET = _dispatch
    do_HEAD = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_PATCH = _dispatch
    do_DELETE = _dispatch


class _GuardHTTPServer(http.server.ThreadingHTTPServer):
    daemon_threads = True
    guard: "OriginGuardServer"


class OriginGuardServer:
    """HTTP server enforcing the CORS origin policy in front of routes."""

    def __init__(
        self,
        allow_list: AllowList,
        cors_config: Optional[CORSConfig] = None,
        host: str = "127.0.0.1",
        port: int = 8080,
        reject_denied: bool = False,
    ):
        self.host = host
        self.port = port
        self.cors_config = cors_config or CORSConfig()
        self.reject_denied = reject_denied
        self._holder = AllowListHolder(allow_list)
        self._routes: dict[tuple[str, str], RouteHandler] = {}
        self._server: Optional[_GuardHTTPServer] = None
        self._thread: Optional[threading.Thread] = None
        self._started_at = time.time()
        self.add_route("GET", "/health", self._handle_health)

    # ---- policy snapshot ----

    @property
    def allow_list(self) -> AllowList:
        return self._holder.get()

    def reload_allow_list(self, allow_list: AllowList) -> AllowList:
        """Atomically replace the allow-list; returns the previous one."""
        return self._holder.replace(allow_list)

    # ---- routing ----

    def add_route(self, method: str, path: str, handler: RouteHandler) -> None:
        self._routes[(method.upper(), path)] = handler

    def route(self, method: str, path: str):
        """Decorator form of add_route()."""
        def decorator(func):
            self.add_route(method, path, func)
            return func
        return decorator

    def find_route(self, method: str, path: str) -> Optional[RouteHandler]:
        return self._routes.get((method.upper(), path))

    def _handle_health(self, request):
        return 200, {
            "status": "ok",
            "uptime_seconds": int(time.time() - self._started_at),
            "allowed_origins": len(self.allow_list),
        }

    # ---- lifecycle ----

    def _bind(self) -> _GuardHTTPServer:
        server = _GuardHTTPServer((self.host, self.port), CORSRequestHandler)
        server.guard = self
        self.port = server.server_address[1]
        self._server = server
        logger.info("Listening on http://%s:%d", self.host, self.port)
        return server

    def serve_forever(self) -> None:
        """현재 스레드에서 서버 실행 (stop() 또는 KeyboardInterrupt까지)"""
        server = self._bind()
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Interrupted")
        finally:
            server.server_close()
            self._server = None

    def start_background(self) -> None:
        """백그라운드 데몬 스레드로 서버 시작"""
        server = self._bind()
        self._thread = threading.Thread(
            target=server.serve_forever,
            daemon=True,
            name="origin-guard-server",
        )
        self._thread.start()

    def stop(self) -> None:
        """서버 종료"""
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None
