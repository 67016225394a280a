import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Self


class _PushHandler(BaseHTTPRequestHandler):
    """Answers push POSTs with the status configured for the request path."""

    def do_POST(self):
        content_length = int(self.headers.get("Content-Length", 0))
        body = self.rfile.read(content_length)

        server_config = self.server.config  # type: ignore[attr-defined]

        if server_config["response_delay"] > 0:
            time.sleep(server_config["response_delay"])

        with server_config["lock"]:
            server_config["received"].append({
                "path": self.path,
                "headers": dict(self.headers),
                "body": body,
            })
            code, headers = server_config["responses"].get(
                self.path, (server_config["default_code"], {})
            )

        self.send_response(code)
        for name, value in headers.items():
            self.send_header(name, value)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        """Suppress default request logging."""
        pass


class PushServiceStub:
    """Local HTTP server standing in for a push service.

    Every path is an endpoint; each can be told which status code and
    headers to answer with.
    """

    def __init__(self, host: str = "127.0.0.1", port: int = 0, default_code: int = 201):
        self._host = host
        self._port = port
        self._config = {
            "default_code": default_code,
            "response_delay": 0,
            "responses": {},
            "received": [],
            "lock": threading.Lock(),
        }
        self._server: ThreadingHTTPServer | None = None
        self._thread: threading.Thread | None = None

    def set_response(self, name: str, code: int, headers: dict | None = None) -> Self:
        with self._config["lock"]:
            self._config["responses"][self._path(name)] = (code, dict(headers or {}))
        return self

    def set_default_code(self, code: int) -> Self:
        self._config["default_code"] = code
        return self

    def set_response_delay(self, seconds: float) -> Self:
        self._config["response_delay"] = seconds
        return self

    def start(self) -> None:
        self._server = ThreadingHTTPServer((self._host, self._port), _PushHandler)
        self._server.config = self._config  # type: ignore[attr-defined]
        self._port = self._server.server_address[1]
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)
        self._thread.start()

    def stop(self) -> None:
        if self._server:
            self._server.shutdown()
            self._server.server_close()
            self._server = None
        if self._thread:
            self._thread.join(timeout=5)
            self._thread = None

    @staticmethod
    def _path(name: str) -> str:
        return f"/push/{name}"

    def endpoint(self, name: str) -> str:
        """Endpoint URL for a subscription called ``name``."""
        return f"http://{self._host}:{self._port}{self._path(name)}"

    @property
    def base_url(self) -> str:
        return f"http://{self._host}:{self._port}"

    @property
    def port(self) -> int:
        return self._port

    def get_received(self, name: str | None = None) -> list[dict]:
        with self._config["lock"]:
            received = list(self._config["received"])
        if name is None:
            return received
        return [r for r in received if r["path"] == self._path(name)]

    def get_received_count(self) -> int:
        with self._config["lock"]:
            return len(self._config["received"])

    def clear(self) -> None:
        with self._config["lock"]:
            self._config["received"].clear()
            self._config["responses"].clear()
