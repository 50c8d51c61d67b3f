"""Loopback HTTP listener that captures the OAuth authorization code."""

import html
import logging
import threading
from http.server import BaseHTTPRequestHandler, HTTPServer
from pathlib import Path
from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

from ..config import LOGIN_LANDING_PAGE
from ..models.credential import CallbackResult
from ..utils.exceptions import LoginFailureError, LoginTimeoutError

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"


def _load_template(name: str) -> str:
    content = (TEMPLATE_DIR / name).read_text(encoding="utf-8")
    return content.replace("${refresh_url}", LOGIN_LANDING_PAGE)


# Loaded once per process
LOGIN_SUCCESS_HTML = _load_template("success.html")
LOGIN_ERROR_HTML = _load_template("failure.html")


def render_error_page(error: Optional[str], error_description: Optional[str]) -> str:
    return LOGIN_ERROR_HTML.replace("${error}", html.escape(error or "")).replace(
        "${error_description}", html.escape(error_description or "")
    )


class LocalAuthServer:
    """
    Single-use callback listener for the authorization code flow.

    The first request to ``/`` carrying ``code`` or ``error`` completes the
    attempt; the waiting caller is woken through a one-permit semaphore.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 0,
        server_class: type[HTTPServer] = HTTPServer,
    ):
        """
        Initialize the listener.

        Args:
            host: Loopback host to bind, the same name the redirect URI advertises
            port: Port to bind, 0 for an OS-assigned ephemeral port
            server_class: Transport implementation (any ``HTTPServer`` subclass)
        """
        self.host = host
        self.port = port
        self.server_class = server_class
        self.result = CallbackResult()

        self._semaphore = threading.Semaphore(0)
        self._lock = threading.Lock()
        self._released = False
        self._received = False
        self._stopped = False
        self._server: Optional[HTTPServer] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def uri(self) -> str:
        """Redirect URI pointing at this listener."""
        if self._server is None:
            raise RuntimeError("Local auth server is not started.")
        return f"http://{self.host}:{self._server.server_address[1]}"

    @property
    def is_running(self) -> bool:
        return self._server is not None and not self._stopped

    def start(self) -> None:
        if self._server is not None:
            return
        self._server = self.server_class((self.host, self.port), self._create_handler_class())
        self._thread = threading.Thread(
            target=self._server.serve_forever,
            name="azure-login-callback",
            daemon=True,
        )
        self._thread.start()
        logger.debug(f"Local auth server listening on {self.uri}")

    def stop(self) -> None:
        """Stop the listener and wake any pending waiter. Safe to call repeatedly."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        self._release()
        if self._server is not None:
            self._server.shutdown()
            self._server.server_close()
            logger.debug("Local auth server stopped")

    def wait_for_code(self, timeout: float) -> str:
        """
        Block until the callback arrives or ``timeout`` seconds elapse.

        Returns:
            The authorization code

        Raises:
            LoginFailureError: If the callback carried an error
            LoginTimeoutError: If no callback arrived in time
        """
        timed_out = not self._semaphore.acquire(timeout=timeout)
        if timed_out:
            self.stop()

        result = self.result
        if result.is_success:
            return result.code
        if result.error:
            if result.error_description:
                message = f"{result.error}\nReason: {result.error_description}"
            else:
                message = result.error
            raise LoginFailureError(
                message, error=result.error, error_description=result.error_description
            )
        if timed_out:
            raise LoginTimeoutError(
                f"Cannot proceed with login after waiting for {timeout / 60:g} minutes."
            )
        raise LoginFailureError("There is no error and no code.")

    def _release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
        self._semaphore.release()

    def _record(self, params: dict[str, list[str]]) -> Optional[CallbackResult]:
        """Store the first complete callback; later ones are ignored."""
        result = CallbackResult(
            code=_first(params, "code"),
            error=_first(params, "error"),
            error_description=_first(params, "error_description"),
        )
        if not result.is_complete:
            return None
        with self._lock:
            if self._received or self._stopped:
                return None
            self._received = True
            self.result = result
        return result

    def _create_handler_class(self) -> type:
        server = self

        class CallbackHandler(BaseHTTPRequestHandler):
            """Handles the browser redirect from the authorization endpoint."""

            def log_message(self, format: str, *args: Any) -> None:
                logger.debug("callback: " + format % args)

            def do_GET(self) -> None:
                parsed = urlparse(self.path)
                if parsed.path not in ("", "/"):
                    self._send_html("Not found", 404)
                    return

                result = server._record(parse_qs(parsed.query))
                if result is None:
                    self._send_html(
                        render_error_page("Invalid request", "Missing code or error in callback."),
                        400,
                    )
                    return
                try:
                    if result.is_success:
                        self._send_html(LOGIN_SUCCESS_HTML)
                    else:
                        self._send_html(render_error_page(result.error, result.error_description))
                finally:
                    server._release()

            def _send_html(self, content: str, status: int = 200) -> None:
                body = content.encode("utf-8")
                self.send_response(status)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

        return CallbackHandler


def _first(params: dict[str, list[str]], name: str) -> Optional[str]:
    values = params.get(name)
    return values[0] if values else None
