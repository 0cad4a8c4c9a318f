"""Shared fixtures: a local stand-in for the Code::Stats pulse API."""
import json
import socketserver
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

from codestats_ls.models import Pulse, PulseXp


class FakePulseApi:
    """Records every POST and answers with `status` (or the next of `statuses`)."""

    def __init__(self):
        self.status = 201
        self.statuses = []
        self.delay = 0.0
        self.requests = []
        self._lock = threading.Lock()
        api = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                body = self.rfile.read(length)
                with api._lock:
                    api.requests.append({
                        "path": self.path,
                        "headers": self.headers,
                        "body": json.loads(body),
                    })
                    status = api.statuses.pop(0) if api.statuses else api.status
                    delay = api.delay
                if delay:
                    time.sleep(delay)
                payload = b"{}" if status < 300 else b"boom"
                try:
                    self.send_response(status)
                    self.send_header("Content-Length", str(len(payload)))
                    self.end_headers()
                    self.wfile.write(payload)
                except OSError:
                    pass  # client gave up (timeout tests)

            def log_message(self, format, *args):
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.url = f"http://127.0.0.1:{self.server.server_address[1]}"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    @property
    def bodies(self):
        with self._lock:
            return [r["body"] for r in self.requests]

    def close(self):
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def pulse_api():
    api = FakePulseApi()
    yield api
    api.close()


class GarbageServer:
    """Accepts a request, then answers with bytes that are not HTTP."""

    REPLY = b"NOT HTTP AT ALL\r\n\r\n"

    def __init__(self):
        reply = self.REPLY

        class Handler(socketserver.StreamRequestHandler):
            def handle(self):
                length = 0
                for line in self.rfile:
                    if line in (b"\r\n", b"\n", b""):
                        break
                    name, _, value = line.decode("latin-1").partition(":")
                    if name.strip().lower() == "content-length":
                        length = int(value.strip())
                self.rfile.read(length)
                self.wfile.write(reply)

        self.server = socketserver.ThreadingTCPServer(("127.0.0.1", 0), Handler)
        self.server.daemon_threads = True
        self.url = f"http://127.0.0.1:{self.server.server_address[1]}"
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def close(self):
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def garbage_api():
    server = GarbageServer()
    yield server
    server.close()


# Nothing listens on port 1; connections are refused immediately.
UNREACHABLE_URL = "http://127.0.0.1:1"


def make_pulse(coded_at="2024-05-01T12:00:00.000000+02:00", **xp_by_language):
    xp_by_language = xp_by_language or {"Rust": 3}
    return Pulse(
        coded_at=coded_at,
        xps=[PulseXp(language=lang, xp=xp) for lang, xp in xp_by_language.items()],
    )


def wait_for(predicate, timeout=5.0, interval=0.01):
    """Poll until predicate() is truthy. Returns its final value."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        value = predicate()
        if value:
            return value
        time.sleep(interval)
    return predicate()
