"""Minimal LSP server over stdio: just enough protocol to observe edits.

Speaks JSON-RPC 2.0 with Content-Length framing and handles:
    initialize, initialized, textDocument/didChange, shutdown, exit

Everything else is ignored (notifications) or answered with
MethodNotFound (requests). Log records are forwarded to the editor as
window/logMessage so XP delivery problems show up in the editor's log.
"""
from __future__ import annotations

import json
import logging
import threading
from typing import Any, BinaryIO

from codestats_ls import __app_name__, __version__
from codestats_ls.agent import XpAgent

logger = logging.getLogger(__name__)

# JSON-RPC / LSP error codes
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601

# LSP MessageType
MESSAGE_TYPE_ERROR = 1
MESSAGE_TYPE_WARNING = 2
MESSAGE_TYPE_INFO = 3
MESSAGE_TYPE_LOG = 4

TEXT_DOCUMENT_SYNC_INCREMENTAL = 2


def message_type_for_level(levelno: int) -> int:
    if levelno >= logging.ERROR:
        return MESSAGE_TYPE_ERROR
    if levelno >= logging.WARNING:
        return MESSAGE_TYPE_WARNING
    if levelno >= logging.INFO:
        return MESSAGE_TYPE_INFO
    return MESSAGE_TYPE_LOG


class EditorLogHandler(logging.Handler):
    """logging.Handler that sends records to the editor as window/logMessage."""

    def __init__(self, server: LanguageServer, level: int = logging.INFO):
        super().__init__(level)
        self.server = server

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self.server.notify("window/logMessage", {
                "type": message_type_for_level(record.levelno),
                "message": self.format(record),
            })
        except Exception:
            self.handleError(record)


class LanguageServer:
    """Reads framed JSON-RPC messages from `reader`, writes replies to `writer`."""

    def __init__(self, agent: XpAgent, reader: BinaryIO, writer: BinaryIO):
        self.agent = agent
        self.reader = reader
        self.writer = writer
        self._write_lock = threading.Lock()
        self.shutdown_requested = False
        self.client_info: dict | None = None

        self._requests = {
            "initialize": self._on_initialize,
            "shutdown": self._on_shutdown,
        }
        self._notifications = {
            "initialized": self._on_initialized,
            "textDocument/didChange": self._on_did_change,
        }

    # ── Framing ─────────────────────────────────────────────────────

    def read_message(self) -> dict | None:
        """Read one message. None at end of input.

        Raises:
            ValueError: the header or body is malformed.
        """
        content_length = None
        while True:
            line = self.reader.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                break
            name, _, value = line.decode("ascii").partition(":")
            if name.strip().lower() == "content-length":
                content_length = int(value.strip())

        if content_length is None:
            raise ValueError("message without Content-Length header")
        body = self.reader.read(content_length)
        if len(body) < content_length:
            return None
        message = json.loads(body.decode("utf-8"))
        if not isinstance(message, dict):
            raise ValueError("message body is not a JSON object")
        return message

    def send(self, message: dict) -> None:
        body = json.dumps(message, separators=(",", ":")).encode("utf-8")
        header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
        with self._write_lock:
            self.writer.write(header + body)
            self.writer.flush()

    def notify(self, method: str, params: Any) -> None:
        self.send({"jsonrpc": "2.0", "method": method, "params": params})

    def respond(self, request_id: Any, result: Any = None, error: dict | None = None) -> None:
        message: dict = {"jsonrpc": "2.0", "id": request_id}
        if error is not None:
            message["error"] = error
        else:
            message["result"] = result
        self.send(message)

    # ── Dispatch ────────────────────────────────────────────────────

    def handle(self, message: dict) -> bool:
        """Process one message. Returns False once the client asked to exit."""
        method = message.get("method")
        params = message.get("params")
        if not isinstance(params, dict):
            params = {}

        if method == "exit":
            return False

        if "id" in message:
            if method is None:
                # A response to something we never send; nothing to do.
                return True
            request_id = message["id"]
            if self.shutdown_requested:
                self.respond(request_id, error={
                    "code": INVALID_REQUEST, "message": "server is shutting down"})
                return True
            handler = self._requests.get(method)
            if handler is None:
                self.respond(request_id, error={
                    "code": METHOD_NOT_FOUND, "message": f"method not found: {method}"})
                return True
            self.respond(request_id, handler(params))
            return True

        handler = self._notifications.get(method)
        if handler is not None:
            handler(params)
        return True

    def serve(self) -> int:
        """Run until exit or end of input. Returns the process exit code.

        Per LSP, exiting without a prior shutdown request is an error (1).
        """
        self.agent.start()
        try:
            while True:
                try:
                    message = self.read_message()
                except (ValueError, UnicodeDecodeError) as e:
                    logger.error("Dropping malformed message: %s", e)
                    continue
                if message is None:
                    break
                try:
                    if not self.handle(message):
                        break
                except Exception:
                    logger.exception("Error handling %s", message.get("method"))
        finally:
            self.agent.stop()
        return 0 if self.shutdown_requested else 1

    # ── Handlers ────────────────────────────────────────────────────

    def _on_initialize(self, params: dict) -> dict:
        client_info = params.get("clientInfo")
        if isinstance(client_info, dict) and client_info.get("name"):
            self.client_info = client_info
            self.agent.set_client_info(client_info["name"], client_info.get("version"))

        return {
            "serverInfo": {"name": __app_name__, "version": __version__},
            "capabilities": {"textDocumentSync": TEXT_DOCUMENT_SYNC_INCREMENTAL},
        }

    def _on_initialized(self, params: dict) -> None:
        logger.info("Code::Stats language server initialized")

    def _on_did_change(self, params: dict) -> None:
        document = params.get("textDocument")
        changes = params.get("contentChanges")
        if not isinstance(document, dict) or not isinstance(changes, list):
            logger.warning("Ignoring malformed didChange notification")
            return
        uri = document.get("uri")
        if not isinstance(uri, str) or not uri:
            return
        self.agent.document_changed(uri, len(changes))

    def _on_shutdown(self, params: Any) -> None:
        self.shutdown_requested = True
        return None
