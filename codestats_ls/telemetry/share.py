"""One-way pulse submission. POST only, the response body is never parsed.

This module is the ONLY network call in code-stats-ls. The outcome is a
(success, message) pair; the message is for logs and never changes control
flow: every failure is treated as recoverable by the caller.
"""
from __future__ import annotations

import http.client
import json
import logging
import threading
import urllib.error
import urllib.parse
import urllib.request

from codestats_ls import __app_name__, __version__
from codestats_ls.models import Pulse

logger = logging.getLogger(__name__)

PULSE_PATH = "/api/my/pulses"
TIMEOUT_SECONDS = 10


def build_user_agent(client_name: str | None = None, client_version: str | None = None) -> str:
    """e.g. 'code-stats-ls/0.4.0 (Neovim 0.10.1)', or without the editor part."""
    user_agent = f"{__app_name__}/{__version__}"
    if client_name:
        editor = f"{client_name} {client_version}" if client_version else client_name
        user_agent += f" ({editor})"
    return user_agent


class PulseClient:
    """Delivers pulses to /api/my/pulses on the configured API host.

    Any path in api_url is replaced, not extended. Shared by the debounced live path and the cache flusher. The only mutable
    state is the User-Agent, replaced wholesale once the editor identifies
    itself, so concurrent deliver() calls need no locking.
    """

    def __init__(self, api_url: str, api_token: str, timeout: float = TIMEOUT_SECONDS):
        self.pulse_url = urllib.parse.urlsplit(api_url)._replace(path=PULSE_PATH).geturl()
        self._api_token = api_token
        self.timeout = timeout
        self._user_agent = build_user_agent()
        self._ua_lock = threading.Lock()

    @property
    def user_agent(self) -> str:
        return self._user_agent

    def set_client_info(self, name: str | None, version: str | None = None) -> None:
        with self._ua_lock:
            self._user_agent = build_user_agent(name, version)

    def deliver(self, pulse: Pulse) -> tuple[bool, str]:
        """POST a pulse. Returns (True, "HTTP 201") on 2xx, (False, reason) otherwise.

        Never raises for transport or HTTP errors.
        """
        try:
            data = json.dumps(pulse.to_dict()).encode("utf-8")
            req = urllib.request.Request(
                self.pulse_url,
                data=data,
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": self._user_agent,
                    "X-API-Token": self._api_token,
                },
                method="POST",
            )
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                status = resp.status
                if 200 <= status < 300:
                    logger.debug("Pulse %s delivered: HTTP %d", pulse.coded_at, status)
                    return True, f"HTTP {status}"
                body = resp.read().decode("utf-8", errors="replace")
                return False, f"Server returned HTTP {status}: {body[:200]}"

        except urllib.error.HTTPError as e:
            try:
                body = e.read().decode("utf-8", errors="replace")[:200] if e.fp else ""
            except (OSError, http.client.HTTPException):
                body = ""
            return False, f"HTTP {e.code}: {body}" if body else f"HTTP {e.code}"
        # HTTPException (BadStatusLine, IncompleteRead, ...) is not an OSError.
        except (urllib.error.URLError, http.client.HTTPException, OSError, ValueError) as e:
            reason = getattr(e, "reason", None) or e
            return False, str(reason)
