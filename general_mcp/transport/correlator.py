"""Response Correlator: turns the child's stdout bytes into matched responses."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

from general_mcp.errors import TransportError

log = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER_BYTES = 16 * 1024 * 1024


def _is_correlatable(request_id: Any) -> bool:
    # bool is an int subclass; True would otherwise match id 1
    return isinstance(request_id, (int, str)) and not isinstance(request_id, bool)


class ResponseCorrelator:
    """Reassembles newline-delimited JSON and resolves waiters by id.

    Lines may arrive split across any number of chunks. Anything that is not
    a response to a registered id (notifications, stray responses, plain text
    logged by the child) goes to ``on_message`` instead.
    """

    def __init__(
        self,
        on_message: Callable[[Any], None],
        *,
        max_buffer_bytes: int = DEFAULT_MAX_BUFFER_BYTES,
    ) -> None:
        self.max_buffer_bytes = max_buffer_bytes
        self._on_message = on_message
        self._buf = bytearray()
        self._pending: dict[int | str, asyncio.Future[dict[str, Any]]] = {}
        # Set after an overflow: drop bytes up to the next newline
        self._discarding = False

    # ------------------------------------------------------------------
    # Pending requests
    # ------------------------------------------------------------------

    def register(self, request_id: int | str) -> asyncio.Future[dict[str, Any]]:
        if not _is_correlatable(request_id):
            raise TransportError(f"Request id must be an integer or string, got {request_id!r}")
        if request_id in self._pending:
            raise TransportError(f"Request id {request_id!r} is already in flight")

        fut: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()
        self._pending[request_id] = fut
        return fut

    def discard(
        self, request_id: int | str, fut: asyncio.Future[dict[str, Any]] | None = None
    ) -> None:
        """Forget *request_id*; with *fut*, only if it is still the registered waiter."""
        if fut is None or self._pending.get(request_id) is fut:
            self._pending.pop(request_id, None)

    def reject_all(self, exc: BaseException) -> None:
        pending, self._pending = self._pending, {}
        for fut in pending.values():
            if not fut.done():
                fut.set_exception(exc)

    @property
    def pending_ids(self) -> list[int | str]:
        return list(self._pending)

    # ------------------------------------------------------------------
    # Byte stream
    # ------------------------------------------------------------------

    def feed(self, chunk: bytes) -> None:
        """Consume one stdout chunk, dispatching every complete line in it.

        Raises ``TransportError`` when the unterminated tail grows past
        ``max_buffer_bytes``; the oversized line is then skipped.
        """
        self._buf += chunk
        while True:
            idx = self._buf.find(b"\n")
            if idx < 0:
                if self._discarding:
                    self._buf.clear()
                break

            line = bytes(self._buf[:idx])
            del self._buf[: idx + 1]
            if self._discarding:
                self._discarding = False
                continue
            self._dispatch(line)

        if len(self._buf) > self.max_buffer_bytes:
            size = len(self._buf)
            self._buf.clear()
            self._discarding = True
            raise TransportError(
                f"Server output line exceeded {self.max_buffer_bytes} bytes "
                f"without a newline ({size} buffered)"
            )

    def _dispatch(self, line: bytes) -> None:
        text = line.rstrip(b"\r").decode("utf-8", errors="replace")
        if not text.strip():
            return

        try:
            message = json.loads(text)
        except (ValueError, RecursionError):
            # Covers integer-digit limits and pathological nesting as well
            log.debug("Unparseable line from server: %s", text[:200])
            self._on_message(text)
            return

        request_id = message.get("id") if isinstance(message, dict) else None
        fut = self._pending.pop(request_id, None) if _is_correlatable(request_id) else None
        if fut is None or fut.done():
            self._on_message(message)
            return
        fut.set_result(message)
