from __future__ import annotations

import itertools
import json
from typing import Any

JSONRPC_VERSION = "2.0"


class RequestBuilder:
    """Stamps method/params pairs with the JSON-RPC envelope.

    Ids start at 1 and only ever go up. Every supervisor owns its own builder,
    so two clients in one host process never share a counter.
    """

    def __init__(self) -> None:
        self._ids = itertools.count(1)

    def build(self, method: str, params: Any = None) -> dict[str, Any]:
        request: dict[str, Any] = {
            "jsonrpc": JSONRPC_VERSION,
            "id": next(self._ids),
            "method": method,
        }
        if params is not None:
            request["params"] = params
        return request


def notification(method: str, params: Any = None) -> dict[str, Any]:
    """Build a request without an id; the server sends nothing back."""
    message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": method}
    if params is not None:
        message["params"] = params
    return message


def is_full_request(payload: dict[str, Any]) -> bool:
    """True if *payload* already carries its own envelope and id."""
    version = payload.get("jsonrpc")
    return (
        payload.get("id") is not None
        and isinstance(version, str)
        and len(version) > 0
    )


def parse_payloads(text: str) -> list[dict[str, Any]]:
    """Parse user input as one JSON value or, failing that, JSON lines.

    Accepts a single object, an array of objects, or one object per
    non-blank line. Raises ``ValueError`` if neither form parses.
    """
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        lines = [line.strip() for line in text.splitlines()]
        payloads = []
        for lineno, line in enumerate(lines, 1):
            if not line:
                continue
            try:
                payloads.append(json.loads(line))
            except json.JSONDecodeError as exc:
                raise ValueError(f"Invalid JSON on line {lineno}: {exc.msg}") from exc
    else:
        payloads = parsed if isinstance(parsed, list) else [parsed]

    for payload in payloads:
        if not isinstance(payload, dict):
            raise ValueError(f"Expected a JSON object, got: {json.dumps(payload)[:80]}")
    return payloads


def prepare_request(builder: RequestBuilder, payload: dict[str, Any]) -> dict[str, Any]:
    """Pass full requests through untouched, stamp everything else."""
    if is_full_request(payload):
        return payload
    return builder.build(payload.get("method") or "", payload.get("params"))
