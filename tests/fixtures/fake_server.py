"""Scripted stdio JSON-RPC server driven by the transport tests.

Methods:
  ping     -> "pong"
  echo     -> params
  hold     -> reply deferred until "release"
  release  -> replies itself, then every held request in arrival order
  noise    -> a plain-text line and a notification, then "ok"
  split    -> reply written in two flushes, cut in the middle of the document
  stderr   -> writes params["text"] to stderr, then "ok"
  fail     -> JSON-RPC error object
  hang     -> never replies
  crash    -> exits with params["code"] without replying
  garbage  -> unparseable lines (deep nesting, a huge integer), then "ok"
  flood    -> params["size"] bytes before the next newline, no reply
  deaf     -> closes its stdin, replies "ok", then keeps running

Notifications (no id) are acknowledged on stderr as "notified:<method>".

Flags:
  --linger    keep running after stdin closes
  --stubborn  ignore SIGTERM
"""

import json
import os
import signal
import sys
import time


def write_raw(data):
    sys.stdout.write(data)
    sys.stdout.flush()


def reply(request_id, result):
    write_raw(json.dumps({"jsonrpc": "2.0", "id": request_id, "result": result}) + "\n")


def main():
    if "--stubborn" in sys.argv:
        signal.signal(signal.SIGTERM, signal.SIG_IGN)

    held = []
    while True:
        line = sys.stdin.readline()
        if not line:
            break
        line = line.strip()
        if not line:
            continue

        request = json.loads(line)
        method = request.get("method")
        params = request.get("params") or {}
        request_id = request.get("id")

        if request_id is None:
            sys.stderr.write(f"notified:{method}\n")
            sys.stderr.flush()
        elif method == "ping":
            reply(request_id, "pong")
        elif method == "echo":
            reply(request_id, params)
        elif method == "hold":
            held.append((request_id, params))
        elif method == "release":
            reply(request_id, "released")
            for held_id, held_params in held:
                reply(held_id, held_params)
            held = []
        elif method == "noise":
            write_raw("server starting up...\n")
            write_raw(json.dumps({"jsonrpc": "2.0", "method": "notifications/progress"}) + "\n")
            reply(request_id, "ok")
        elif method == "split":
            doc = json.dumps({"jsonrpc": "2.0", "id": request_id, "result": "joined"}) + "\n"
            write_raw(doc[:15])
            time.sleep(0.05)
            write_raw(doc[15:])
        elif method == "stderr":
            sys.stderr.write(params.get("text", ""))
            sys.stderr.flush()
            reply(request_id, "ok")
        elif method == "fail":
            write_raw(json.dumps({
                "jsonrpc": "2.0",
                "id": request_id,
                "error": {"code": -32601, "message": "Method not found"},
            }) + "\n")
        elif method == "garbage":
            write_raw("[" * 100000 + "\n")
            write_raw("1" * 5000 + "\n")
            reply(request_id, "ok")
        elif method == "flood":
            write_raw("x" * params.get("size", 0) + "\n")
        elif method == "deaf":
            os.close(0)
            reply(request_id, "ok")
            while True:
                time.sleep(1)
        elif method == "crash":
            sys.exit(params.get("code", 3))
        elif method == "hang":
            pass

    if "--linger" in sys.argv:
        while True:
            time.sleep(1)


if __name__ == "__main__":
    main()
