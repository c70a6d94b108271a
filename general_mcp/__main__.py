"""Command-line client for stdio MCP servers.

Usage:
    general-mcp run "<server command>"
    general-mcp run --profile web-dev [--dry-run] [--json] [--explain]
    general-mcp list profiles [--json]
    general-mcp describe profile <profile> [--json]

Requests are read from stdin, either as one JSON value (object or array) or
as one JSON object per line, and each response is printed to stdout:

    echo '{"method":"providers.list"}' | general-mcp run "node dist/server.js"

Environment:
    MCP_DEBUG=1            verbose logging (framing, events, exit status)
    MCP_PROFILE_SERVER     override a profile's server command
    MCP_REQUEST_TIMEOUT    seconds to wait for each response
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shlex
import sys
from collections.abc import Callable
from pathlib import Path

from .config import Config
from .errors import McpClientError
from .formatter import Formatter, make_formatter
from .jsonrpc import parse_payloads, prepare_request
from .models import ExecutionPlan, ExecutionReport, PlanSource, ProcessEvent
from .planner import plan_for_profile
from .profiles import list_profiles, require_profile
from .prompt import run_prompt
from .transport import McpProcess

log = logging.getLogger(__name__)


class UsageError(Exception):
    pass


def resolve_execution(
    config: Config,
    *,
    command: str | None = None,
    profile_id: str | None = None,
    cwd: str | Path | None = None,
    exists: Callable[[Path], bool] = os.path.exists,
) -> ExecutionReport:
    """Decide what ``run`` will launch, recording why in ``explain``.

    A profile always wins over an explicit command. Only builtin profiles
    without an ``MCP_PROFILE_SERVER`` override go through the planner.
    """
    explain: list[str] = []

    if profile_id:
        explain.append(f"Mode: profile ({profile_id})")
        profile = require_profile(profile_id)
        mode = "profile"
        server_command = config.profile_server or profile.server.command

        if profile.server.kind == "builtin" and config.profile_server is None:
            explain += ["Server kind: builtin", "Execution planner: enabled"]
            plan = plan_for_profile(
                profile,
                cwd=cwd,
                exists=exists,
                package_manager=config.package_manager,
                runner=config.zero_install_runner,
            )
            if plan.source is PlanSource.LOCAL_BIN:
                explain.append("Local binary: found")
            else:
                explain.append("Local binary: not found")
                explain.append(
                    "Auto-install: enabled" if profile.server.auto_install
                    else "Auto-install: disabled"
                )
            explain.append(f"Selected execution: {plan.source.value} ({plan.display()})")
            log.debug("Using %s execution", plan.source.value)
            return ExecutionReport(mode=mode, plan=plan, profile_id=profile.id, explain=explain)
    else:
        explain.append("Mode: explicit")
        if not command:
            raise UsageError(
                "Missing server command.\n\n"
                "  Examples:\n"
                '    general-mcp run "node dist/server.js"\n'
                "    general-mcp run --profile web-dev"
            )
        mode = "explicit"
        server_command = command

    explain.append("Execution planner: skipped")
    explain.append(f"Selected execution: explicit ({server_command})")

    try:
        words = shlex.split(server_command)
    except ValueError as exc:
        raise UsageError(f"Cannot parse server command {server_command!r}: {exc}") from None
    if not words:
        raise UsageError("Server command is empty.")

    plan = ExecutionPlan(
        command=shlex.quote(words[0]),
        args=tuple(words[1:]),
        source=PlanSource.EXPLICIT,
    )
    return ExecutionReport(
        mode=mode,
        plan=plan,
        profile_id=profile_id if mode == "profile" else None,
        explain=explain,
    )


def _forward_stderr(chunk: bytes) -> None:
    sys.stderr.write(chunk.decode("utf-8", errors="replace"))
    sys.stderr.flush()


async def run_session(
    report: ExecutionReport,
    config: Config,
    formatter: Formatter,
    *,
    interactive: bool = False,
) -> None:
    """Start the server, feed it requests from stdin (or the prompt), close it."""
    proc = McpProcess(
        grace_period=config.grace_period,
        request_timeout=config.request_timeout,
        max_buffer_bytes=config.max_buffer_bytes,
    )
    proc.on(ProcessEvent.STDERR, _forward_stderr)
    proc.on(
        ProcessEvent.EXIT,
        lambda code, sig: log.debug("Child process exit code=%s signal=%s", code, sig),
    )
    proc.on(ProcessEvent.ERROR, lambda exc: log.debug("Child process error: %s", exc))
    proc.on(ProcessEvent.MESSAGE, lambda msg: log.debug("Unsolicited server output: %r", msg))

    await proc.start(report.plan)
    try:
        if interactive:
            await run_prompt(proc)
            return

        if sys.stdin.isatty():
            log.debug("No stdin detected (TTY). Server started successfully.")
            return

        data = await asyncio.to_thread(sys.stdin.read)
        if not data.strip():
            log.debug("No stdin data, nothing to send.")
            return

        for payload in parse_payloads(data):
            response = await proc.send(prepare_request(proc.builder, payload))
            print(formatter.format_response(response), flush=True)
    finally:
        await proc.close()


def _build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--json", action="store_true", help="Machine-readable output")

    parser = argparse.ArgumentParser(
        prog="general-mcp",
        description="General MCP client: launch a stdio MCP server and talk JSON-RPC to it",
    )
    sub = parser.add_subparsers(dest="cmd")

    run = sub.add_parser("run", parents=[common], help="Start a server and send requests from stdin")
    run.add_argument("server_command", nargs="?", help='e.g. "node dist/server.js"')
    run.add_argument("--profile", help="Run a built-in profile instead of an explicit command")
    run.add_argument("--dry-run", action="store_true", help="Print the execution plan and exit")
    run.add_argument("--explain", action="store_true", help="Show how the plan was chosen")
    run.add_argument("--interactive", action="store_true", help="Read requests from a prompt")

    lst = sub.add_parser("list", parents=[common], help="List available items")
    lst.add_argument("target", choices=["profiles"])

    describe = sub.add_parser("describe", parents=[common], help="Describe one item")
    describe.add_argument("target", choices=["profile"])
    describe.add_argument("profile_id", nargs="?")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.cmd is None:
        print(__doc__, file=sys.stderr)
        return 0

    try:
        config = Config.from_env()
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if config.debug else logging.WARNING,
        format="%(asctime)s [general-mcp] %(levelname)s %(message)s",
    )
    formatter = make_formatter(args.json)

    try:
        if args.cmd == "list":
            print(formatter.format_profiles(list_profiles()))

        elif args.cmd == "describe":
            if not args.profile_id:
                raise UsageError(
                    "Missing profile id.\n\n  Usage:\n    general-mcp describe profile <profile>"
                )
            print(formatter.format_profile(require_profile(args.profile_id)))

        else:
            report = resolve_execution(
                config, command=args.server_command, profile_id=args.profile
            )
            if args.dry_run:
                print(formatter.format_report(report, explain=args.explain))
                return 0
            for line in report.explain:
                log.debug("%s", line)
            asyncio.run(run_session(report, config, formatter, interactive=args.interactive))

    except (McpClientError, UsageError, ValueError) as exc:
        print(exc, file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
