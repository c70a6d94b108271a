"""Formatter: renders profiles and execution reports for the terminal.

``TextFormatter`` produces the human-readable layout; ``JsonFormatter``
produces the ``--json`` variant. The CLI picks one and never formats
anything itself.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from .models import ExecutionReport, Profile

# ---------------------------------------------------------------------------
# Abstract base
# ---------------------------------------------------------------------------


class Formatter(ABC):
    @abstractmethod
    def format_profiles(self, profiles: list[Profile]) -> str:
        ...

    @abstractmethod
    def format_profile(self, profile: Profile) -> str:
        ...

    @abstractmethod
    def format_report(self, report: ExecutionReport, *, explain: bool = False) -> str:
        """Render a dry-run report; explanation lines only when *explain* is set."""
        ...

    @abstractmethod
    def format_response(self, response: Any) -> str:
        ...


def make_formatter(json_output: bool) -> Formatter:
    return JsonFormatter() if json_output else TextFormatter()


# ---------------------------------------------------------------------------
# Text
# ---------------------------------------------------------------------------


class TextFormatter(Formatter):
    def format_profiles(self, profiles: list[Profile]) -> str:
        if not profiles:
            return "No profiles available."

        lines = ["Available profiles:", ""]
        for p in profiles:
            lines.append(f"  {p.id:<8} {p.description}")
        return "\n".join(lines)

    def format_profile(self, profile: Profile) -> str:
        server = profile.server
        lines = [
            f"Profile: {profile.id}",
            "",
            "Description:",
            f"  {profile.description}",
            "",
            "Server:",
            f"  command: {server.command}",
            f"  kind: {server.kind}",
        ]
        if server.auto_install:
            lines.append("  auto-install: yes")
        if server.package:
            lines.append(f"  package: {server.package}")
        lines.append("")

        if profile.ui and profile.ui.enabled:
            lines += ["UI:", "  enabled: yes"]
            if profile.ui.hint:
                lines.append(f"  hint: {profile.ui.hint}")
            lines.append("")

        lines.append("Plugins:")
        if profile.plugins:
            lines += [f"  - {p.name} ({p.entry})" for p in profile.plugins]
        else:
            lines.append("  (none)")

        if profile.notes:
            lines += ["", "Notes:"]
            lines += [f"  - {note}" for note in profile.notes]

        return "\n".join(lines)

    def format_report(self, report: ExecutionReport, *, explain: bool = False) -> str:
        lines: list[str] = []
        if explain:
            lines.append("Execution explanation:")
            lines += [f"- {line}" for line in report.explain]
            lines.append("")

        lines += [
            "Execution plan:",
            f"  resolver: {report.plan.source.value}",
            f"  command: {report.plan.display()}",
        ]
        return "\n".join(lines)

    def format_response(self, response: Any) -> str:
        return json.dumps(response, indent=2)


# ---------------------------------------------------------------------------
# JSON
# ---------------------------------------------------------------------------


class JsonFormatter(Formatter):
    def format_profiles(self, profiles: list[Profile]) -> str:
        return json.dumps([p.to_dict() for p in profiles], indent=2)

    def format_profile(self, profile: Profile) -> str:
        return json.dumps(profile.to_dict(), indent=2)

    def format_report(self, report: ExecutionReport, *, explain: bool = False) -> str:
        data: dict[str, Any] = {"mode": report.mode}
        if report.profile_id is not None:
            data["profile"] = report.profile_id
        if explain:
            data["explain"] = report.explain
        data["plan"] = report.plan.to_dict()
        return json.dumps(data, indent=2)

    def format_response(self, response: Any) -> str:
        return json.dumps(response, indent=2)
