from __future__ import annotations

import enum
import shlex
from dataclasses import dataclass, field
from typing import Any


# ---------------------------------------------------------------------------
# ExecutionPlan: how a declared server command will be invoked
# ---------------------------------------------------------------------------

class PlanSource(enum.Enum):
    LOCAL_BIN = "local-bin"                      # node_modules/.bin hit
    PACKAGE_EXEC = "package-exec"                # npm exec <cmd>
    ZERO_INSTALL_RUNNER = "zero-install-runner"  # npx <cmd>
    EXPLICIT = "explicit"                        # user-supplied command line, planner skipped


@dataclass(frozen=True)
class ExecutionPlan:
    command: str
    args: tuple[str, ...] = ()
    source: PlanSource = PlanSource.EXPLICIT

    def argv(self) -> list[str]:
        """Full argument vector; ``command`` may itself hold words ('npm exec')."""
        return [*shlex.split(self.command), *self.args]

    def display(self) -> str:
        return " ".join([self.command, *self.args])

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "args": list(self.args),
            "source": self.source.value,
        }


@dataclass
class ExecutionReport:
    """What ``run`` decided, for --dry-run and --explain output."""

    mode: str  # "explicit" | "profile"
    plan: ExecutionPlan
    profile_id: str | None = None
    explain: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Supervisor lifecycle and events
# ---------------------------------------------------------------------------

class ProcessState(str, enum.Enum):
    NOT_STARTED = "not_started"
    STARTING = "starting"
    RUNNING = "running"
    CLOSING = "closing"
    EXITED = "exited"


class ProcessEvent(str, enum.Enum):
    STDERR = "stderr"    # raw chunk from the child's stderr
    MESSAGE = "message"  # unsolicited JSON value or non-JSON line from stdout
    EXIT = "exit"        # (code, signal), fired once
    ERROR = "error"      # transport-level failure


# ---------------------------------------------------------------------------
# Profiles: declarative server descriptions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ServerSpec:
    kind: str  # "builtin" | "external"
    command: str
    auto_install: bool = False
    package: str | None = None


@dataclass(frozen=True)
class ProfilePlugin:
    name: str
    entry: str


@dataclass(frozen=True)
class ProfileUi:
    enabled: bool
    hint: str | None = None


@dataclass(frozen=True)
class Profile:
    id: str
    description: str
    server: ServerSpec
    plugins: tuple[ProfilePlugin, ...] = ()
    ui: ProfileUi | None = None
    notes: tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        server: dict[str, Any] = {
            "kind": self.server.kind,
            "command": self.server.command,
            "autoInstall": self.server.auto_install,
        }
        if self.server.package:
            server["package"] = self.server.package

        data: dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "server": server,
            "plugins": [{"name": p.name, "entry": p.entry} for p in self.plugins],
        }
        if self.ui is not None:
            ui: dict[str, Any] = {"enabled": self.ui.enabled}
            if self.ui.hint:
                ui["hint"] = self.ui.hint
            data["ui"] = ui
        if self.notes:
            data["notes"] = list(self.notes)
        return data
