"""Execution planner: decides how a declared server command gets invoked.

Resolution order (first match wins):

  1. ``./node_modules/.bin/<command>`` exists  -> run it directly
  2. auto-install enabled                       -> ``npm exec <command>``
  3. otherwise                                  -> ``npx <command>``

Whether the resolved command actually works is only discovered at spawn time.
"""

from __future__ import annotations

import os
import shlex
from collections.abc import Callable
from pathlib import Path

from .models import ExecutionPlan, PlanSource, Profile

LOCAL_BIN_DIR = Path("node_modules") / ".bin"
DEFAULT_PACKAGE_MANAGER = "npm"
DEFAULT_ZERO_INSTALL_RUNNER = "npx"


def local_bin_dir(cwd: str | Path | None = None) -> Path:
    return Path(cwd or os.getcwd()) / LOCAL_BIN_DIR


def plan(
    command: str,
    auto_install: bool,
    *,
    cwd: str | Path | None = None,
    exists: Callable[[Path], bool] = os.path.exists,
    package_manager: str = DEFAULT_PACKAGE_MANAGER,
    runner: str = DEFAULT_ZERO_INSTALL_RUNNER,
) -> ExecutionPlan:
    if exists(local_bin_dir(cwd) / command):
        # argv() splits command words, so the declared name is kept as one
        return ExecutionPlan(command=shlex.quote(command), args=(), source=PlanSource.LOCAL_BIN)

    if auto_install:
        return ExecutionPlan(
            command=f"{package_manager} exec",
            args=(command,),
            source=PlanSource.PACKAGE_EXEC,
        )

    return ExecutionPlan(
        command=runner,
        args=(command,),
        source=PlanSource.ZERO_INSTALL_RUNNER,
    )


def plan_for_profile(profile: Profile, **kwargs) -> ExecutionPlan:
    """Plan execution for a profile's server record."""
    return plan(profile.server.command, profile.server.auto_install, **kwargs)
