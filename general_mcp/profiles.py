from __future__ import annotations

from .errors import UnknownProfile
from .models import Profile, ProfilePlugin, ProfileUi, ServerSpec

WEB_DEV = Profile(
    id="web-dev",
    description="Zero-config web development MCP stack",
    server=ServerSpec(
        kind="builtin",
        command="mcp-server-general",
        auto_install=True,
        package="mcp-server-general",
    ),
    plugins=(ProfilePlugin(name="web-tools", entry="@mcp/plugin-web-tools"),),
    ui=ProfileUi(
        enabled=True,
        hint="Launches browser-based MCP UI for web development",
    ),
    notes=(
        "Automatically installs and runs the reference MCP server",
        "Designed for zero-config onboarding",
    ),
)

_BUILTIN: dict[str, Profile] = {p.id: p for p in (WEB_DEV,)}


def list_profiles() -> list[Profile]:
    return list(_BUILTIN.values())


def get_profile(profile_id: str) -> Profile | None:
    return _BUILTIN.get(profile_id)


def require_profile(profile_id: str) -> Profile:
    profile = _BUILTIN.get(profile_id)
    if profile is None:
        raise UnknownProfile(profile_id)
    return profile
