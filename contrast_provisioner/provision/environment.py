"""Derivation of the agent's ``CONTRAST__*`` environment from bound credentials.

Assignments are produced in three passes:

1. every ``CONTRAST__*`` credential key is passed through verbatim, so the
   service broker can introduce new agent settings without a release here;
2. the named fields (api key, service key, url, user name) plus the working
   directory and application name are written, replacing any passthrough
   value for the same key;
3. proxy settings are added only when the broker supplied a non-empty value.

The result never contains the same key twice.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from contrast_provisioner.provision.credentials import (
    API_KEY,
    PROXY_HOST,
    PROXY_PASS,
    PROXY_PORT,
    PROXY_USER,
    SERVICE_KEY,
    TEAMSERVER_URL,
    USERNAME,
    CredentialSet,
    stringify,
)
from contrast_provisioner.provision.droplet import JavaOpts

# (environment key, credential field, suffix)
NAMED_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("CONTRAST__API__API_KEY", API_KEY, ""),
    ("CONTRAST__API__SERVICE_KEY", SERVICE_KEY, ""),
    ("CONTRAST__API__URL", TEAMSERVER_URL, "/Contrast"),
    ("CONTRAST__API__USER_NAME", USERNAME, ""),
)

PROXY_FIELDS: tuple[tuple[str, str], ...] = (
    ("CONTRAST__API__PROXY__HOST", PROXY_HOST),
    ("CONTRAST__API__PROXY__PORT", PROXY_PORT),
    ("CONTRAST__API__PROXY__USER", PROXY_USER),
    ("CONTRAST__API__PROXY__PASS", PROXY_PASS),
)

WORKING_DIR_KEY = "CONTRAST__AGENT__CONTRAST_WORKING_DIR"
# Expanded by the container shell at launch, not here.
WORKING_DIR_VALUE = "$TMPDIR"

APPLICATION_NAME_KEY = "CONTRAST__APPLICATION__NAME"
APP_NAME_PROPERTIES = ("contrast.override.appname", "contrast.application.name")
DEFAULT_APPLICATION_NAME = "ROOT"


def application_name(details: Mapping[str, Any] | None) -> str:
    """Return the bound application's name, or ``ROOT`` when absent or empty."""
    name = stringify((details or {}).get("application_name"))
    return name or DEFAULT_APPLICATION_NAME


def app_name_overridden(java_opts: JavaOpts) -> bool:
    """Return whether the user already set the agent's application name via ``-D``."""
    return any(java_opts.has_system_property(name) for name in APP_NAME_PROPERTIES)


def build_environment(
    credentials: CredentialSet,
    java_opts: JavaOpts,
    app_name: str,
) -> list[tuple[str, str]]:
    """Build the ordered ``(key, value)`` assignments for the agent."""
    assignments: dict[str, str] = {}

    def put(key: str, value: Any) -> None:
        # A later write moves the key to its new position.
        assignments.pop(key, None)
        assignments[key] = stringify(value)

    for key, value in credentials.passthrough.items():
        put(key, value)

    for env_key, field_name, suffix in NAMED_FIELDS:
        put(env_key, f"{stringify(credentials.value(field_name))}{suffix}")

    put(WORKING_DIR_KEY, WORKING_DIR_VALUE)

    if not app_name_overridden(java_opts):
        put(APPLICATION_NAME_KEY, app_name)

    for env_key, field_name in PROXY_FIELDS:
        value = stringify(credentials.value(field_name))
        if value:
            put(env_key, value)

    return list(assignments.items())
