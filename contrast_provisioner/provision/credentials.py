"""Typed view of a bound Contrast service's credential bag."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from pydantic import BaseModel, ConfigDict, Field

SERVICE_FILTER = "contrast-security"

API_KEY = "api_key"
SERVICE_KEY = "service_key"
TEAMSERVER_URL = "teamserver_url"
USERNAME = "username"

REQUIRED_KEYS = (API_KEY, SERVICE_KEY, TEAMSERVER_URL, USERNAME)

PROXY_HOST = "proxy_host"
PROXY_PORT = "proxy_port"
PROXY_USER = "proxy_user"
PROXY_PASS = "proxy_pass"

PASSTHROUGH_PREFIX = "CONTRAST__"

Scalar = Union[str, int, float, bool, None]


class CredentialSet(BaseModel):
    """Known credential fields plus verbatim ``CONTRAST__*`` passthrough entries."""

    model_config = ConfigDict(frozen=True)

    api_key: str
    service_key: str
    teamserver_url: str
    username: str
    proxy_host: Scalar = None
    proxy_port: Scalar = None
    proxy_user: Scalar = None
    proxy_pass: Scalar = None
    passthrough: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> CredentialSet:
        """Build a credential set from one binding's ``credentials`` mapping."""
        missing = [key for key in REQUIRED_KEYS if key not in raw]
        if missing:
            raise KeyError(f"Contrast credentials missing required keys: {', '.join(missing)}")
        return cls(
            api_key=stringify(raw[API_KEY]),
            service_key=stringify(raw[SERVICE_KEY]),
            teamserver_url=stringify(raw[TEAMSERVER_URL]),
            username=stringify(raw[USERNAME]),
            proxy_host=raw.get(PROXY_HOST),
            proxy_port=raw.get(PROXY_PORT),
            proxy_user=raw.get(PROXY_USER),
            proxy_pass=raw.get(PROXY_PASS),
            passthrough={key: value for key, value in raw.items() if is_passthrough_key(key)},
        )

    def value(self, field_name: str) -> Scalar:
        """Return a known field by credential key name."""
        return getattr(self, field_name)


def stringify(value: Any) -> str:
    """Render a credential value the way it would appear in JSON."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def is_passthrough_key(key: object) -> bool:
    """Return whether ``key`` belongs to the ``CONTRAST__`` namespace."""
    return isinstance(key, str) and key.startswith(PASSTHROUGH_PREFIX)
