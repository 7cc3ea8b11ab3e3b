"""Cloud Foundry ``VCAP_SERVICES`` parsing and service-binding lookup."""

from __future__ import annotations

import json
import os
import re
from typing import Any

from pydantic import BaseModel, Field


class ServiceBinding(BaseModel):
    """One bound service instance as published in ``VCAP_SERVICES``."""

    name: str = ""
    label: str = ""
    tags: list[str] = Field(default_factory=list)
    credentials: dict[str, Any] = Field(default_factory=dict)

    def matches(self, pattern: re.Pattern[str]) -> bool:
        """Return whether name, label, or any tag matches the filter."""
        return any(pattern.search(value) for value in (self.name, self.label, *self.tags) if value)

    def has_credentials(self, keys: tuple[str, ...]) -> bool:
        """Return whether every key is present in the credentials bag."""
        return all(key in self.credentials for key in keys)


class ServiceBindings:
    """Read-only collection of bound services with filter-based lookup."""

    def __init__(self, bindings: list[ServiceBinding] | None = None) -> None:
        self._bindings = list(bindings or [])

    def __len__(self) -> int:
        return len(self._bindings)

    def __iter__(self):
        return iter(self._bindings)

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ServiceBindings:
        """Build bindings from a decoded ``{label: [binding, ...]}`` document."""
        bindings: list[ServiceBinding] = []
        for label, entries in payload.items():
            if not isinstance(entries, list):
                raise ValueError(f"VCAP_SERVICES entry {label!r} must be a list of bindings")
            for entry in entries:
                if not isinstance(entry, dict):
                    raise ValueError(f"VCAP_SERVICES binding under {label!r} must be an object")
                bindings.append(ServiceBinding(**{"label": label, **entry}))
        return cls(bindings)

    @classmethod
    def from_json(cls, raw: str | None) -> ServiceBindings:
        """Parse a ``VCAP_SERVICES`` JSON string; blank input means no bindings."""
        if raw is None or not raw.strip():
            return cls()
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ValueError(f"VCAP_SERVICES is not valid JSON: {exc}") from exc
        if not isinstance(payload, dict):
            raise ValueError("VCAP_SERVICES must be a JSON object")
        return cls.from_payload(payload)

    @classmethod
    def from_env(cls, env_key: str = "VCAP_SERVICES") -> ServiceBindings:
        """Parse bindings from the process environment."""
        return cls.from_json(os.getenv(env_key))

    def candidates(self, filter_pattern: str) -> list[ServiceBinding]:
        """Return every binding whose name, label, or tag matches ``filter_pattern``."""
        pattern = re.compile(filter_pattern)
        return [binding for binding in self._bindings if binding.matches(pattern)]

    def find_services(self, filter_pattern: str, *required_keys: str) -> list[ServiceBinding]:
        """Return bindings matching ``filter_pattern`` that carry every required key."""
        return [binding for binding in self.candidates(filter_pattern) if binding.has_credentials(required_keys)]

    def count_matching_services(self, filter_pattern: str, *required_keys: str) -> int:
        return len(self.find_services(filter_pattern, *required_keys))

    def one_service(self, filter_pattern: str, *required_keys: str) -> bool:
        """Return whether exactly one binding matches the filter and it carries every required key.

        A second binding in the category counts against the match even when it
        lacks some of the required keys.
        """
        candidates = self.candidates(filter_pattern)
        return len(candidates) == 1 and candidates[0].has_credentials(required_keys)

    def find_service(self, filter_pattern: str, *required_keys: str) -> dict[str, Any] | None:
        """Return the single matching binding as a dict, or ``None`` when ``one_service`` is false."""
        if not self.one_service(filter_pattern, *required_keys):
            return None
        return self.candidates(filter_pattern)[0].model_dump()


def load_application_details(raw: str | None = None) -> dict[str, Any]:
    """Parse ``VCAP_APPLICATION`` (or ``raw``) into a details mapping."""
    text = raw if raw is not None else os.getenv("VCAP_APPLICATION", "")
    if not text.strip():
        return {}
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"VCAP_APPLICATION is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ValueError("VCAP_APPLICATION must be a JSON object")
    return payload
