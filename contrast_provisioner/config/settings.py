"""Central config loading from env + TOML layers for the provisioning run."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

DEFAULT_VERSION = "3.+"
DEFAULT_REPOSITORY_ROOT = "https://download.run.pivotal.io/contrast-security"
DEFAULT_COMPONENT_ID = "contrast_security_agent"
DEFAULT_HTTP_TIMEOUT = 30

REPO_ROOT = Path(__file__).parent.parent.parent
DEFAULT_REPO_CONFIG_PATH = REPO_ROOT / "config.toml"
DEFAULT_RESOURCES_DIR = REPO_ROOT / "resources"
DEFAULT_XDG_CONFIG_PATH = Path.home() / ".config" / "contrast-provisioner" / "config.toml"

_LAST_CONFIG_SOURCES: list[dict[str, str]] = []


def load_toml_file(path: Path | None) -> dict:
    """Load a TOML file into a dict, returning ``{}`` on read/parse errors."""
    if not path or not path.exists():
        return {}
    try:
        with open(path, "rb") as handle:
            data = tomllib.load(handle)
    except (OSError, tomllib.TOMLDecodeError):
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge nested dict values with ``override`` precedence."""
    merged = dict(base)
    for key, value in override.items():
        existing = merged.get(key)
        if isinstance(existing, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(existing, value)
        else:
            merged[key] = value
    return merged


def _config_layer_specs() -> list[tuple[str, Path]]:
    """Return config layers in load order."""
    layers = [
        ("repo_default", DEFAULT_REPO_CONFIG_PATH),
        ("xdg_user", DEFAULT_XDG_CONFIG_PATH),
    ]
    env_path = os.getenv("CONTRAST_PROVISIONER_CONFIG")
    if env_path:
        layers.append(("explicit", Path(env_path).expanduser()))
    return layers


def _load_toml_layers() -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Load and merge all config layers, returning merged payload + source list."""
    merged: dict[str, Any] = {}
    sources: list[dict[str, str]] = []

    for source, path in _config_layer_specs():
        if not path.exists():
            continue
        payload = load_toml_file(path)
        if not payload:
            continue
        merged = _deep_merge(merged, payload)
        sources.append({"source": source, "path": str(path)})

    return merged, sources


def get_config_sources() -> list[dict[str, str]]:
    """Return the last computed config source stack."""
    return [dict(item) for item in _LAST_CONFIG_SOURCES]


def _get_nested(data: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Read nested dict keys safely with a default value."""
    current: Any = data
    for key in keys:
        if not isinstance(current, dict):
            return default
        current = current.get(key, default)
        if current is default:
            return default
    return current


def _parse_int(value: Any, default: int) -> int:
    """Parse integer-like value with fallback default."""
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed


def _expand_path(value: Any, default: Path) -> Path:
    """Expand path-like value with fallback default."""
    if value in (None, ""):
        return default
    try:
        return Path(str(value)).expanduser()
    except (TypeError, OSError, ValueError):
        return default


def _env_or_toml(env_key: str, toml_data: dict[str, Any], *toml_keys: str, default: Any = None) -> Any:
    """Resolve setting from env first, then TOML, then provided default."""
    env_val = os.getenv(env_key)
    if env_val not in (None, ""):
        return env_val
    toml_val = _get_nested(toml_data, *toml_keys, default=None)
    if toml_val not in (None, ""):
        return toml_val
    return default


@dataclass(frozen=True)
class Config:
    version: str
    repository_root: str
    component_id: str
    app_root: Path
    resources_dir: Path
    http_timeout: int = DEFAULT_HTTP_TIMEOUT

    def public_dict(self) -> dict[str, Any]:
        """Return a serializable config snapshot for user-facing output."""
        return {
            "version": self.version,
            "repository_root": self.repository_root,
            "component_id": self.component_id,
            "app_root": str(self.app_root),
            "resources_dir": str(self.resources_dir),
            "http_timeout": self.http_timeout,
        }


@lru_cache(maxsize=1)
def load_config() -> Config:
    """Load effective config and cache the result."""
    load_dotenv()
    toml_data, sources = _load_toml_layers()

    global _LAST_CONFIG_SOURCES
    _LAST_CONFIG_SOURCES = sources

    version = str(
        _env_or_toml("CONTRAST_PROVISIONER_VERSION", toml_data, "agent", "version", default=DEFAULT_VERSION)
    ).strip() or DEFAULT_VERSION
    repository_root = str(
        _env_or_toml(
            "CONTRAST_PROVISIONER_REPOSITORY_ROOT",
            toml_data,
            "agent",
            "repository_root",
            default=DEFAULT_REPOSITORY_ROOT,
        )
    ).strip().rstrip("/") or DEFAULT_REPOSITORY_ROOT
    component_id = str(
        _env_or_toml(
            "CONTRAST_PROVISIONER_COMPONENT_ID",
            toml_data,
            "agent",
            "component_id",
            default=DEFAULT_COMPONENT_ID,
        )
    ).strip() or DEFAULT_COMPONENT_ID

    app_root = _expand_path(
        _env_or_toml("CONTRAST_PROVISIONER_APP_ROOT", toml_data, "droplet", "app_root", default=None),
        Path.cwd(),
    )
    resources_dir = _expand_path(
        _env_or_toml("CONTRAST_PROVISIONER_RESOURCES_DIR", toml_data, "droplet", "resources_dir", default=None),
        DEFAULT_RESOURCES_DIR,
    )
    http_timeout = max(
        1,
        _parse_int(
            _env_or_toml("CONTRAST_PROVISIONER_HTTP_TIMEOUT", toml_data, "http", "timeout", default=DEFAULT_HTTP_TIMEOUT),
            DEFAULT_HTTP_TIMEOUT,
        ),
    )

    return Config(
        version=version,
        repository_root=repository_root,
        component_id=component_id,
        app_root=app_root,
        resources_dir=resources_dir,
        http_timeout=http_timeout,
    )


def get_config() -> Config:
    """Return cached effective config."""
    return load_config()


def reload_config() -> Config:
    """Clear config cache and reload effective config."""
    load_config.cache_clear()
    return load_config()


if __name__ == "__main__":
    """Run a real-path smoke test that loads and prints effective config."""
    cfg = load_config()
    assert cfg.version
    assert cfg.repository_root
    assert isinstance(cfg.public_dict(), dict)
