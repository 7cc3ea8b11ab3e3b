"""Shared test utilities for constructing config, bindings, and CLI runs."""

from __future__ import annotations

import io
import json
from contextlib import redirect_stdout
from pathlib import Path
from typing import Any

from contrast_provisioner.config.settings import Config

BASE_CREDENTIALS: dict[str, Any] = {
    "api_key": "api_key_test",
    "service_key": "service_key_test",
    "teamserver_url": "https://host.com",
    "username": "contrast_user",
}


def make_config(base: Path, repository_root: str | None = None) -> Config:
    """Build a deterministic Config object rooted at ``base`` for tests."""
    return Config(
        version="3.+",
        repository_root=repository_root or str(base / "repository"),
        component_id="contrast_security_agent",
        app_root=base / "app",
        resources_dir=base / "resources",
        http_timeout=5,
    )


def vcap_services(*credential_sets: dict[str, Any], label: str = "contrast-security") -> str:
    """Render a ``VCAP_SERVICES`` document with one binding per credential set."""
    bindings = [
        {"name": f"contrast-{index}", "label": label, "tags": [], "credentials": credentials}
        for index, credentials in enumerate(credential_sets)
    ]
    return json.dumps({label: bindings})


def write_repository(root: Path, versions: dict[str, str]) -> Path:
    """Write an ``index.yml`` repository with one fake jar per version."""
    root.mkdir(parents=True, exist_ok=True)
    lines = []
    for version, filename in versions.items():
        artifact = root / filename
        artifact.write_bytes(b"jar:" + version.encode("ascii"))
        lines.append(f"{version}: {artifact.as_uri()}")
    (root / "index.yml").write_text("\n".join(lines) + "\n", encoding="utf-8")
    return root


def run_cli(args: list[str]) -> tuple[int, str]:
    """Run CLI command and return ``(exit_code, stdout_text)``."""
    from contrast_provisioner.app import cli

    out = io.StringIO()
    with redirect_stdout(out):
        code = cli.main(args)
    return code, out.getvalue()


def run_cli_json(args: list[str]) -> tuple[int, dict]:
    """Run CLI command and parse stdout JSON payload."""
    code, output = run_cli(args)
    return code, json.loads(output)
