"""Droplet surface the provisioner writes into: launch options, env vars, sandbox paths."""

from __future__ import annotations

import os
import re
import shutil
from dataclasses import dataclass, field
from pathlib import Path

BUILDPACK_DIR_NAME = ".java-buildpack"


class JavaOpts:
    """Ordered JVM launch options; append-only from the provisioner's side."""

    def __init__(self, options: list[str] | None = None) -> None:
        self._options: list[str] = list(options or [])

    def __iter__(self):
        return iter(self._options)

    def __len__(self) -> int:
        return len(self._options)

    def __contains__(self, option: object) -> bool:
        return option in self._options

    def add_preformatted_options(self, text: str) -> JavaOpts:
        """Append an already formatted option string such as ``-javaagent:...``."""
        self._options.append(text)
        return self

    def add_system_property(self, key: str, value: object) -> JavaOpts:
        """Append a ``-Dkey=value`` system property."""
        self._options.append(f"-D{key}={value}")
        return self

    def contains(self, pattern: str) -> bool:
        """Return whether any option text matches ``pattern`` (regex search)."""
        compiled = re.compile(pattern)
        return any(compiled.search(option) for option in self._options)

    def has_system_property(self, key: str) -> bool:
        """Return whether any option defines ``-Dkey`` or ``-Dkey=...``."""
        exact = f"-D{key}"
        for option in self._options:
            for token in option.split():
                if token == exact or token.startswith(f"{exact}="):
                    return True
        return False

    def as_string(self) -> str:
        return " ".join(self._options)

    def __str__(self) -> str:
        return self.as_string()


class EnvironmentVariables:
    """Insertion-ordered environment assignments applied at process start."""

    def __init__(self) -> None:
        self._entries: list[tuple[str, str]] = []

    def __iter__(self):
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, item: object) -> bool:
        return item in self.as_lines()

    def add_environment_variable(self, key: str, value: str) -> EnvironmentVariables:
        self._entries.append((key, value))
        return self

    def keys(self) -> list[str]:
        return [key for key, _ in self._entries]

    def as_dict(self) -> dict[str, str]:
        return dict(self._entries)

    def as_lines(self) -> list[str]:
        """Return ``KEY=VALUE`` strings in insertion order."""
        return [f"{key}={value}" for key, value in self._entries]

    def as_env_vars(self) -> str:
        """Render assignments as a space-joined ``KEY=VALUE`` command prefix."""
        return " ".join(self.as_lines())

    def __str__(self) -> str:
        return self.as_env_vars()


def qualify_path(path: Path, root: Path) -> str:
    """Render ``path`` as a ``$PWD``-relative reference from the application ``root``."""
    relative = os.path.relpath(Path(path), Path(root))
    return f"$PWD/{Path(relative).as_posix()}"


@dataclass
class Droplet:
    """Per-component view of the application being staged."""

    component_id: str
    root: Path
    resources_dir: Path | None = None
    java_opts: JavaOpts = field(default_factory=JavaOpts)
    environment_variables: EnvironmentVariables = field(default_factory=EnvironmentVariables)

    @property
    def sandbox(self) -> Path:
        """Return the component's private install directory."""
        return self.root / BUILDPACK_DIR_NAME / self.component_id

    def copy_resources(self) -> list[Path]:
        """Copy ``<resources_dir>/<component_id>`` into the sandbox when present."""
        if self.resources_dir is None:
            return []
        source = self.resources_dir / self.component_id
        if not source.is_dir():
            return []
        self.sandbox.mkdir(parents=True, exist_ok=True)
        copied: list[Path] = []
        for item in sorted(source.rglob("*")):
            if not item.is_file():
                continue
            target = self.sandbox / item.relative_to(source)
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, target)
            copied.append(target)
        return copied
