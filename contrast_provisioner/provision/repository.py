"""Version repository lookup: ``index.yml`` loading and version-pattern resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests
import yaml

from contrast_provisioner.config.logging import logger as _default_logger
from contrast_provisioner.provision.version import ResolvedVersion, VersionFormatError

INDEX_FILENAME = "index.yml"
WILDCARD = "+"


@dataclass(frozen=True)
class VersionPattern:
    """Version range such as ``3.+``, ``3.4.+``, ``+`` or an exact ``3.4.2``."""

    tokens: tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> VersionPattern:
        """Parse a dotted version pattern; ``+`` may only appear last."""
        text = str(raw or "").strip()
        if not text:
            raise VersionFormatError("Empty version pattern")
        head, _, qualifier = text.partition("_")
        tokens = head.split(".")
        if len(tokens) > 3:
            raise VersionFormatError(f"Invalid version pattern {raw!r}: too many components")
        for index, token in enumerate(tokens):
            if token == WILDCARD:
                if index != len(tokens) - 1 or qualifier:
                    raise VersionFormatError(f"Invalid version pattern {raw!r}: '+' must be last")
            elif not token.isdigit():
                raise VersionFormatError(f"Invalid version pattern {raw!r}: {token!r} is not numeric")
        if qualifier:
            if len(tokens) != 3:
                raise VersionFormatError(f"Invalid version pattern {raw!r}: qualifier needs three components")
            tokens.append(qualifier)
        return cls(tuple(tokens))

    def matches(self, version: ResolvedVersion) -> bool:
        """Return whether ``version`` falls inside this pattern."""
        components = (str(version.major), str(version.minor), str(version.patch), version.qualifier)
        for token, component in zip(self.tokens, components):
            if token == WILDCARD:
                return True
            if token.isdigit() and component.isdigit():
                if int(token) != int(component):
                    return False
            elif token != component:
                return False
        return True

    def __str__(self) -> str:
        numeric = ".".join(self.tokens[:3])
        return f"{numeric}_{self.tokens[3]}" if len(self.tokens) > 3 else numeric


def _is_remote(location: str) -> bool:
    return urlparse(location).scheme in {"http", "https"}


def _local_path(location: str) -> Path:
    parsed = urlparse(location)
    if parsed.scheme == "file":
        return Path(parsed.path)
    return Path(location).expanduser()


def index_location(repository_root: str) -> str:
    """Return the ``index.yml`` location under a repository root."""
    return f"{repository_root.rstrip('/')}/{INDEX_FILENAME}"


def load_index(repository_root: str, *, timeout: float = 30, logger: Any = None) -> dict[str, str]:
    """Load the repository index as a ``{version: uri}`` mapping."""
    location = index_location(repository_root)
    (logger or _default_logger).debug(f"Loading repository index from {location}")
    if _is_remote(location):
        response = requests.get(location, timeout=timeout)
        response.raise_for_status()
        text = response.text
    else:
        text = _local_path(location).read_text(encoding="utf-8")

    payload = yaml.safe_load(text)
    if not isinstance(payload, dict):
        raise ValueError(f"Repository index {location} must be a mapping of version to uri")
    return {str(version): str(uri) for version, uri in payload.items()}


def select_version(index: dict[str, str], pattern: VersionPattern) -> tuple[ResolvedVersion, str]:
    """Pick the highest indexed version matching ``pattern``."""
    candidates = [(ResolvedVersion.parse(raw), uri) for raw, uri in index.items()]
    matching = [item for item in candidates if pattern.matches(item[0])]
    if not matching:
        raise LookupError(f"No version resolvable for {pattern} in {sorted(index)}")
    return max(matching, key=lambda item: (item[0], item[0].qualifier))


def resolve_version(
    repository_root: str,
    version_pattern: str,
    *,
    timeout: float = 30,
    logger: Any = None,
) -> tuple[ResolvedVersion, str]:
    """Resolve a configured version range to a concrete version and download uri."""
    log = logger or _default_logger
    pattern = VersionPattern.parse(version_pattern)
    version, uri = select_version(load_index(repository_root, timeout=timeout, logger=log), pattern)
    log.info(f"Resolved agent version {version} for pattern {pattern}")
    return version, uri
