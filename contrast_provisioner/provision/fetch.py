"""Artifact download into the droplet sandbox."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any, Protocol
from urllib.parse import urlparse

import requests

from contrast_provisioner.config.logging import logger as _default_logger

CHUNK_SIZE = 64 * 1024


class ArtifactFetcher(Protocol):
    def fetch(self, uri: str, destination: Path, filename: str) -> Path:
        """Place the artifact at ``uri`` into ``destination / filename``."""


class HttpArtifactFetcher:
    """Fetch artifacts over http(s) with ``requests``, or copy local/``file://`` sources."""

    def __init__(self, timeout: float = 30, session: requests.Session | None = None, logger: Any = None) -> None:
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logger or _default_logger

    def fetch(self, uri: str, destination: Path, filename: str) -> Path:
        destination.mkdir(parents=True, exist_ok=True)
        target = destination / filename
        parsed = urlparse(uri)

        if parsed.scheme in {"http", "https"}:
            self.logger.info(f"Downloading {uri} to {target}")
            with self.session.get(uri, stream=True, timeout=self.timeout) as response:
                response.raise_for_status()
                with target.open("wb") as handle:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
            return target

        source = Path(parsed.path) if parsed.scheme == "file" else Path(uri).expanduser()
        self.logger.info(f"Copying {source} to {target}")
        shutil.copyfile(source, target)
        return target
