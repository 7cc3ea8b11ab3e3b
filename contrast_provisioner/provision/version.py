"""Agent version parsing and version-dependent artifact naming."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

_VERSION_RE = re.compile(r"^(\d+)\.(\d+)\.(\d+)(?:_([-.\w]+))?$")


class VersionFormatError(ValueError):
    """Raised when a version string is not ``major.minor.patch[_qualifier]``."""


@dataclass(frozen=True, order=True)
class ResolvedVersion:
    """Three-component agent version; the qualifier never takes part in ordering."""

    major: int
    minor: int
    patch: int
    qualifier: str = field(default="", compare=False)

    @classmethod
    def parse(cls, raw: str) -> ResolvedVersion:
        """Parse ``3.4.2`` or ``3.4.2_756`` style version strings."""
        match = _VERSION_RE.match(str(raw or "").strip())
        if not match:
            raise VersionFormatError(f"Invalid version {raw!r}: expected major.minor.patch[_qualifier]")
        major, minor, patch, qualifier = match.groups()
        return cls(int(major), int(minor), int(patch), qualifier or "")

    @property
    def short(self) -> str:
        """Return ``major.minor.patch`` without the qualifier."""
        return f"{self.major}.{self.minor}.{self.patch}"

    def __str__(self) -> str:
        return f"{self.short}_{self.qualifier}" if self.qualifier else self.short


INFLECTION_VERSION = ResolvedVersion(3, 4, 3)

LEGACY_JAR_PREFIX = "contrast-engine"
CURRENT_JAR_PREFIX = "java-agent"


def jar_name(version: ResolvedVersion) -> str:
    """Return the agent jar filename for ``version``.

    Releases before 3.4.3 shipped as ``contrast-engine-*.jar``; later ones as
    ``java-agent-*.jar``.
    """
    prefix = LEGACY_JAR_PREFIX if version < INFLECTION_VERSION else CURRENT_JAR_PREFIX
    return f"{prefix}-{version.short}.jar"


if __name__ == "__main__":
    assert jar_name(ResolvedVersion.parse("3.4.2_756")) == "contrast-engine-3.4.2.jar"
    assert jar_name(ResolvedVersion.parse("3.4.3_000")) == "java-agent-3.4.3.jar"
    assert str(ResolvedVersion.parse("3.4.3_000")) == "3.4.3_000"
