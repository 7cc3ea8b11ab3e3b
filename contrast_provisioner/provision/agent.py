"""Contrast Security agent provisioning across the detect / compile / release phases."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from contrast_provisioner.config.logging import logger as _default_logger
from contrast_provisioner.provision.credentials import REQUIRED_KEYS, SERVICE_FILTER, CredentialSet
from contrast_provisioner.provision.droplet import Droplet, qualify_path
from contrast_provisioner.provision.environment import application_name, build_environment
from contrast_provisioner.provision.fetch import ArtifactFetcher, HttpArtifactFetcher
from contrast_provisioner.provision.services import ServiceBindings
from contrast_provisioner.provision.version import ResolvedVersion, jar_name

AGENT_NAME = "contrast-security-agent"


class AgentProvisioner:
    """Translate a bound Contrast service into an installed agent jar, a
    ``-javaagent`` launch option and the agent's environment.

    The orchestrator calls ``detect`` first and only proceeds to ``install``
    and ``release`` when it returns a tag. The resolved version is held by the
    orchestrator between phases.
    """

    def __init__(
        self,
        services: ServiceBindings,
        application_details: Mapping[str, Any] | None,
        droplet: Droplet,
        *,
        fetcher: ArtifactFetcher | None = None,
        logger: Any = None,
    ) -> None:
        self.services = services
        self.application_details = dict(application_details or {})
        self.droplet = droplet
        self.logger = logger or _default_logger.bind(component=AGENT_NAME)
        self.fetcher = fetcher or HttpArtifactFetcher(logger=self.logger)

    def supports(self) -> bool:
        """Return whether exactly one Contrast binding with all required keys is bound."""
        return self.services.one_service(SERVICE_FILTER, *REQUIRED_KEYS)

    def detect(self, version: ResolvedVersion) -> str | None:
        """Return ``contrast-security-agent=<version>`` when the agent applies."""
        if not self.supports():
            count = self.services.count_matching_services(SERVICE_FILTER, *REQUIRED_KEYS)
            self.logger.debug(f"Contrast agent not applicable: {count} matching service bindings")
            return None
        return f"{AGENT_NAME}={version}"

    def credentials(self) -> CredentialSet:
        """Read the single bound service's credentials."""
        binding = self.services.find_service(SERVICE_FILTER, *REQUIRED_KEYS)
        if binding is None:
            raise LookupError(f"Expected exactly one {SERVICE_FILTER!r} service binding")
        return CredentialSet.from_mapping(binding["credentials"])

    def install(self, version: ResolvedVersion, uri: str) -> Path:
        """Fetch the version's agent jar into the sandbox and copy bundled resources."""
        name = jar_name(version)
        self.logger.info(f"Installing Contrast agent {version.short} as {name}")
        installed = self.fetcher.fetch(uri, self.droplet.sandbox, name)
        self.droplet.copy_resources()
        return installed

    def release(self, version: ResolvedVersion) -> list[tuple[str, str]]:
        """Add the ``-javaagent`` option and the agent environment to the droplet.

        Repeated calls leave the droplet unchanged: options and assignments
        already present are not appended again.
        """
        credentials = self.credentials()

        agent_path = qualify_path(self.droplet.sandbox / jar_name(version), self.droplet.root)
        agent_option = f"-javaagent:{agent_path}"
        if agent_option not in self.droplet.java_opts:
            self.droplet.java_opts.add_preformatted_options(agent_option)

        assignments = build_environment(
            credentials,
            self.droplet.java_opts,
            application_name(self.application_details),
        )
        for key, value in assignments:
            if f"{key}={value}" in self.droplet.environment_variables:
                continue
            self.logger.debug(f"Setting agent environment variable {key}")
            self.droplet.environment_variables.add_environment_variable(key, value)

        self.logger.info(f"Added -javaagent:{agent_path} with {len(assignments)} environment variables")
        return assignments
