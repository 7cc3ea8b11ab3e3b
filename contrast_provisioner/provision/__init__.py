"""Provisioning exports for the Contrast agent detect / compile / release phases."""

from contrast_provisioner.provision.agent import AGENT_NAME, AgentProvisioner
from contrast_provisioner.provision.credentials import CredentialSet
from contrast_provisioner.provision.droplet import Droplet, EnvironmentVariables, JavaOpts, qualify_path
from contrast_provisioner.provision.environment import application_name, build_environment
from contrast_provisioner.provision.repository import resolve_version
from contrast_provisioner.provision.services import ServiceBindings, load_application_details
from contrast_provisioner.provision.version import ResolvedVersion, VersionFormatError, jar_name

__all__ = [
    "AGENT_NAME",
    "AgentProvisioner",
    "CredentialSet",
    "Droplet",
    "EnvironmentVariables",
    "JavaOpts",
    "qualify_path",
    "application_name",
    "build_environment",
    "resolve_version",
    "ServiceBindings",
    "load_application_details",
    "ResolvedVersion",
    "VersionFormatError",
    "jar_name",
]
