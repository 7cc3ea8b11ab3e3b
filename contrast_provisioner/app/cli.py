"""Command-line entry points for the detect / compile / release staging phases."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

import requests

from contrast_provisioner import __version__
from contrast_provisioner.config.logging import configure_logging, logger
from contrast_provisioner.config.settings import Config, get_config, get_config_sources
from contrast_provisioner.provision.agent import AGENT_NAME, AgentProvisioner
from contrast_provisioner.provision.droplet import Droplet, JavaOpts
from contrast_provisioner.provision.fetch import HttpArtifactFetcher
from contrast_provisioner.provision.repository import resolve_version
from contrast_provisioner.provision.services import ServiceBindings, load_application_details
from contrast_provisioner.provision.version import ResolvedVersion

_RUN_ERRORS = (ValueError, LookupError, OSError, requests.RequestException)


def _emit(message: object = "", *, file: Any | None = None) -> None:
    """Write one CLI output line to stdout or a provided file-like target."""
    target = file if file is not None else sys.stdout
    target.write(f"{message}\n")


def _hoist_global_json_flag(raw: list[str]) -> list[str]:
    """Allow ``--json`` before or after subcommands by normalizing argv order."""
    if "--json" not in raw:
        return raw
    return ["--json"] + [item for item in raw if item != "--json"]


def _build_provisioner(config: Config, args: argparse.Namespace) -> AgentProvisioner:
    """Wire bindings, application details, and droplet from the process environment."""
    app_root = Path(args.app_root).expanduser() if getattr(args, "app_root", None) else config.app_root
    droplet = Droplet(
        component_id=config.component_id,
        root=app_root,
        resources_dir=config.resources_dir,
        java_opts=JavaOpts(list(getattr(args, "java_opt", None) or [])),
    )
    component_logger = logger.bind(component=AGENT_NAME)
    return AgentProvisioner(
        ServiceBindings.from_env(),
        load_application_details(),
        droplet,
        fetcher=HttpArtifactFetcher(timeout=config.http_timeout, logger=component_logger),
        logger=component_logger,
    )


def _resolve(config: Config, args: argparse.Namespace) -> tuple[ResolvedVersion, str | None]:
    """Use the orchestrator-held version when given, else resolve from the repository."""
    pinned = getattr(args, "agent_version", None)
    uri = getattr(args, "uri", None)
    if pinned and (uri or args.command != "compile"):
        return ResolvedVersion.parse(pinned), uri
    return resolve_version(
        config.repository_root,
        pinned or config.version,
        timeout=config.http_timeout,
        logger=logger.bind(component=AGENT_NAME),
    )


def _cmd_detect(args: argparse.Namespace) -> int:
    """Print the detect tag; exit 1 when the agent does not apply."""
    config = get_config()
    provisioner = _build_provisioner(config, args)
    if not provisioner.supports():
        if args.json:
            _emit(json.dumps({"detected": False, "tag": None}, indent=2, ensure_ascii=True))
        return 1
    version, _ = _resolve(config, args)
    tag = provisioner.detect(version)
    if args.json:
        _emit(json.dumps({"detected": tag is not None, "tag": tag}, indent=2, ensure_ascii=True))
    elif tag:
        _emit(tag)
    return 0 if tag else 1


def _cmd_compile(args: argparse.Namespace) -> int:
    """Resolve the agent version and install its jar into the droplet sandbox."""
    config = get_config()
    provisioner = _build_provisioner(config, args)
    version, uri = _resolve(config, args)
    installed = provisioner.install(version, str(uri))
    payload = {"version": str(version), "uri": uri, "installed": str(installed)}
    if args.json:
        _emit(json.dumps(payload, indent=2, ensure_ascii=True))
    else:
        _emit("Compile summary:")
        for key, value in payload.items():
            _emit(f"- {key}: {value}")
    return 0


def _cmd_release(args: argparse.Namespace) -> int:
    """Add the agent launch option and environment, then print the result."""
    config = get_config()
    provisioner = _build_provisioner(config, args)
    version, _ = _resolve(config, args)
    provisioner.release(version)
    droplet = provisioner.droplet
    if args.json:
        payload = {
            "version": str(version),
            "java_opts": list(droplet.java_opts),
            "environment": droplet.environment_variables.as_dict(),
        }
        _emit(json.dumps(payload, indent=2, ensure_ascii=True))
        return 0
    _emit(f"JAVA_OPTS={droplet.java_opts.as_string()}")
    for line in droplet.environment_variables.as_lines():
        _emit(line)
    return 0


def _cmd_config(args: argparse.Namespace) -> int:
    """Print the effective configuration and the files it came from."""
    payload = {"config": get_config().public_dict(), "sources": get_config_sources()}
    if args.json:
        _emit(json.dumps(payload, indent=2, ensure_ascii=True))
        return 0
    for key, value in payload["config"].items():
        _emit(f"- {key}: {value}")
    for source in payload["sources"]:
        _emit(f"- source[{source['source']}]: {source['path']}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Construct the provisioner command-line parser."""
    parser = argparse.ArgumentParser(prog="contrast-provisioner", description="Contrast Security agent provisioning")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--json", action="store_true", help="Output JSON when supported")
    sub = parser.add_subparsers(dest="command")

    detect = sub.add_parser("detect", help="Report whether the agent applies to this application")
    detect.add_argument("--agent-version", help="Already resolved agent version")
    detect.set_defaults(func=_cmd_detect)

    compile_ = sub.add_parser("compile", help="Download the agent jar into the droplet")
    compile_.add_argument("--app-root", help="Application root directory")
    compile_.add_argument("--agent-version", help="Already resolved agent version")
    compile_.add_argument("--uri", help="Download uri for --agent-version")
    compile_.set_defaults(func=_cmd_compile)

    release = sub.add_parser("release", help="Emit the agent launch option and environment")
    release.add_argument("--app-root", help="Application root directory")
    release.add_argument("--agent-version", help="Already resolved agent version")
    release.add_argument("--java-opt", action="append", help="Existing JAVA_OPTS entry (repeatable)")
    release.set_defaults(func=_cmd_release)

    config = sub.add_parser("config", help="Show effective configuration")
    config.set_defaults(func=_cmd_config)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for CLI invocation with global flags and dispatch."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(_hoist_global_json_flag(list(sys.argv[1:] if argv is None else argv)))

    handler = getattr(args, "func", None)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return int(handler(args))
    except _RUN_ERRORS as exc:
        logger.error(f"{args.command} failed: {exc}")
        _emit(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
