#!/usr/bin/env python3
"""Provision and manage a single tunnel node.

Prerequisites: TUNNELNODE_TOKEN set (or in .env), a private StackScript
labelled 'freedom_node' (or TUNNELNODE_SCRIPT) in the account.

Usage: uv run tunnelnode <noun> <verb> [options]

Examples:
    uv run tunnelnode catalog regions
    uv run tunnelnode tunnel create --plan g6-nanode-1 --region us-east --wireguard-port 51820 ...
    uv run tunnelnode tunnel status
    uv run tunnelnode tunnel destroy --force
"""

import cyclopts
from rich import print_json

from .config import load_settings
from .errors import ConfigError
from .orchestrator import CreateTunnelRequest, RebuildTunnelRequest, TunnelOrchestrator
from .provisioning import ObfsOptions, TunnelOptions, WireguardOptions
from .responses import Result, encode
from .utils import error, log, setup_logging

app = cyclopts.App(name="tunnelnode", help="Provision a tunnel node", sort_key=None)

tunnel_app = cyclopts.App(name="tunnel", help="Manage the tunnel instance", sort_key=1)
catalog_app = cyclopts.App(name="catalog", help="List provider catalogs", sort_key=2)

app.command(tunnel_app)
app.command(catalog_app)


def _orchestrator(token: str | None) -> tuple[TunnelOrchestrator, str | None]:
    try:
        settings = load_settings()
    except ConfigError as e:
        error(str(e))
    setup_logging(settings.log_level)
    return TunnelOrchestrator(settings), token or settings.token


def _report(result: Result) -> None:
    print_json(data=encode(result))
    if not result.ok:
        error(f"'{result.operation}' failed: {result.error}")


def _tunnel_options(
    user: str,
    password: str,
    wireguard_port: int | None,
    wireguard_key: str | None,
    wireguard_peer: list[str] | None,
    obfs4_port: int | None,
    obfs4_secret: str | None,
    obfs6_port: int | None,
    obfs6_secret: str | None,
) -> TunnelOptions:
    """Enable each feature whose port was given."""
    wireguard = None
    if wireguard_port is not None:
        if not wireguard_key:
            error("--wireguard-key is required with --wireguard-port")
        wireguard = WireguardOptions(wireguard_port, wireguard_key, tuple(wireguard_peer or ()))

    obfs4 = None
    if obfs4_port is not None:
        obfs4 = ObfsOptions(obfs4_port, obfs4_secret or "")

    obfs6 = None
    if obfs6_port is not None:
        obfs6 = ObfsOptions(obfs6_port, obfs6_secret or "")

    return TunnelOptions(
        username=user, password=password, wireguard=wireguard, obfs4=obfs4, obfs6=obfs6
    )


@tunnel_app.command(name="create")
def create_tunnel(
    *,
    plan: str = "",
    region: str = "",
    token: str | None = None,
    root_password: str = "",
    ssh_key: list[str] | None = None,
    user: str = "",
    password: str = "",
    wireguard_port: int | None = None,
    wireguard_key: str | None = None,
    wireguard_peer: list[str] | None = None,
    obfs4_port: int | None = None,
    obfs4_secret: str | None = None,
    obfs6_port: int | None = None,
    obfs6_secret: str | None = None,
):
    """Create the tunnel instance and wait until it is running.

    :param plan: Instance type (see 'catalog plans')
    :param region: Region id (see 'catalog regions')
    :param token: API token (default: TUNNELNODE_TOKEN)
    :param root_password: Root password for the instance
    :param ssh_key: SSH public key for root (repeatable)
    :param user: Regular account name created by the provisioning script
    :param password: Regular account password
    :param wireguard_port: Enable WireGuard on this port
    :param wireguard_key: WireGuard server private key
    :param wireguard_peer: WireGuard peer public key (repeatable)
    :param obfs4_port: Enable obfs4 (IPv4) on this port
    :param obfs4_secret: obfs4 secret
    :param obfs6_port: Enable obfs6 (IPv6) on this port
    :param obfs6_secret: obfs6 secret
    """
    orchestrator, token = _orchestrator(token)
    options = _tunnel_options(
        user, password, wireguard_port, wireguard_key, wireguard_peer,
        obfs4_port, obfs4_secret, obfs6_port, obfs6_secret,
    )
    log(f"Creating tunnel '{orchestrator.settings.role_label}' ('{plan}') in '{region}'...")
    request = CreateTunnelRequest(
        token=token or "",
        plan=plan,
        region=region,
        root_password=root_password,
        ssh_keys=tuple(ssh_key or ()),
        options=options,
    )
    _report(orchestrator.create_tunnel(request))


@tunnel_app.command(name="rebuild")
def rebuild_tunnel(
    *,
    token: str | None = None,
    root_password: str = "",
    ssh_key: list[str] | None = None,
    user: str = "",
    password: str = "",
    wireguard_port: int | None = None,
    wireguard_key: str | None = None,
    wireguard_peer: list[str] | None = None,
    obfs4_port: int | None = None,
    obfs4_secret: str | None = None,
    obfs6_port: int | None = None,
    obfs6_secret: str | None = None,
):
    """Rebuild the existing tunnel instance in place.

    Takes the same credential and feature options as 'tunnel create'.
    """
    orchestrator, token = _orchestrator(token)
    options = _tunnel_options(
        user, password, wireguard_port, wireguard_key, wireguard_peer,
        obfs4_port, obfs4_secret, obfs6_port, obfs6_secret,
    )
    log(f"Rebuilding tunnel '{orchestrator.settings.role_label}'...")
    request = RebuildTunnelRequest(
        token=token or "",
        root_password=root_password,
        ssh_keys=tuple(ssh_key or ()),
        options=options,
    )
    _report(orchestrator.rebuild_tunnel(request))


@tunnel_app.command(name="destroy")
def destroy_tunnel(*, token: str | None = None, force: bool = False):
    """Delete the tunnel instance.

    :param token: API token (default: TUNNELNODE_TOKEN)
    :param force: Skip confirmation prompt
    """
    orchestrator, token = _orchestrator(token)
    if not force:
        confirm = input(f"Delete tunnel '{orchestrator.settings.role_label}'? (yes/no): ")
        if confirm != "yes":
            log("Cancelled")
            return
    _report(orchestrator.destroy_tunnel(token or ""))


@tunnel_app.command(name="status")
def tunnel_status(*, token: str | None = None):
    """Show the current state of the tunnel instance."""
    orchestrator, token = _orchestrator(token)
    _report(orchestrator.tunnel_status(token or ""))


@catalog_app.command(name="instances")
def list_instances(*, token: str | None = None):
    """List every instance in the account."""
    orchestrator, token = _orchestrator(token)
    _report(orchestrator.list_instances(token or ""))


@catalog_app.command(name="plans")
def list_plans():
    """List instance types (no token needed)."""
    orchestrator, _ = _orchestrator(None)
    _report(orchestrator.list_plans())


@catalog_app.command(name="regions")
def list_regions():
    """List regions (no token needed)."""
    orchestrator, _ = _orchestrator(None)
    _report(orchestrator.list_regions())


@catalog_app.command(name="images")
def list_images(*, token: str | None = None):
    """List deployable images."""
    orchestrator, token = _orchestrator(token)
    _report(orchestrator.list_images(token or ""))


@catalog_app.command(name="scripts")
def list_scripts(*, token: str | None = None):
    """List the account's private StackScripts."""
    orchestrator, token = _orchestrator(token)
    _report(orchestrator.list_scripts(token or ""))


if __name__ == "__main__":
    app()
