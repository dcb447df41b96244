# Copyright 2026 Kezie Iwueke
# SPDX-License-Identifier: Apache-2.0

# src/kindling/cli/app.py
from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Optional

import typer

from kindling.cluster.lifecycle import create_cluster, delete_cluster
from kindling.config.loader import load_config
from kindling.logging.log import init_logging
from kindling.observers.console import ConsoleObserver
from kindling.observers.dispatcher import EventBus
from kindling.observers.events import new_ctx
from kindling.observers.jsonfile import JsonFileObserver
from kindling.observers.logger import LoggerObserver
from kindling.observers.status import Status
from kindling.providers.provider import Provider
from kindling.providers.registry import get_provider, provider_name

log = logging.getLogger("kindling")


# ------------------------------------------------------------------------------
# CLI setup
# ------------------------------------------------------------------------------

app = typer.Typer(help="Kindling cluster node provisioning CLI")

ProviderOpt = typer.Option(
    None, "--provider", help="Node backend: docker or ignite (default $KINDLING_PROVIDER or docker)"
)


def _provider(name: Optional[str], bus: Optional[EventBus] = None) -> Provider:
    try:
        return get_provider(name, bus=bus)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--provider")


@contextlib.contextmanager
def _failures(what: str, logger: Optional[logging.Logger] = None):
    """Report a failed command as ERROR and exit 1 instead of a traceback."""
    try:
        yield
    except Exception as e:
        (logger or log).debug("%s failed", what, exc_info=True)
        typer.secho(f"ERROR: failed to {what}: {e}", fg="red", err=True)
        raise typer.Exit(1)


# ------------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------------

@app.command()
def create(
    config: Optional[Path] = typer.Option(None, "--config", help="Cluster definition YAML"),
    name: Optional[str] = typer.Option(None, "--name", help="Cluster name (overrides the config)"),
    provider: Optional[str] = ProviderOpt,
    retain: bool = typer.Option(False, "--retain", help="Keep nodes if creation fails"),
    debug: bool = typer.Option(False, "--debug"),
):
    """Create a cluster and run its post-provisioning actions."""
    logger, run_id, log_path = init_logging(verbose=debug)
    cfg = load_config(config, name=name)

    typer.echo("")
    typer.secho(f"Creating cluster {cfg.name!r}", bold=True)
    typer.echo(f"  Run ID   : {run_id}")
    typer.echo(f"  Logs     : {log_path}")
    typer.echo("")

    bus = EventBus(observers=[
        ConsoleObserver(),
        LoggerObserver(logger),
        JsonFileObserver(log_path.with_suffix(".jsonl")),
    ])
    backend = _provider(provider, bus)

    ctx = new_ctx(cluster=cfg.name, provider=provider_name(provider))
    ctx["run_id"] = run_id
    status = Status(bus=bus, ctx=ctx)

    with _failures("create cluster", logger):
        create_cluster(backend, cfg, status=status, retain=retain)

    if status.failed:
        typer.secho("Cluster created with warnings, see the log for details", fg="yellow")


@app.command()
def delete(
    name: str = typer.Option("kindling", "--name", help="Cluster name"),
    provider: Optional[str] = ProviderOpt,
    debug: bool = typer.Option(False, "--debug"),
):
    """Delete every node of a cluster."""
    logger, _, _ = init_logging(verbose=debug)
    backend = _provider(provider)
    with _failures("delete cluster", logger):
        delete_cluster(backend, name)


@app.command()
def clusters(provider: Optional[str] = ProviderOpt):
    """List clusters."""
    backend = _provider(provider)
    with _failures("list clusters"):
        names = backend.list_clusters()
    for cluster in names:
        typer.echo(cluster)


@app.command()
def nodes(
    name: str = typer.Option("kindling", "--name", help="Cluster name"),
    provider: Optional[str] = ProviderOpt,
):
    """List the nodes of a cluster."""
    backend = _provider(provider)
    with _failures("list nodes"):
        found = backend.list_nodes(name)
    for node in found:
        typer.echo(str(node))


@app.command()
def endpoint(
    name: str = typer.Option("kindling", "--name", help="Cluster name"),
    provider: Optional[str] = ProviderOpt,
):
    """Print the API server endpoint of a cluster."""
    backend = _provider(provider)
    with _failures("get api server endpoint"):
        address = backend.get_api_server_endpoint(name)
    typer.echo(address)


if __name__ == "__main__":
    app()
