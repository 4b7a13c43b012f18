"""Typer-based command line interface for crosstest."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import typer

from ..config import ServerConfig, dump_default_config, load_config
from ..exceptions import CrossTestError
from ..keyset import templates
from ..keyset.handle import from_template
from ..keyset.models import KeysetEncoding
from ..logging import configure_logging
from ..paths import project_config_path
from ..utils.encoding import b64e

app = typer.Typer(help="Cross-language crypto conformance server")


@app.callback()
def main(ctx: typer.Context, config: Optional[Path] = typer.Option(None, "--config", metavar="PATH")) -> None:
    ctx.obj = load_config(config)
    configure_logging(ctx.obj.logging.normalized_level())


def _config() -> ServerConfig:
    return typer.get_current_context().obj


@app.command()
def serve(
    port: Optional[int] = typer.Option(None, "--port", help="Listen on this TCP port"),
    host: Optional[str] = typer.Option(None, "--host", help="Loopback host to bind"),
    socket: Optional[Path] = typer.Option(None, "--socket", help="Listen on a Unix socket instead"),
) -> None:
    from ..daemon.server import ConformanceServer, apply_overrides

    try:
        config = apply_overrides(_config(), port=port, host=host, socket=socket)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=2) from exc
    server = ConformanceServer(config)
    try:
        asyncio.run(server.serve_forever())
    except KeyboardInterrupt:
        pass


@app.command("templates")
def list_templates() -> None:
    """List the named key templates."""
    for name in templates.template_names():
        typer.echo(name)


@app.command()
def template(name: str = typer.Argument(..., help="Template name, e.g. AES128_GCM")) -> None:
    """Print a serialized key template as base64url."""
    try:
        typer.echo(b64e(templates.serialized_template(name)))
    except CrossTestError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def generate(
    name: str = typer.Argument(..., help="Template name"),
    as_json: bool = typer.Option(False, "--json", help="Emit the keyset as JSON instead of base64url binary"),
) -> None:
    """Generate a fresh keyset from a named template."""
    try:
        handle = from_template(templates.serialized_template(name))
    except CrossTestError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if as_json:
        typer.echo(handle.write(KeysetEncoding.JSON).decode("utf-8"))
    else:
        typer.echo(b64e(handle.write(KeysetEncoding.BINARY)))


@app.command("init-config")
def init_config(
    destination: Optional[Path] = typer.Option(None, "--destination", help="Where to write the file"),
    force: bool = typer.Option(False, "--force", help="Overwrite an existing file"),
) -> None:
    """Write the default configuration as YAML."""
    destination = destination or project_config_path()
    if destination.exists() and not force:
        typer.echo(f"{destination} already exists; use --force to overwrite", err=True)
        raise typer.Exit(code=1)
    dump_default_config(destination)
    typer.echo(f"Configuration written to {destination}")


@app.command()
def version() -> None:
    from ..version import __version__

    typer.echo(__version__)


if __name__ == "__main__":  # pragma: no cover
    app()
