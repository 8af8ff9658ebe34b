"""bgserver CLI entrypoint.

Command-line interface for running a server under supervision, mostly useful
for trying out readiness and shutdown settings before using them in tests.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

import click
import tomli_w

if TYPE_CHECKING:
    from bgserver.adapters.process.server import ProcessServer
    from bgserver.domain.config import BgServerConfig
    from bgserver.ports.config import ConfigProvider

from bgserver.core.errors import BgServerCliError, handle_cli_errors
from bgserver.domain.connection import ConnectionDescriptor
from bgserver.domain.exceptions import BackgroundServerError
from bgserver.version import __version__

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _load_config(config_dir: Path) -> BgServerConfig:
    """Load configuration for the given directory.

    Args:
        config_dir: Directory containing bgserver.toml.

    Returns:
        BgServerConfig with merged global and local settings.
    """
    from bgserver.adapters.factory import ConfigFactory

    provider: ConfigProvider = ConfigFactory().create_config_provider()
    return provider.load(config_dir)


def _setup_logging(level: str, verbose: bool, quiet: bool) -> None:
    """Configure root logging for CLI runs."""
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    logging.basicConfig(level=getattr(logging, level), format=LOG_FORMAT)


def _parse_env_overrides(pairs: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated KEY=VALUE options.

    Raises:
        BgServerCliError: If a pair has no '=' or an empty key
    """
    env: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise BgServerCliError(
                f"Invalid environment override: {pair!r}",
                hint="Use --env KEY=VALUE",
            )
        env[key] = value
    return env


def _echo_captured(server: ProcessServer) -> None:
    """Print the captured output of a server to stderr."""
    for name, text in (("stdout", server.stdout()), ("stderr", server.stderr())):
        if text:
            click.echo(f"--- {name} ---", err=True)
            click.echo(text.rstrip("\n"), err=True)


@click.group()
@click.version_option(version=__version__, prog_name="bgserver")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--quiet",
    "-q",
    is_flag=True,
    help="Suppress non-essential output.",
)
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=Path("."),
    help="Directory containing bgserver.toml.",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, config_dir: Path) -> None:
    """bgserver - supervise a server subprocess for integration tests."""
    ctx.ensure_object(dict)
    config = _load_config(config_dir)
    _setup_logging(config.logging.level, verbose, quiet)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_dir"] = config_dir
    ctx.obj["config"] = config


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--host", default="127.0.0.1", show_default=True, help="Host the server listens on.")
@click.option("--port", type=int, default=None, help="Port to poll for readiness.")
@click.option("--scheme", default="tcp", show_default=True, help="Scheme for the printed URL.")
@click.option("--timeout", type=float, default=None, help="Readiness timeout in seconds.")
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory for captured stdout/stderr.",
)
@click.option("--env", "-e", "env_pairs", multiple=True, help="Extra KEY=VALUE for the server.")
@click.pass_context
@handle_cli_errors("run")
def run(
    ctx: click.Context,
    command: tuple[str, ...],
    host: str,
    port: int | None,
    scheme: str,
    timeout: float | None,
    log_dir: Path | None,
    env_pairs: tuple[str, ...],
) -> None:
    """Run COMMAND under supervision until it exits or Ctrl-C.

    With --port, waits until the server accepts connections and prints its
    URL. Use `--` to separate bgserver options from the command's own flags.
    """
    from bgserver.adapters.factory import ServerFactory

    config = ctx.obj["config"]
    quiet = ctx.obj.get("quiet", False)
    if timeout is not None:
        config = replace(config, readiness=replace(config.readiness, timeout=timeout))

    descriptor = ConnectionDescriptor(host, port, scheme=scheme) if port else None
    server = ServerFactory(config).create_process_server(
        command,
        descriptor,
        env=_parse_env_overrides(env_pairs) or None,
        log_dir=log_dir,
    )

    server.start()
    returncode: int | None = None
    try:
        if descriptor is not None:
            try:
                server.wait_for_init()
            except BackgroundServerError:
                _echo_captured(server)
                raise
            if not quiet:
                click.echo(f"✓ Server ready at {server.conn_url()}")
        elif not quiet:
            click.echo(f"✓ Server started (PID {server.pid})")

        returncode = server.wait()
    except KeyboardInterrupt:
        click.echo("\nInterrupted, stopping server...")
    finally:
        server.stop()

    if not quiet:
        click.echo(f"Logs: {server.log_dir}")
    if returncode:
        _echo_captured(server)
        raise BgServerCliError(
            f"Server exited with code {returncode}",
            hint=f"Full output is in {server.log_dir}",
        )


@cli.command()
def env() -> None:
    """Print the baseline environment given to supervised servers."""
    from bgserver.adapters.process.environment import default_env

    for key, value in sorted(default_env().items()):
        click.echo(f"{key}={value}")


@cli.group()
def config() -> None:
    """Manage bgserver configuration."""
    pass


@config.command(name="show")
@click.pass_context
@handle_cli_errors("config show")
def config_show(ctx: click.Context) -> None:
    """Show the effective configuration as TOML."""
    from bgserver.shared.config_io import config_to_data

    click.echo(tomli_w.dumps(config_to_data(ctx.obj["config"])).rstrip("\n"))


@config.command(name="init")
@click.option("--force", is_flag=True, help="Overwrite an existing bgserver.toml.")
@click.pass_context
@handle_cli_errors("config init")
def config_init(ctx: click.Context, force: bool) -> None:
    """Write bgserver.toml with the default settings."""
    from bgserver.domain.config import BgServerConfig
    from bgserver.shared.config_io import LOCAL_CONFIG_NAME, save_config

    path = ctx.obj["config_dir"] / LOCAL_CONFIG_NAME
    if path.exists() and not force:
        raise BgServerCliError(
            f"{path} already exists",
            hint="Use --force to overwrite it",
        )
    save_config(BgServerConfig.default(), path)
    click.echo(f"✓ Wrote {path}")


def main() -> int:
    """Main entrypoint for the CLI."""
    try:
        cli(obj={})
        return 0
    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
