"""Main CLI application for vpsie-machine."""

from collections.abc import Callable
from pathlib import Path
from typing import Annotated

import paramiko
import typer

from vpsie_machine.cli.commands.create import run_create
from vpsie_machine.cli.commands.lifecycle import run_action, run_ip, run_state, run_url
from vpsie_machine.config.loader import get_env_overrides
from vpsie_machine.config.models import ConfigOverrides
from vpsie_machine.core.errors import DriverError
from vpsie_machine.core.logging import setup_logging
from vpsie_machine.store.record import DEFAULT_STORE_PATH, MachineStore

app = typer.Typer(
    name="vpsie-machine",
    help="Provision and manage a VPSie virtual machine",
    no_args_is_help=True,
)

MachineName = Annotated[str, typer.Argument(help="Machine name")]
ClientIdOption = Annotated[
    str, typer.Option("--vpsie-client-id", help="VPSie Client ID [env: VPSIE_CLIENT_ID]")
]
ClientSecretOption = Annotated[
    str,
    typer.Option("--vpsie-client-secret", help="VPSie Client secret [env: VPSIE_CLIENT_SECRET]"),
]


def _overrides(
    client_id: str = "",
    client_secret: str = "",
    image_id: str = "",
    offer_id: str = "",
    datacenter_id: str = "",
) -> ConfigOverrides:
    """Merge CLI flags over environment overrides (flags win)."""
    env = get_env_overrides()
    return ConfigOverrides(
        client_id=client_id or env.client_id,
        client_secret=client_secret or env.client_secret,
        image_id=image_id or env.image_id,
        offer_id=offer_id or env.offer_id,
        datacenter_id=datacenter_id or env.datacenter_id,
    )


def _run[T](func: Callable[..., T], *args: object) -> T:
    """Run a command, turning driver failures into a clean exit."""
    try:
        return func(*args)
    except (DriverError, OSError, paramiko.SSHException, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1) from e


def _store(ctx: typer.Context) -> MachineStore:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging")] = False,
    trace: Annotated[
        bool, typer.Option("--trace", help="Enable trace logging (most verbose)")
    ] = False,
    store: Annotated[
        Path,
        typer.Option(
            "--store",
            "-s",
            envvar="VPSIE_MACHINE_STORE",
            help="Directory holding machine records and keys",
        ),
    ] = DEFAULT_STORE_PATH,
) -> None:
    """vpsie-machine - VPSie machine driver."""
    setup_logging(verbose=verbose, trace=trace)
    ctx.obj = MachineStore(store)


@app.command()
def create(
    ctx: typer.Context,
    name: MachineName,
    config: Annotated[
        str,
        typer.Option("--config", "-c", help="Path to configuration file"),
    ] = "",
    client_id: ClientIdOption = "",
    client_secret: ClientSecretOption = "",
    image_id: Annotated[
        str, typer.Option("--vpsie-image-id", help="VPSie Image ID [env: VPSIE_IMAGE_ID]")
    ] = "",
    offer_id: Annotated[
        str, typer.Option("--vpsie-offer-id", help="VPSie Offer ID [env: VPSIE_OFFER_ID]")
    ] = "",
    datacenter_id: Annotated[
        str,
        typer.Option("--vpsie-datacenter-id", help="VPSie Datacenter ID [env: VPSIE_DATACENTER_ID]"),
    ] = "",
) -> None:
    """Create a machine and install its SSH key."""
    overrides = _overrides(client_id, client_secret, image_id, offer_id, datacenter_id)
    _run(run_create, _store(ctx), name, config, overrides)


@app.command()
def state(
    ctx: typer.Context,
    name: MachineName,
    client_id: ClientIdOption = "",
    client_secret: ClientSecretOption = "",
) -> None:
    """Print the machine state."""
    typer.echo(_run(run_state, _store(ctx), name, _overrides(client_id, client_secret)))


@app.command()
def ip(
    ctx: typer.Context,
    name: MachineName,
    client_id: ClientIdOption = "",
    client_secret: ClientSecretOption = "",
) -> None:
    """Print the machine IP address."""
    typer.echo(_run(run_ip, _store(ctx), name, _overrides(client_id, client_secret)))


@app.command()
def url(
    ctx: typer.Context,
    name: MachineName,
    client_id: ClientIdOption = "",
    client_secret: ClientSecretOption = "",
) -> None:
    """Print the Docker URL of a running machine."""
    typer.echo(_run(run_url, _store(ctx), name, _overrides(client_id, client_secret)))


def _register_action(command_name: str, action: str, help_text: str) -> None:
    """Register a lifecycle command that takes only a machine name and credentials."""

    def command(
        ctx: typer.Context,
        name: MachineName,
        client_id: ClientIdOption = "",
        client_secret: ClientSecretOption = "",
    ) -> None:
        _run(run_action, _store(ctx), name, action, _overrides(client_id, client_secret))

    command.__doc__ = help_text
    app.command(name=command_name)(command)


_register_action("start", "start", "Start a machine.")
_register_action("stop", "stop", "Stop a machine.")
_register_action("restart", "restart", "Restart a machine.")
_register_action("kill", "kill", "Kill a machine (same as stop).")
_register_action("rm", "remove", "Remove a machine; its SSH key pair is kept.")


if __name__ == "__main__":
    app()
