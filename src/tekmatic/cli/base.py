import asyncio
import contextlib
from typing import AsyncIterator, Optional

import click
from click_option_group import optgroup
from loguru import logger
from rich.console import Console
from rich.table import Table

from tekmatic.device import TekmaticController
from tekmatic.surface import OPERATIONS, ControlSurface, read_variables
from tekmatic.system import ControllerConfig, load_controller_config
from tekmatic.types import StatusSnapshot
from tekmatic.util import (
    DEFAULT_CONTROLLER,
    DEFAULT_LOGLEVEL,
    format_error_response,
    get_hw_ports,
    start_log,
)


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        if isinstance(sub_cmd, click.Group):
            click.echo(f"{prefix}└── {sub}")
            print_tree(sub_cmd, prefix + "    ", ctx)
        else:
            click.echo(f"{prefix}└── {sub}")


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


def controller_options(f):
    """Options selecting and overriding the controller configuration."""
    decorators = [
        optgroup.group("Controller"),
        optgroup.option(
            "--controller",
            "-n",
            default=DEFAULT_CONTROLLER,
            help=f'Controller configuration name (default: "{DEFAULT_CONTROLLER}")',
        ),
        optgroup.option(
            "--port",
            "-p",
            default=None,
            help="Serial port override (e.g. COM3, /dev/ttyUSB0)",
        ),
        optgroup.option(
            "--baudrate",
            "-b",
            type=int,
            default=None,
            help="Baud rate override",
        ),
        optgroup.option(
            "--timeout",
            "-t",
            type=float,
            default=None,
            help="Read timeout override in seconds",
        ),
        optgroup.group("Logging"),
        optgroup.option(
            "--log-to-file/--no-log-to-file",
            "-ltf/",
            default=False,
            help="Enable/disable logging to file (default: disabled)",
        ),
        optgroup.option(
            "--log-level",
            "-ll",
            default=DEFAULT_LOGLEVEL,
            help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR) (default: INFO)",
        ),
    ]
    for decorator in reversed(decorators):
        f = decorator(f)
    return f


def resolve_config(
    controller: str,
    port: Optional[str] = None,
    baudrate: Optional[int] = None,
    timeout: Optional[float] = None,
) -> ControllerConfig:
    try:
        config = load_controller_config(controller)
    except ValueError as e:
        raise click.UsageError(str(e))
    if port:
        config.port = port
        config.mock = False
    if baudrate is not None:
        config.baudrate = baudrate
    if timeout is not None:
        config.read_timeout = timeout
    return config


@contextlib.asynccontextmanager
async def managed_controller(
    config: ControllerConfig, slot: Optional[str] = None
) -> AsyncIterator[TekmaticController]:
    """Initialized controller, shut down on exit.

    `slot` None leaves it disconnected, "" connects the first available device,
    anything else is a slot id or serial number.
    """
    controller = TekmaticController(config)
    if not await controller.initialize(start_polling=False):
        controller.close()
        raise click.ClickException("Could not initialize the slot controller")
    try:
        if slot is not None:
            args = (slot,) if slot else ()
            result = await ControlSurface(controller).call("Connect", *args)
            if result != 0:
                raise click.ClickException(
                    f"Connect to {slot or 'first device'} failed ({result})"
                )
        yield controller
    finally:
        await controller.shutdown()


def _setup_logging(log_to_file: bool, log_level: str) -> None:
    start_log(log_to_file=log_to_file, log_to_stdout=True, log_level=log_level)


def _slots_table(snapshot: StatusSnapshot) -> Table:
    table = Table(title=f"Slots ({snapshot.device_count} device(s))")
    table.add_column("Slot", justify="right")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Serial")
    table.add_column("Present")
    for slot in snapshot.slots:
        marker = "[green]+[/green]" if slot.present else "[red]-[/red]"
        connected = snapshot.is_connected and slot.slot_id == snapshot.connected_slot
        name = f"[bold]{slot.name}[/bold]" if connected else slot.name
        table.add_row(str(slot.slot_id), name, slot.type, slot.serial, marker)
    return table


def _status_table(snapshot: StatusSnapshot) -> Table:
    table = Table(title="Status", show_header=False)
    table.add_column("Variable")
    table.add_column("Value")
    for name, value in read_variables(snapshot).items():
        if name.startswith("Slot"):
            continue
        table.add_row(name, str(value))
    return table


@click.group()
@tree_option
def cli():
    """tekmatic - multi-slot incubator/shaker controller tools.

    - Discover slot modules and their serial numbers

    - Call controller operations (connect, set temperature, shake, clamp)

    - Watch live status
    """
    pass


@cli.command()
def ports():
    """List all available COM ports."""
    ports = get_hw_ports()

    click.echo("\nAvailable COM ports:")
    click.echo("-------------------")

    if not ports:
        click.echo("No COM ports found")
        click.echo("")
        return

    for port, info in ports.items():
        click.echo(f"\nPort: {port}")
        if len(info) >= 2:
            description, hwid = info
            click.echo(f"Description: {description}")
            click.echo(f"Hardware ID: {hwid}")

    click.echo("")


@cli.command()
@controller_options
def discover(controller, port, baudrate, timeout, log_to_file, log_level):
    """Discover the devices in all slots of the controller."""
    _setup_logging(log_to_file, log_level)
    config = resolve_config(controller, port, baudrate, timeout)

    async def run():
        async with managed_controller(config) as ctrl:
            return ctrl.read_model.snapshot()

    snapshot = asyncio.run(run())
    Console().print(_slots_table(snapshot))


@cli.command()
@click.argument("operation", type=click.Choice(sorted(OPERATIONS)))
@click.argument("args", nargs=-1)
@click.option(
    "--slot",
    "-s",
    default=None,
    help="Connect to this slot id or serial number before the call",
)
@controller_options
def call(
    operation, args, slot, controller, port, baudrate, timeout, log_to_file, log_level
):
    """Invoke a controller operation and print its result.

    OPERATION: Operation name, e.g. SetTargetTemperature
    ARGS: Operation arguments, e.g. `2 37.5` (slot 2, 37.5 degC)
    """
    _setup_logging(log_to_file, log_level)
    config = resolve_config(controller, port, baudrate, timeout)

    async def run():
        async with managed_controller(config, slot) as ctrl:
            return await ControlSurface(ctrl).call(operation, *args)

    result = asyncio.run(run())
    click.echo(f"{operation}: {result}")
    if isinstance(result, int) and result < 0:
        raise click.exceptions.Exit(1)


@cli.command()
@click.option(
    "--slot",
    "-s",
    default=None,
    help="Slot id or serial number to connect to (first device if omitted)",
)
@controller_options
def status(slot, controller, port, baudrate, timeout, log_to_file, log_level):
    """Connect, run one status poll and show the published values."""
    _setup_logging(log_to_file, log_level)
    config = resolve_config(controller, port, baudrate, timeout)

    async def run():
        async with managed_controller(config, slot or "") as ctrl:
            return await ctrl.poll()

    snapshot = asyncio.run(run())
    console = Console()
    console.print(_status_table(snapshot))
    console.print(_slots_table(snapshot))


@cli.command()
@click.option(
    "--slot",
    "-s",
    default=None,
    help="Slot id or serial number to connect to (first device if omitted)",
)
@click.option(
    "--ticks",
    "-k",
    type=int,
    default=10,
    help="Number of poll ticks to run (default: 10)",
)
@click.option(
    "--interval",
    "-i",
    type=float,
    default=None,
    help="Seconds between ticks (default: from configuration)",
)
@controller_options
def monitor(
    slot, ticks, interval, controller, port, baudrate, timeout, log_to_file, log_level
):
    """Connect and print live values for a number of poll ticks."""
    if ticks < 1:
        raise click.BadParameter("ticks must be >= 1")
    _setup_logging(log_to_file, log_level)
    config = resolve_config(controller, port, baudrate, timeout)
    if interval is not None:
        config.poll_interval = interval
    console = Console()

    async def run():
        async with managed_controller(config, slot or "") as ctrl:
            for _ in range(ticks):
                s = await ctrl.poll()
                console.print(
                    f"slot {s.connected_slot}: "
                    f"{s.temperature:.1f} / {s.target_temperature:.1f} degC, "
                    f"{s.shaking_rpm} rpm{' (shaking)' if s.is_shaking else ''}, "
                    f"clamp {'closed' if s.is_clamp_closed else 'open'}"
                )
                await asyncio.sleep(config.poll_interval)

    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Monitor interrupted")


@cli.group()
@tree_option
def config():
    """Manage controller configurations."""
    pass


@config.command(name="list")
def list_configs():
    """List available controller configurations."""
    from tekmatic.system import list_controller_configs

    controllers = list_controller_configs()

    click.echo("\nAvailable controller configurations:")
    click.echo("-----------------------------------")

    if not controllers:
        click.echo("No controller configurations found")
        click.echo("")
        return

    package_controllers = [n for n, src in controllers.items() if src == "package"]
    user_controllers = [n for n, src in controllers.items() if src == "user"]

    if package_controllers:
        click.echo("\nPackage defaults:")
        for name in sorted(package_controllers):
            click.echo(f"  - {name}")

    if user_controllers:
        click.echo("\nUser configurations:")
        for name in sorted(user_controllers):
            click.echo(f"  - {name}")
    click.echo("")


@config.command()
@click.argument("name")
def show(name: str):
    """Show a controller configuration.

    NAME: Name of controller configuration to show
    """
    try:
        controller_config = load_controller_config(name)
    except ValueError:
        click.echo(f"Error: {format_error_response()}", err=True)
        raise click.exceptions.Exit(1)
    click.echo(f"[{controller_config.name}]")
    for key, value in controller_config.to_section().items():
        click.echo(f"{key} = {value}")


@config.command()
@click.argument("name")
def install(name: str):
    """Install a package controller config to user directory.

    NAME: Name of controller configuration to install
    """
    from tekmatic.system import install_controller_config

    try:
        path = install_controller_config(name)
        click.echo(f"Installed controller configuration '{name}' to {path}")
    except (FileNotFoundError, ValueError):
        click.echo(f"Error: {format_error_response()}", err=True)
        raise click.exceptions.Exit(1)
