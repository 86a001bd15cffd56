"""Command line interface for tgcli."""

import json
import logging
import signal
import sys
from pathlib import Path
from typing import NoReturn, Optional

import click
from click.core import ParameterSource
from rich.console import Console
from rich.table import Table

from . import __version__
from .api_clients.base_client import APIClientError, AuthenticationError, NetworkError
from .api_clients.cloud_client import CloudAPIClient
from .api_clients.server_client import ServerAdminClient
from .config import (
    AliasNotFoundError,
    ConfigError,
    ConfigManager,
    CredentialResolver,
    ServerCredentials,
    TokenStore,
    mask_password,
    resolve_config_dir,
)
from .constants import (
    CONFIG_DIR_ENV,
    DEFAULT_GS_PORT,
    DEFAULT_HOST,
    DEFAULT_PASSWORD,
    DEFAULT_REST_PORT,
    DEFAULT_USER,
    SUPPORT_LINKS,
)
from .gsql.exceptions import (
    CredentialRejectedError,
    GSQLError,
    GSQLTransportError,
    IncompatibleVersionError,
)
from .gsql.session import GSQLSession
from .gsql.shell import GSQLShell
from .models import MachineConfig
from .utils.exception_logger import ExceptionLogger

logger = logging.getLogger(__name__)
console = Console()

# Update checks are not implemented; ``tg version`` reports this value.
AVAILABLE_VERSION = "N/A"

SERVER_FLAGS = ("host", "user", "password", "gs_port", "rest_port")


def install_shutdown_handler() -> None:
    """Exit on SIGINT/SIGTERM with a farewell, without waiting for requests."""

    def _handler(signum, frame):
        click.echo("\nTerminating tgcli, Good Bye!")
        sys.exit(0)

    signal.signal(signal.SIGINT, _handler)
    signal.signal(signal.SIGTERM, _handler)


def _exit_with_error(
    message: str, error: Optional[BaseException] = None, hint: Optional[str] = None
) -> NoReturn:
    console.print(f"❌ {message}", style="red", markup=False, soft_wrap=True)
    if hint:
        console.print(hint, style="dim", markup=False)
    if error is not None:
        exception_logger = ExceptionLogger.get_instance()
        if exception_logger:
            exception_logger.log_exception(error, context={"message": message})
    sys.exit(1)


def _config_manager(ctx: click.Context) -> ConfigManager:
    obj = ctx.find_object(dict)
    manager = obj.get("config_manager")
    if manager is None:
        manager = ConfigManager(obj.get("config_dir"))
        obj["config_manager"] = manager
    try:
        manager.load()
    except ConfigError as e:
        _exit_with_error(str(e), e, hint="💡 Fix or remove the configuration file")
    return manager


def _transport(ctx: click.Context):
    return ctx.find_object(dict).get("transport")


def _resolve_server(
    ctx: click.Context,
    alias: Optional[str],
    host: str,
    user: str,
    password: str,
    gs_port: str,
    rest_port: str = DEFAULT_REST_PORT,
) -> ServerCredentials:
    """Resolve credentials from ``--alias``, the default alias or flags."""
    config_manager = _config_manager(ctx)

    if not alias:
        explicit = any(
            ctx.get_parameter_source(name)
            in (ParameterSource.COMMANDLINE, ParameterSource.ENVIRONMENT)
            for name in SERVER_FLAGS
            if name in ctx.params
        )
        default_alias = config_manager.config.default
        if default_alias and not explicit:
            logger.debug(f"Using default alias {default_alias}")
            alias = default_alias

    try:
        return CredentialResolver(config_manager).resolve(
            alias, host, user, password, gs_port, rest_port
        )
    except AliasNotFoundError as e:
        console.print(str(e), markup=False)
        sys.exit(1)


def server_options(func):
    """Shared connection flags for ``tg server`` commands."""
    func = click.option(
        "--gsPort", "gs_port", default=DEFAULT_GS_PORT, help="GSQL Port"
    )(func)
    func = click.option("--host", default=DEFAULT_HOST, help="TigerGraph host")(func)
    func = click.option(
        "--password", "-p", default=DEFAULT_PASSWORD, help="TigerGraph password"
    )(func)
    func = click.option(
        "--user", "-u", default=DEFAULT_USER, help="TigerGraph user"
    )(func)
    func = click.option("--alias", "-a", help="TigerGraph server alias to use")(func)
    return func


@click.group(invoke_without_command=True)
@click.option("--debug", "-d", is_flag=True, help="Enable debug mode")
@click.option(
    "--config-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar=CONFIG_DIR_ENV,
    help="Configuration directory (default: ~/.tgcli)",
)
@click.pass_context
def cli(ctx, debug: bool, config_dir: Optional[Path]):
    """TigerGraph CLI tool for cloud and server management.

    \b
    Manage TigerGraph Cloud instances, open a GSQL shell on a server,
    start/stop services and keep server aliases in ~/.tgcli/config.yml.

    \b
    EXAMPLES:
      tg cloud login
      tg cloud list --output json
      tg conf add --alias prod --host https://prod.example.com
      tg server gsql --alias prod
      tg server services --ops stop
    """
    ctx.ensure_object(dict)

    logging.basicConfig(
        level=logging.WARNING, format="%(levelname)s:%(name)s:%(message)s"
    )
    logging.getLogger().setLevel(logging.DEBUG if debug else logging.WARNING)
    if not debug:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    resolved_dir = resolve_config_dir(config_dir)
    ctx.obj["config_dir"] = resolved_dir
    ctx.obj["debug"] = debug
    ExceptionLogger.initialize(resolved_dir)

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
def version():
    """Show version information."""
    console.print("TigerGraph CLI")
    console.print(f"  Version Installed: {__version__}")
    console.print(f"  Version Available: {AVAILABLE_VERSION}")
    console.print("Support:")
    for name, url in SUPPORT_LINKS.items():
        console.print(f"   {name}: {url}")
    console.print("Copyright (c) 2014-2024 TigerGraph. All rights reserved.")


# ---------------------------------------------------------------------------
# tg cloud
# ---------------------------------------------------------------------------


@cli.group("cloud")
@click.pass_context
def cloud_group(ctx):
    """TigerGraph Cloud operations.

    Manage TigerGraph Cloud instances including login, start, stop,
    terminate, archive and list operations.
    """
    pass


def _cloud_client(ctx: click.Context) -> CloudAPIClient:
    config_dir = ctx.find_object(dict)["config_dir"]
    return CloudAPIClient(TokenStore(config_dir), transport=_transport(ctx))


@cloud_group.command("login")
@click.option("--email", "-e", help="Email address for tgcloud.io")
@click.option("--password", "-p", help="Password for tgcloud.io")
@click.option(
    "--save",
    "-s",
    type=click.Choice(["y", "n"]),
    default="n",
    help="Save credentials (y/n)",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["stdout", "json"]),
    default="stdout",
    help="Output format (stdout/json)",
)
@click.pass_context
def cloud_login(
    ctx, email: Optional[str], password: Optional[str], save: str, output: str
):
    """Login to tgcloud.io."""
    if not email:
        email = click.prompt("What is your tgcloud email?", type=str).strip()
    if not password:
        password = click.prompt("What is your tgcloud password?", hide_input=True)

    try:
        with _cloud_client(ctx) as client:
            if output == "json":
                bearer_token = client.login(email, password)
            else:
                with console.status("Logging into your account..."):
                    bearer_token = client.login(email, password)
    except (AuthenticationError, NetworkError, APIClientError) as e:
        if output == "json":
            click.echo(json.dumps({"error": True, "message": "Login failed"}))
            sys.exit(1)
        _exit_with_error(
            str(e), e, hint="💡 Check your email and password are correct"
        )

    if save == "y":
        _config_manager(ctx).set_tgcloud_credentials(email, password)

    if output == "json":
        click.echo(
            json.dumps(
                {"error": False, "message": "Login successful", "token": bearer_token}
            )
        )
    else:
        console.print("Login Successful! 😊", style="green")


def _run_machine_operation(ctx: click.Context, action: str, machine_id: str) -> None:
    try:
        with _cloud_client(ctx) as client:
            with console.status(f"Requesting {action} of {machine_id}..."):
                message = client.machine_operation(action, machine_id)
    except AuthenticationError as e:
        _exit_with_error(
            f"tgcloud response: {e}", e, hint="💡 Login again with 'tg cloud login'"
        )
    except (NetworkError, APIClientError) as e:
        _exit_with_error(f"Error: {e}", e)

    console.print(f"tgcloud response: {message}", markup=False)


def _machine_id_option(func):
    return click.option(
        "--id", "-i", "machine_id", required=True, help="TGCloud Machine ID"
    )(func)


@cloud_group.command("start")
@_machine_id_option
@click.pass_context
def cloud_start(ctx, machine_id: str):
    """Start a tgcloud instance."""
    _run_machine_operation(ctx, "start", machine_id)


@cloud_group.command("stop")
@_machine_id_option
@click.pass_context
def cloud_stop(ctx, machine_id: str):
    """Stop a tgcloud instance."""
    _run_machine_operation(ctx, "stop", machine_id)


@cloud_group.command("terminate")
@_machine_id_option
@click.pass_context
def cloud_terminate(ctx, machine_id: str):
    """Terminate a tgcloud instance."""
    _run_machine_operation(ctx, "terminate", machine_id)


@cloud_group.command("archive")
@_machine_id_option
@click.pass_context
def cloud_archive(ctx, machine_id: str):
    """Archive a tgcloud instance."""
    _run_machine_operation(ctx, "archive", machine_id)


@cloud_group.command("list")
@click.option(
    "--activeonly",
    "-a",
    type=click.Choice(["y", "n"]),
    default="y",
    help="Hide terminated servers (y/n)",
)
@click.option(
    "--output",
    "-o",
    type=click.Choice(["stdout", "json"]),
    default="stdout",
    help="Output format (stdout/json)",
)
@click.pass_context
def cloud_list(ctx, activeonly: str, output: str):
    """List all tgcloud instances."""
    try:
        with _cloud_client(ctx) as client:
            machines = client.list_machines(active_only=activeonly == "y")
    except AuthenticationError as e:
        if output == "json":
            click.echo(json.dumps({"error": True, "message": "Re-Login to tgcloud"}))
            sys.exit(1)
        _exit_with_error(str(e), e, hint="💡 Login again with 'tg cloud login'")
    except (NetworkError, APIClientError) as e:
        _exit_with_error(f"Failed to list machines: {e}", e)

    if output == "json":
        click.echo(
            json.dumps({"error": False, "result": [m.to_dict() for m in machines]})
        )
        return

    table = Table(title="tgcloud solutions")
    table.add_column("ID", style="cyan")
    table.add_column("Machine")
    table.add_column("Solution")
    table.add_column("Status", style="green")
    for machine in machines:
        table.add_row(machine.id, machine.name, machine.tag, machine.state)
    console.print(table)


@cloud_group.command("create")
def cloud_create():
    """Create a tgcloud instance."""
    console.print(
        "tgcli Create Machine: 🚧 Work in progress 🚧 will be in next release 🙏 🚀 !"
    )


# ---------------------------------------------------------------------------
# tg server
# ---------------------------------------------------------------------------


@cli.group("server")
@click.pass_context
def server_group(ctx):
    """TigerGraph Server operations.

    Open a GSQL terminal, prepare backups and start/stop services.
    """
    pass


@server_group.command("gsql")
@server_options
@click.pass_context
def server_gsql(
    ctx, alias: Optional[str], user: str, password: str, host: str, gs_port: str
):
    """Execute a GSQL terminal."""
    credentials = _resolve_server(ctx, alias, host, user, password, gs_port)

    with GSQLSession(credentials, transport=_transport(ctx)) as session:
        try:
            session.login()
        except CredentialRejectedError as e:
            _exit_with_error(
                f"Error logging in to TigerGraph: {e}",
                e,
                hint="💡 Check your username and password are correct",
            )
        except IncompatibleVersionError as e:
            _exit_with_error(
                f"Error logging in to TigerGraph: {e}",
                e,
                hint="💡 The server runs a GSQL version this client does not know",
            )
        except GSQLTransportError as e:
            _exit_with_error(
                f"Error logging in to TigerGraph: {e}",
                e,
                hint="💡 Check the host and GSQL port are reachable",
            )
        except GSQLError as e:
            _exit_with_error(f"Error logging in to TigerGraph: {e}", e)

        console.print(
            f"Connected to TigerGraph at {credentials.gsql_endpoint}", markup=False
        )
        GSQLShell(session, console=console).run()


@server_group.command("backup")
@server_options
@click.option("--restPort", "rest_port", default=DEFAULT_REST_PORT, help="REST Port")
@click.option(
    "--type",
    "-t",
    "backup_type",
    type=click.Choice(["ALL", "SCHEMA", "DATA"], case_sensitive=False),
    default="ALL",
    help="Backup type (ALL/SCHEMA/DATA)",
)
@click.pass_context
def server_backup(
    ctx,
    alias: Optional[str],
    user: str,
    password: str,
    host: str,
    gs_port: str,
    rest_port: str,
    backup_type: str,
):
    """Backup a TigerGraph server."""
    credentials = _resolve_server(ctx, alias, host, user, password, gs_port, rest_port)

    try:
        with ServerAdminClient(credentials, transport=_transport(ctx)) as client:
            client.login()
            plan = client.backup_plan(backup_type)
    except AuthenticationError as e:
        _exit_with_error(
            f"Error logging in: {e}", e, hint="💡 Check your username and password"
        )
    except (NetworkError, APIClientError) as e:
        _exit_with_error(f"Backup preparation failed: {e}", e)

    console.print(
        f"Starting backup with type: {plan.backup_type} {plan.option}".rstrip()
    )
    console.print(f"Using TigerGraph path: {plan.tigergraph_path}", markup=False)


@server_group.command("services")
@server_options
@click.option(
    "--ops",
    type=click.Choice(["start", "stop"]),
    default="start",
    help="Operation (start/stop)",
)
@click.pass_context
def server_services(
    ctx,
    alias: Optional[str],
    user: str,
    password: str,
    host: str,
    gs_port: str,
    ops: str,
):
    """Start/Stop GPE/GSE/RESTPP Services."""
    credentials = _resolve_server(ctx, alias, host, user, password, gs_port)

    try:
        with ServerAdminClient(
            credentials, timeout=30.0, transport=_transport(ctx)
        ) as client:
            with console.status(f"Requesting services {ops}..."):
                client.login()
                message = client.services(ops)
    except AuthenticationError as e:
        _exit_with_error(f"Error logging in: {e}", e)
    except (NetworkError, APIClientError) as e:
        _exit_with_error(str(e), e)

    console.print(message, markup=False)


# ---------------------------------------------------------------------------
# tg conf
# ---------------------------------------------------------------------------


@cli.group("conf")
@click.pass_context
def conf_group(ctx):
    """Configuration management.

    Manage server aliases and tgcloud credentials.
    """
    pass


def _validate_new_alias(ctx: click.Context, param, value: str) -> str:
    value = (value or "").strip()
    if not value:
        raise click.BadParameter("Alias is required")
    if _config_manager(ctx).has_machine(value):
        raise click.BadParameter(f"Alias '{value}' already exists")
    return value


@conf_group.command("add")
@click.option(
    "--alias",
    "-a",
    prompt="What is your machine alias?",
    callback=_validate_new_alias,
    help="Server alias name",
)
@click.option(
    "--host",
    default=DEFAULT_HOST,
    prompt="What is your machine address?",
    help="TigerGraph host",
)
@click.option(
    "--user",
    "-u",
    default=DEFAULT_USER,
    prompt="What is your machine user?",
    help="TigerGraph user",
)
@click.option("--password", "-p", help="TigerGraph password")
@click.option(
    "--gsPort",
    "gs_port",
    default=DEFAULT_GS_PORT,
    prompt="What is your machine gsPort?",
    help="GSQL Port",
)
@click.option(
    "--restPort",
    "rest_port",
    default=DEFAULT_REST_PORT,
    prompt="What is your machine restPort?",
    help="REST Port",
)
@click.option(
    "--default",
    "-d",
    "make_default",
    type=click.Choice(["y", "n"]),
    default="n",
    prompt="Would you like to set this machine as default?",
    help="Set as default alias (y/n)",
)
@click.pass_context
def conf_add(
    ctx,
    alias: str,
    host: str,
    user: str,
    password: Optional[str],
    gs_port: str,
    rest_port: str,
    make_default: str,
):
    """Add server configuration."""
    if password is None:
        password = click.prompt(
            "What is your machine password?",
            default=DEFAULT_PASSWORD,
            hide_input=True,
            show_default=False,
        )

    machine = MachineConfig(
        host=host, user=user, password=password, gs_port=gs_port, rest_port=rest_port
    )

    try:
        _config_manager(ctx).add_machine(
            alias, machine, make_default=make_default == "y"
        )
    except ConfigError as e:
        _exit_with_error(f"Error saving config: {e}", e)

    if make_default == "y":
        console.print(f"Setting up the alias {alias} as default: success", markup=False)
    console.print(f"Saving alias {alias}: success", markup=False)


@conf_group.command("delete")
@click.option(
    "--alias",
    "-a",
    prompt="What is the machine alias to delete?",
    help="Server alias to delete",
)
@click.pass_context
def conf_delete(ctx, alias: str):
    """Delete server configuration."""
    alias = alias.strip()
    config_manager = _config_manager(ctx)

    if not config_manager.has_machine(alias):
        console.print("Alias not found!")
        sys.exit(1)

    if config_manager.config.default == alias:
        if not click.confirm(
            "⚠️  You are about to delete the default alias, proceed?", default=False
        ):
            console.print("Aborting...")
            return

    try:
        config_manager.delete_machine(alias)
    except ConfigError as e:
        _exit_with_error(f"Error saving config: {e}", e)

    console.print("Alias deleted!")


@conf_group.command("list")
@click.pass_context
def conf_list(ctx):
    """List all configurations."""
    config = _config_manager(ctx).config

    console.print("======= TGCloud Account ======")
    if config.tgcloud.is_configured:
        console.print(f"tgcloud username: {config.tgcloud.user}", markup=False)
        console.print(
            f"tgcloud password: {mask_password(config.tgcloud.password)}", markup=False
        )
    else:
        console.print("tgcloud user not set. Use: tg conf tgcloud")

    console.print("======= TigerGraph Instances ======")
    if not config.machines:
        console.print("No conf available. Use: tg conf add")
        return

    for alias, machine in config.machines.items():
        default_tag = " (default)" if config.default == alias else ""
        console.print(f"Machine: alias = {alias}{default_tag}", markup=False)
        console.print(f"   host: {machine.host}", markup=False)
        console.print(f"   user: {machine.user}", markup=False)
        console.print(f"   password: {mask_password(machine.password)}", markup=False)
        console.print(f"   GSQL Port: {machine.gs_port}")
        console.print(f"   REST Port: {machine.rest_port}")
        console.print()


@conf_group.command("tgcloud")
@click.option("--email", "-e", help="TGCloud email")
@click.option("--password", "-p", help="TGCloud password")
@click.pass_context
def conf_tgcloud(ctx, email: Optional[str], password: Optional[str]):
    """Configure TGCloud credentials."""
    if not email:
        email = click.prompt("What is your tgcloud email?", type=str).strip()
    if not password:
        password = click.prompt("What is your tgcloud password?", hide_input=True)

    if not email or not password:
        _exit_with_error("Email and password are required")

    console.print("Trying your credentials...")
    try:
        with _cloud_client(ctx) as client:
            client.login(email, password)
    except (AuthenticationError, NetworkError, APIClientError) as e:
        _exit_with_error(
            str(e), e, hint="💡 Check your email and password are correct"
        )

    try:
        _config_manager(ctx).set_tgcloud_credentials(email, password)
    except ConfigError as e:
        _exit_with_error(f"Error saving config: {e}", e)

    console.print("Login Successful! 😊", style="green")
    console.print("Credentials saved to configuration")


def main() -> None:
    """Console script entry point."""
    install_shutdown_handler()
    cli(obj={})


if __name__ == "__main__":
    main()
