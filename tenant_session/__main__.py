"""CLI entry point for Tenant Session."""
import asyncio
import logging
import sys
from typing import Callable, Optional

import click

from .conf import SessionConfig, generate_master_key
from .exceptions import SecretStoreError
from .manager import Outcome, SessionManager
from .presenter import NOT_SET, mask, placeholder, summary
from .record import encode_pretty
from .storage import FileSecretStore, FileStateStore
from .validators import Validation, validate_token, validate_url
from .version import __version__


def _build_manager() -> SessionManager:
    config = SessionConfig.from_env()
    return SessionManager(
        secrets=FileSecretStore(config.secrets_path),
        state=FileStateStore(config.state_path),
        config=config,
    )


def _manager(ctx: click.Context) -> SessionManager:
    """Return the manager from context, building the file-backed one lazily."""
    if ctx.obj.get("manager") is None:
        try:
            ctx.obj["manager"] = _build_manager()
        except ValueError as err:
            raise click.ClickException(str(err)) from err
    return ctx.obj["manager"]


def _current(manager: SessionManager):
    """Load the stored record for prompt defaults."""
    try:
        current, _ = asyncio.run(manager.load())
    except SecretStoreError as err:
        raise click.ClickException(str(err)) from err
    return current


def _prompt_check(check: Callable[[str], Validation]) -> Callable[[str], str]:
    """Wrap a validator as a click ``value_proc`` that re-prompts on rejection."""
    def proc(value: str) -> str:
        result = check(value)
        if not result:
            raise click.BadParameter(f"{result.field} {result.reason}")
        return value.strip()
    return proc


def _fail(outcome: Outcome, prefix: str) -> None:
    click.echo(f"Error: {prefix}: {outcome.error}", err=True)
    sys.exit(1)


@click.group()
@click.version_option(version=__version__, prog_name="tenant-session")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Tenant Session - manage the stored access token and tenant URL."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(name)s] %(levelname)s %(message)s",
    )
    if not isinstance(ctx.obj, dict):
        ctx.obj = {"manager": ctx.obj}


@cli.command()
@click.option("--full", is_flag=True, help="Print the whole record as JSON.")
@click.pass_context
def show(ctx: click.Context, full: bool) -> None:
    """Show the current access token (masked) and tenant URL."""
    outcome = asyncio.run(_manager(ctx).get_session())
    if not outcome.success:
        _fail(outcome, "Failed to get accessToken")
    if full:
        click.echo(encode_pretty(outcome.record))
    else:
        click.echo(summary(outcome.record))


@cli.command("set-token")
@click.argument("token", required=False)
@click.pass_context
def set_token(ctx: click.Context, token: Optional[str]) -> None:
    """Update only the access token, keeping tenant URL and scopes."""
    manager = _manager(ctx)
    if token is None:
        current = _current(manager)
        click.echo(placeholder(current))
        token = click.prompt(
            "New accessToken",
            hide_input=True,
            value_proc=_prompt_check(validate_token),
        )
    outcome = asyncio.run(manager.update_access_token(token))
    if not outcome.success:
        _fail(outcome, "Failed to update accessToken")
    click.echo("accessToken updated successfully!")
    click.echo(encode_pretty(outcome.record.model_copy(
        update={"access_token": mask(outcome.record.access_token)}
    )))


@cli.command("set-session")
@click.option("--tenant-url", default=None, help="New tenant URL.")
@click.argument("token", required=False)
@click.pass_context
def set_session(ctx: click.Context, tenant_url: Optional[str], token: Optional[str]) -> None:
    """Update both the tenant URL and the access token."""
    manager = _manager(ctx)
    if tenant_url is None or token is None:
        current = _current(manager)
        if tenant_url is None:
            tenant_url = click.prompt(
                "tenantURL",
                default=current.tenant_url or manager.config.default_tenant_url,
                value_proc=_prompt_check(validate_url),
            )
        if token is None:
            click.echo(f"current: {mask(current.access_token)}")
            token = click.prompt(
                "accessToken",
                hide_input=True,
                value_proc=_prompt_check(validate_token),
            )
    outcome = asyncio.run(manager.update_session(tenant_url, token))
    if not outcome.success:
        _fail(outcome, "Failed to update sessions data")
    click.echo("Sessions data updated successfully!")
    click.echo(summary(outcome.record))


@cli.command("rotate-device")
@click.pass_context
def rotate_device(ctx: click.Context) -> None:
    """Generate a new device identifier."""
    manager = _manager(ctx)
    previous = asyncio.run(manager.device_id())
    outcome = asyncio.run(manager.rotate_device_id())
    if not outcome.success:
        _fail(outcome, "Failed to rotate device identifier")
    click.echo(f"previous: {previous or NOT_SET}")
    click.echo(f"sessionId updated: {outcome.value}")
    if outcome.reload_required:
        click.echo("Restart the host application for the new value to take effect.")


@cli.command("generate-key")
def generate_key() -> None:
    """Print a new base64 master key for SESSION_MASTER_KEY_v{N}."""
    click.echo(generate_master_key())


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
