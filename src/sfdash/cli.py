from __future__ import annotations

import json
import logging
import os
from typing import Any, Optional

import click

from . import __version__
from .client import Client
from .config import ClientConfig
from .env_loader import load_env_files
from .logging_config import configure_logging

_logger = logging.getLogger(__name__)

# Load .env very early, so everything else sees env vars
load_env_files()


def _build_client(ctx: click.Context) -> Client:
    """Client logged in from SF_USERNAME/SF_PASSWORD or SF_SESSION_ID/SF_SERVER_URL."""
    client = Client(ctx.obj["config"])
    ctx.obj["login_result"] = client.login(
        username=os.getenv("SF_USERNAME"),
        password=os.getenv("SF_PASSWORD"),
        session_id=os.getenv("SF_SESSION_ID"),
        server_url=os.getenv("SF_SERVER_URL"),
    )
    return client


def _echo_json(data: Any, pretty: bool = True) -> None:
    click.echo(json.dumps(data, indent=2 if pretty else None, default=str))


def _run(ctx: click.Context, action) -> Any:
    try:
        return action(_build_client(ctx))
    except Exception as e:
        _logger.debug("Command failed", exc_info=True)
        click.echo(f"Error: {e}", err=True)
        raise click.Abort() from None


@click.group(
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
)
@click.version_option(__version__, "--version", prog_name="sfdash")
@click.option(
    "-v",
    "--verbose",
    "loglevel",
    flag_value=logging.INFO,
    default=None,
    help="Enable INFO logs.",
)
@click.option(
    "-vv",
    "--very-verbose",
    "loglevel",
    flag_value=logging.DEBUG,
    help="Enable DEBUG logs.",
)
@click.option("--raw-tags", is_flag=True, help="Keep wire tag names instead of snake_case keys.")
@click.option("--log-soap", is_flag=True, help="Log SOAP envelopes (needs -vv).")
@click.pass_context
def cli(ctx: click.Context, loglevel: Optional[int], raw_tags: bool, log_soap: bool) -> None:
    """Salesforce Partner SOAP API from the command line."""
    configure_logging(loglevel, log_soap=log_soap)
    _logger.debug("CLI start, version=%s", __version__)

    cfg = ClientConfig.from_env()
    if raw_tags:
        cfg = cfg.replace(tag_style="raw")
    ctx.obj = {"config": cfg.replace(log_soap=log_soap)}

    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command("login")
@click.pass_context
def cmd_login(ctx: click.Context) -> None:
    """Authenticate and show who you are logged in as."""
    client = _run(ctx, lambda c: c)
    key = client.key_name
    result = ctx.obj.get("login_result") or {}
    # Password logins nest the user info; an adopted session returns it as is.
    info = result.get(key("userInfo")) or result
    click.echo("✅  Logged in to Salesforce")
    click.echo(f"User: {info.get(key('userName'))}")
    click.echo(f"Organization: {info.get(key('organizationName'))} ({info.get(key('organizationId'))})")
    click.echo(f"Server URL: {client.session.server_url if client.session else '-'}")


@cli.command("operations")
@click.pass_context
def cmd_operations(ctx: click.Context) -> None:
    """List the operations defined by the WSDL."""
    for name in _run(ctx, lambda c: c.operations()):
        click.echo(name)


@cli.command("sobjects")
@click.pass_context
def cmd_sobjects(ctx: click.Context) -> None:
    """List all sObject names in the org."""
    for name in _run(ctx, lambda c: c.list_sobjects()):
        click.echo(name)


@cli.command("describe")
@click.argument("sobject")
@click.option("--fields", "fields_only", is_flag=True, help="Only print field names.")
@click.pass_context
def cmd_describe(ctx: click.Context, sobject: str, fields_only: bool) -> None:
    """Describe an sObject."""
    if fields_only:
        for name in _run(ctx, lambda c: c.field_list(sobject)):
            click.echo(name)
    else:
        _echo_json(_run(ctx, lambda c: c.describe(sobject)))


@cli.command("query")
@click.argument("soql")
@click.option("--all", "include_deleted", is_flag=True, help="Include deleted and archived records.")
@click.option("--pretty", is_flag=True, help="Pretty-print JSON.")
@click.pass_context
def cmd_query(ctx: click.Context, soql: str, include_deleted: bool, pretty: bool) -> None:
    """Run a SOQL query, following query locators."""
    records = _run(ctx, lambda c: list(c.query_all_iter(soql, include_deleted=include_deleted)))
    _echo_json(records, pretty)


@cli.command("find")
@click.argument("sobject")
@click.argument("record_id")
@click.option("--field", default=None, help="External id field to match instead of Id.")
@click.pass_context
def cmd_find(ctx: click.Context, sobject: str, record_id: str, field: Optional[str]) -> None:
    """Fetch one record with all fields."""
    record = _run(ctx, lambda c: c.find(sobject, record_id, field))
    if record is None:
        click.echo(f"No {sobject} found for {record_id}", err=True)
        ctx.exit(1)
    _echo_json(record)
