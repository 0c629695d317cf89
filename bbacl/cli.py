"""bbacl command line interface.

Commands:
    bbacl permission list WORKSPACE REPOSITORY
    bbacl permission add WORKSPACE REPOSITORY {user|group} ID {read|write|admin}
    bbacl permission remove WORKSPACE REPOSITORY [--all]
    bbacl permission update WORKSPACE REPOSITORY
    bbacl permission copy WORKSPACE SOURCE TARGET [--batch]
    bbacl default-reviewer list WORKSPACE REPOSITORY
    bbacl default-reviewer overwrite WORKSPACE REPOSITORY REVIEWERS
    bbacl version
"""

import asyncio
import logging
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape

from bbacl import __version__
from bbacl.async_client import AsyncBitbucketClient
from bbacl.client import BitbucketClient
from bbacl.config import Config, load_config
from bbacl.exceptions import BitbucketError
from bbacl.logging import configure_logging
from bbacl.operation import Operation, changes_only, make_operation_list
from bbacl.prompts import (
    ask_action,
    ask_permission_type,
    select_operations,
    select_permissions,
)
from bbacl.types.permissions import ObjectType, Permission, PermissionType
from bbacl.types.reviewers import Account, ReviewerResult

console = Console()

RESULT_HEADER = "==== RESULT ===="


def echo(line: str) -> None:
    """Print a plain line: no markup, highlighting or wrapping."""
    console.print(line, markup=False, highlight=False, soft_wrap=True)


class BbaclGroup(click.Group):
    """Group that reports API errors as a one-line message and exit code 1."""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except BitbucketError as e:
            raise click.ClickException(str(e)) from e


def cli_entrypoint() -> None:
    """Console script entry point with global error handling."""
    try:
        rv = main(standalone_mode=False)
    except click.ClickException as e:
        e.show()
        sys.exit(e.exit_code)
    except click.Abort:
        console.print("\n[yellow]Aborted[/yellow]")
        sys.exit(1)
    if isinstance(rv, int):
        sys.exit(rv)


@click.group(cls=BbaclGroup)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Config file (default: $XDG_CONFIG_HOME/bbacl/config.toml)",
)
@click.option("--username", "-u", default=None, help="Bitbucket username")
@click.option("--password", "-p", default=None, help="Bitbucket app password")
@click.option("--verbose", "-v", is_flag=True, help="Log HTTP requests")
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    username: str | None,
    password: str | None,
    verbose: bool,
) -> None:
    """Manage repository permissions and default reviewers on Bitbucket Cloud."""
    if verbose:
        configure_logging(level=logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj.setdefault("config_path", config_path)
    ctx.obj.setdefault("username", username)
    ctx.obj.setdefault("password", password)


def get_config(ctx: click.Context) -> Config:
    """Resolve settings once per invocation. Tests may preload ``ctx.obj['config']``."""
    obj = ctx.ensure_object(dict)
    if "config" not in obj:
        obj["config"] = load_config(
            path=obj.get("config_path"),
            username=obj.get("username"),
            password=obj.get("password"),
        )
    return obj["config"]


def make_client(ctx: click.Context) -> BitbucketClient:
    obj = ctx.ensure_object(dict)
    return BitbucketClient.from_config(get_config(ctx), transport=obj.get("transport"))


def make_async_client(ctx: click.Context) -> AsyncBitbucketClient:
    obj = ctx.ensure_object(dict)
    return AsyncBitbucketClient.from_config(get_config(ctx), transport=obj.get("async_transport"))


def print_permissions(permissions: Iterable[Permission]) -> None:
    echo(RESULT_HEADER)
    echo("type, id, name, permission")
    for p in permissions:
        echo(f"{p.object_type.value}, {p.object_id}, {p.object_name}, {p.permission.value}")


def print_accounts(accounts: Iterable[Account]) -> None:
    echo(RESULT_HEADER)
    echo("id, name")
    for a in accounts:
        echo(f"{a.uuid}, {a.nickname}")


def apply_and_show(
    client: BitbucketClient,
    workspace: str,
    repository: str,
    operations: list[Operation],
) -> None:
    if not operations:
        console.print("[dim]Nothing to do[/dim]")
    else:
        applied = client.permissions.update_permissions(workspace, repository, operations)
        for operation in applied:
            echo(f"Done: {operation.message()}")
    print_permissions(client.permissions.list_permissions(workspace, repository))


# =============================================================================
# permission
# =============================================================================


@main.group()
def permission() -> None:
    """List and change repository permissions."""


@permission.command("list")
@click.argument("workspace")
@click.argument("repository")
@click.pass_context
def list_permissions(ctx: click.Context, workspace: str, repository: str) -> None:
    """List permissions of a repository."""
    echo(f"List permissions for {workspace}/{repository}")
    with make_client(ctx) as client:
        print_permissions(client.permissions.list_permissions(workspace, repository))


@permission.command("add")
@click.argument("workspace")
@click.argument("repository")
@click.argument("object_type", type=click.Choice([t.value for t in ObjectType]))
@click.argument("object_id")
@click.argument("level", type=click.Choice([p.value for p in PermissionType]))
@click.pass_context
def add_permission(
    ctx: click.Context,
    workspace: str,
    repository: str,
    object_type: str,
    object_id: str,
    level: str,
) -> None:
    """Grant a permission to a user (UUID) or group (slug).

    \b
    Examples:
        bbacl permission add acme api group developers write
        bbacl permission add acme api user '{1234-abcd}' read
    """
    echo(f"Add permissions to {workspace}/{repository}")
    grant = Permission(
        object_id=object_id,
        object_name=object_id,
        object_type=ObjectType(object_type),
        permission=PermissionType(level),
    )
    with make_client(ctx) as client:
        apply_and_show(client, workspace, repository, [Operation.add(grant)])


@permission.command("remove")
@click.argument("workspace")
@click.argument("repository")
@click.option("--all", "remove_all", is_flag=True, help="Remove every permission without asking")
@click.pass_context
def remove_permissions(ctx: click.Context, workspace: str, repository: str, remove_all: bool) -> None:
    """Remove selected permissions."""
    echo(f"Remove selected permissions from {workspace}/{repository}")
    with make_client(ctx) as client:
        permissions = client.permissions.list_permissions(workspace, repository)
        operations = [Operation.remove(p) for p in permissions]
        if not remove_all:
            operations = select_operations(console, operations)
        apply_and_show(client, workspace, repository, operations)


@permission.command("update")
@click.argument("workspace")
@click.argument("repository")
@click.pass_context
def update_permissions(ctx: click.Context, workspace: str, repository: str) -> None:
    """Change the level of, or remove, selected permissions."""
    echo(f"Update selected permissions of {workspace}/{repository}")
    with make_client(ctx) as client:
        permissions = client.permissions.list_permissions(workspace, repository)
        selected = select_permissions(console, permissions)
        if not selected:
            console.print("[dim]Nothing selected[/dim]")
            return

        action = ask_action(console)
        if action == "update":
            level = ask_permission_type(console)
            operations = [Operation.update(p, level) for p in selected if p.permission != level]
        else:
            operations = [Operation.remove(p) for p in selected]

        apply_and_show(client, workspace, repository, operations)


@permission.command("copy")
@click.argument("workspace")
@click.argument("source")
@click.argument("target")
@click.option("--batch", is_flag=True, help="Apply all changes without asking")
@click.pass_context
def copy_permissions(ctx: click.Context, workspace: str, source: str, target: str, batch: bool) -> None:
    """Make TARGET's permissions match SOURCE's.

    \b
    Examples:
        bbacl permission copy acme api web
        bbacl permission copy acme api web --batch
    """
    echo(f"Copy permissions from {workspace}/{source} to {workspace}/{target}")
    with make_client(ctx) as client:
        source_permissions = client.permissions.list_permissions(workspace, source)
        target_permissions = client.permissions.list_permissions(workspace, target)

        operations = make_operation_list(source_permissions, target_permissions)
        for operation in operations:
            echo(operation.message())

        if batch:
            selected = changes_only(operations)
        else:
            selected = select_operations(console, operations)

        apply_and_show(client, workspace, target, selected)


# =============================================================================
# default-reviewer
# =============================================================================


@main.group("default-reviewer")
def default_reviewer() -> None:
    """List and overwrite default reviewers."""


@default_reviewer.command("list")
@click.argument("workspace")
@click.argument("repository")
@click.pass_context
def list_default_reviewers(ctx: click.Context, workspace: str, repository: str) -> None:
    """List default reviewers of a repository."""
    echo(f"List default reviewers for {workspace}/{repository}")
    with make_client(ctx) as client:
        print_accounts(client.default_reviewers.list(workspace, repository))


async def overwrite_reviewers(
    client: AsyncBitbucketClient,
    workspace: str,
    repository: str,
    reviewers: list[str],
) -> tuple[list[ReviewerResult], list[Account]]:
    """Remove every current default reviewer, then add ``reviewers``."""
    current = await client.default_reviewers.list(workspace, repository)
    results = await client.default_reviewers.remove_many(
        workspace, repository, [a.uuid for a in current]
    )
    results += await client.default_reviewers.add_many(workspace, repository, reviewers)
    accounts = await client.default_reviewers.list(workspace, repository)
    return results, accounts


@default_reviewer.command("overwrite")
@click.argument("workspace")
@click.argument("repository")
@click.argument("reviewers")
@click.pass_context
def overwrite_default_reviewers(ctx: click.Context, workspace: str, repository: str, reviewers: str) -> None:
    """Replace default reviewers with REVIEWERS (comma-separated usernames or UUIDs)."""
    echo(f"Overwrite default reviewers of {workspace}/{repository}")
    wanted = [r.strip() for r in reviewers.split(",") if r.strip()]

    async def run() -> tuple[list[ReviewerResult], list[Account]]:
        async with make_async_client(ctx) as client:
            return await overwrite_reviewers(client, workspace, repository, wanted)

    results, accounts = asyncio.run(run())
    print_accounts(accounts)

    failed = [r for r in results if not r.ok]
    for result in failed:
        console.print(
            f"[red]Failed to {result.action} {escape(result.reviewer)}:[/red] {escape(str(result.error))}",
            highlight=False,
        )
    if failed:
        ctx.exit(1)


# =============================================================================
# version
# =============================================================================


@main.command()
def version() -> None:
    """Print the version."""
    echo(__version__)
