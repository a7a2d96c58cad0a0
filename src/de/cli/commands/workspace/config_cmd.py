from dataclasses import replace

import click

from de.cli.core import resolve_workspace
from de.cli.ensure import Ensure
from de.cli.output import machine_output, user_output
from de.core.context import DeContext
from de.core.workspace import Workspace

DEFAULT_BRANCH_KEYS = ("default-branch", "default_branch")
ACTIVE_KEY = "active"
_TRUE_VALUES = ("true", "yes", "1", "on")
_FALSE_VALUES = ("false", "no", "0", "off")


def _default_branch(ctx: DeContext, workspace: Workspace, value: str | None, unset: bool) -> None:
    if unset:
        ctx.workspace_store.set_default_branch(workspace.name, None)
        user_output(f"Default branch removed from workspace '{workspace.name}'.")
    elif value is not None:
        ctx.workspace_store.set_default_branch(workspace.name, value)
        user_output(f"Default branch for workspace '{workspace.name}' set to '{value}'.")
    elif workspace.default_branch is not None:
        machine_output(workspace.default_branch)
    else:
        user_output(f"No default branch set for workspace '{workspace.name}'.")


def _active(ctx: DeContext, workspace: Workspace, value: str | None, unset: bool) -> None:
    is_active = ctx.global_config.active_workspace == workspace.name
    if value is None and not unset:
        machine_output("true" if is_active else "false")
        return

    if unset or value.lower() in _FALSE_VALUES:
        if is_active:
            ctx.config_store.save(replace(ctx.global_config, active_workspace=None))
        user_output(f"Workspace '{workspace.name}' is not active.")
        return

    Ensure.invariant(
        value.lower() in _TRUE_VALUES,
        f"Invalid value '{value}' for '{ACTIVE_KEY}' - Use true or false",
    )
    ctx.config_store.save(replace(ctx.global_config, active_workspace=workspace.name))
    user_output(f"Workspace '{workspace.name}' is now active.")


@click.command("config")
@click.argument("key")
@click.argument("value", required=False)
@click.option("--unset", is_flag=True, help="Remove the setting")
@click.option("-w", "--workspace", "workspace_name", help="Workspace (default: the active one)")
@click.pass_obj
def config_cmd(
    ctx: DeContext, key: str, value: str | None, unset: bool, workspace_name: str | None
) -> None:
    """Show or change a workspace setting.

    \b
    Keys:
      default-branch  Branch used by git commands when none is given
      active          Whether this is the active workspace (true/false)
    """
    Ensure.invariant(not (unset and value is not None), "Cannot combine a value with --unset")
    workspace = resolve_workspace(ctx, workspace_name)

    if key in DEFAULT_BRANCH_KEYS:
        _default_branch(ctx, workspace, value, unset)
    elif key == ACTIVE_KEY:
        _active(ctx, workspace, value, unset)
    else:
        Ensure.fail(f"Unknown property key '{key}' - Valid keys: default-branch, active")
