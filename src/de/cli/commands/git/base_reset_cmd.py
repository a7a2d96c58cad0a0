import click

from de.cli.commands.git.switch_cmd import ON_DIRTY_CHOICE
from de.cli.core import resolve_workspace, workspace_label
from de.cli.ensure import Ensure
from de.cli.rendering import render_sync_report, sync_event_printer
from de.core.context import DeContext
from de.core.dirty_state import DirtyPolicy
from de.core.errors import OrchestrationError
from de.core.git_sync import GitSyncEngine


@click.command("base-reset")
@click.argument("branch", required=False)
@click.option("-w", "--workspace", "workspace_name", help="Workspace (default: the active one)")
@click.option(
    "--on-dirty",
    type=ON_DIRTY_CHOICE,
    default=DirtyPolicy.PROMPT.value,
    show_default=True,
    help="What to do with repositories that have uncommitted or unpushed work",
)
@click.pass_obj
def base_reset_cmd(
    ctx: DeContext, branch: str | None, workspace_name: str | None, on_dirty: str
) -> None:
    """Reset every project to a clean copy of its base branch.

    The base branch is BRANCH, else the workspace default branch, else the
    remote's HEAD branch, else main. Local commits and untracked files are
    discarded unless you choose to stash, push or skip.
    """
    workspace = resolve_workspace(ctx, workspace_name)
    engine = GitSyncEngine(
        ctx.runner,
        ctx.interaction,
        on_dirty=DirtyPolicy(on_dirty),
        on_event=sync_event_printer(ctx.feedback),
    )

    ctx.feedback.info(f"Resetting workspace {workspace_label(workspace)} to its base branch")
    try:
        report = engine.base_reset(workspace, branch)
    except OrchestrationError as e:
        Ensure.fail(str(e))

    render_sync_report(report)
    if report.aborted:
        ctx.feedback.warning("Aborted: remaining projects were not reset")
    if report.exit_code:
        raise SystemExit(report.exit_code)
    ctx.feedback.success("Base reset complete")
