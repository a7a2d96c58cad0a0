import click

from de.cli.core import resolve_workspace, workspace_label
from de.cli.ensure import Ensure
from de.cli.rendering import render_sync_report, sync_event_printer
from de.core.context import DeContext
from de.core.dirty_state import DirtyPolicy
from de.core.errors import MatchError, OrchestrationError
from de.core.git_sync import GitSyncEngine

ON_DIRTY_CHOICE = click.Choice([policy.value for policy in DirtyPolicy])


@click.command("switch")
@click.argument("branch")
@click.option("-w", "--workspace", "workspace_name", help="Workspace (default: the active one)")
@click.option(
    "--fallback",
    help="Branch for projects that lack BRANCH (default: workspace default branch, "
    "then the remote's HEAD, then main)",
)
@click.option(
    "--on-dirty",
    type=ON_DIRTY_CHOICE,
    default=DirtyPolicy.PROMPT.value,
    show_default=True,
    help="What to do with repositories that have uncommitted or unpushed work",
)
@click.pass_obj
def switch_cmd(
    ctx: DeContext,
    branch: str,
    workspace_name: str | None,
    fallback: str | None,
    on_dirty: str,
) -> None:
    """Switch every project of a workspace to a branch.

    BRANCH may be a fragment: it is matched against the branches of all
    projects, and when several match you are asked to pick one.
    """
    workspace = resolve_workspace(ctx, workspace_name)
    engine = GitSyncEngine(
        ctx.runner,
        ctx.interaction,
        on_dirty=DirtyPolicy(on_dirty),
        on_event=sync_event_printer(ctx.feedback),
    )

    ctx.feedback.info(f"Switching workspace {workspace_label(workspace)} to '{branch}'")
    try:
        report = engine.switch(workspace, branch, fallback=fallback)
    except (MatchError, OrchestrationError) as e:
        Ensure.fail(str(e))

    render_sync_report(report)
    if report.aborted:
        ctx.feedback.warning("Aborted: remaining projects were not switched")
    if report.exit_code:
        raise SystemExit(report.exit_code)
    ctx.feedback.success(f"Switched to {report.target_branch}")
