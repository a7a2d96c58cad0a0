"""Application context with dependency injection."""

from dataclasses import dataclass
from pathlib import Path

import click

from de.cli.output import user_output
from de.core.global_config import ConfigStore, GlobalConfig, RealConfigStore, de_home
from de.core.interaction import ClickInteraction, Interaction
from de.core.runner import CommandRunner, DryRunCommandRunner, RealCommandRunner
from de.core.user_feedback import InteractiveFeedback, QuietFeedback, UserFeedback
from de.core.workspace import FilesystemWorkspaceStore, WorkspaceStore


@dataclass(frozen=True)
class DeContext:
    """Immutable context holding all dependencies for de operations.

    Created at CLI entry point and threaded through the application.
    Frozen to prevent accidental modification at runtime.
    """

    runner: CommandRunner
    interaction: Interaction
    feedback: UserFeedback
    config_store: ConfigStore
    workspace_store: WorkspaceStore
    global_config: GlobalConfig
    cwd: Path  # Current working directory at CLI invocation
    dry_run: bool

    @staticmethod
    def for_test(
        runner: CommandRunner | None = None,
        interaction: Interaction | None = None,
        feedback: UserFeedback | None = None,
        config_store: ConfigStore | None = None,
        workspace_store: WorkspaceStore | None = None,
        global_config: GlobalConfig | None = None,
        cwd: Path | None = None,
        dry_run: bool = False,
    ) -> "DeContext":
        """Create test context with optional pre-configured collaborators.

        Anything not given gets an empty in-memory default. When dry_run is
        set the runner is wrapped the same way production does it.

        Example:
            >>> runner = FakeCommandRunner(repos={"api": FakeRepo(local={"main"})})
            >>> ctx = DeContext.for_test(runner=runner, workspace_store=store)
        """
        from tests.fakes.interaction import FakeInteraction
        from tests.fakes.runner import FakeCommandRunner
        from tests.fakes.user_feedback import FakeUserFeedback

        from de.core.global_config import InMemoryConfigStore
        from de.core.workspace import InMemoryWorkspaceStore

        if runner is None:
            runner = FakeCommandRunner()

        if interaction is None:
            interaction = FakeInteraction()

        if feedback is None:
            feedback = FakeUserFeedback()

        if config_store is None:
            config_store = InMemoryConfigStore(config=global_config)

        if global_config is None:
            global_config = config_store.load()

        if workspace_store is None:
            workspace_store = InMemoryWorkspaceStore([])

        if dry_run:
            runner = DryRunCommandRunner(runner)

        return DeContext(
            runner=runner,
            interaction=interaction,
            feedback=feedback,
            config_store=config_store,
            workspace_store=workspace_store,
            global_config=global_config,
            cwd=cwd or Path("/test/default/cwd"),
            dry_run=dry_run,
        )


def create_context(*, dry_run: bool, quiet: bool = False) -> DeContext:
    """Create production context with real implementations.

    Args:
        dry_run: If True, wrap the command runner so that only read-only git
                 queries run and everything else is printed instead
        quiet: If True, progress messages are suppressed (warnings and
               errors are still shown)

    Returns:
        DeContext with real implementations
    """
    try:
        cwd = Path.cwd()
    except FileNotFoundError:
        user_output(click.style("Error: ", fg="red") + "Current working directory no longer exists")
        raise SystemExit(1) from None

    home = de_home()
    config_store = RealConfigStore(home)
    try:
        global_config = config_store.load()
    except ValueError as e:
        user_output(click.style("Error: ", fg="red") + str(e))
        raise SystemExit(1) from e

    runner: CommandRunner = RealCommandRunner()
    if dry_run:
        runner = DryRunCommandRunner(runner)

    feedback: UserFeedback = QuietFeedback() if quiet else InteractiveFeedback()

    return DeContext(
        runner=runner,
        interaction=ClickInteraction(),
        feedback=feedback,
        config_store=config_store,
        workspace_store=FilesystemWorkspaceStore(home / "workspaces"),
        global_config=global_config,
        cwd=cwd,
        dry_run=dry_run,
    )
