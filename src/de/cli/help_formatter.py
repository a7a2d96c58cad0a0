"""Custom Click help formatter for organized command display."""

import click


class GroupedCommandGroup(click.Group):
    """Click Group that organizes commands into sections in help output.

    - Services: bring workspaces up and down, inspect their order
    - Command Groups: git and workspace subcommands
    """

    def format_commands(self, ctx: click.Context, formatter: click.HelpFormatter) -> None:
        """Format commands into organized sections."""
        commands = []
        for subcommand in self.list_commands(ctx):
            cmd = self.get_command(ctx, subcommand)
            if cmd is None or cmd.hidden:
                continue
            commands.append((subcommand, cmd))

        if not commands:
            return

        service_cmds = []
        group_cmds = []
        for name, cmd in commands:
            if isinstance(cmd, click.Group):
                group_cmds.append((name, cmd))
            else:
                service_cmds.append((name, cmd))

        if service_cmds:
            with formatter.section("Services"):
                self._format_command_list(formatter, service_cmds)

        if group_cmds:
            with formatter.section("Command Groups"):
                self._format_command_list(formatter, group_cmds)

    def _format_command_list(
        self,
        formatter: click.HelpFormatter,
        commands: list[tuple[str, click.Command]],
    ) -> None:
        rows = [(name, cmd.get_short_help_str(limit=formatter.width)) for name, cmd in commands]
        if rows:
            formatter.write_dl(rows)
