"""Production CommandRunner implementation using subprocess."""

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

from de.core.errors import RunnerUnavailableError
from de.core.runner.abc import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


class RealCommandRunner(CommandRunner):
    """Runs commands with subprocess.run, capturing text output.

    Output that is not valid UTF-8 is decoded with replacement characters.

    LBYL: the working directory is checked before launching, so a missing
    project directory is reported as a failed command for that project
    rather than being confused with a missing program.
    """

    def execute(self, project_id: str, command: Sequence[str], cwd: Path) -> CommandResult:
        if not cwd.is_dir():
            return CommandResult(exit_code=1, stderr=f"Project directory not found: {cwd}")

        logger.debug("[%s] running %s in %s", project_id, " ".join(command), cwd)
        try:
            result = subprocess.run(
                list(command),
                cwd=cwd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                check=False,
            )
        except FileNotFoundError as e:
            raise RunnerUnavailableError(command[0], "command not found") from e
        except PermissionError as e:
            raise RunnerUnavailableError(command[0], "permission denied") from e

        logger.debug("[%s] exit code %d", project_id, result.returncode)
        return CommandResult(
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
