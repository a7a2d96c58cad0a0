"""Docker Compose start/stop actions and service queries for workspace projects.

ComposeAction is the ProjectAction handed to the orchestrator by the start and
stop commands. It decides which compose file applies and which command to run;
the CommandRunner runs it. ``query_services`` reads service states for status.
"""

import json
import logging
from dataclasses import dataclass
from pathlib import Path

import yaml

from de.core.errors import ComposeQueryError
from de.core.orchestrator import ActionResult, Direction
from de.core.runner.abc import CommandRunner
from de.core.workspace import Project, Workspace

logger = logging.getLogger(__name__)

COMPOSE_FILENAMES = ("docker-compose.yml", "docker-compose.yaml", "compose.yml", "compose.yaml")

NO_COMPOSE_FILE = "no compose file"


def find_compose_file(project: Project) -> Path | None:
    """The compose file for a project, if one exists.

    An explicitly configured file wins; otherwise the conventional names are
    tried in the project directory.
    """
    if project.compose_file is not None:
        return project.compose_file if project.compose_file.exists() else None

    for filename in COMPOSE_FILENAMES:
        candidate = project.dir / filename
        if candidate.exists():
            return candidate
    return None


def compose_services(compose_file: Path) -> list[str]:
    """Service names declared in a compose file.

    Raises:
        ValueError: If the file is not valid YAML
    """
    try:
        data = yaml.safe_load(compose_file.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid compose file {compose_file}: {e}") from e

    if not isinstance(data, dict):
        return []
    services = data.get("services")
    if not isinstance(services, dict):
        return []
    return [str(name) for name in services]


def compose_command(compose_file: Path, direction: Direction) -> list[str]:
    """The docker compose invocation bringing a project up or down."""
    base = ["docker", "compose", "-f", str(compose_file)]
    if direction == Direction.START:
        return [*base, "up", "-d"]
    return [*base, "down"]


def _failure_message(stderr: str, exit_code: int) -> str:
    lines = [line.strip() for line in stderr.splitlines() if line.strip()]
    if lines:
        return lines[-1]
    return f"docker compose exited with code {exit_code}"


class ComposeAction:
    """Bring one project's compose services up or down.

    Projects without a compose file succeed without running anything, so
    their dependents are still started.
    """

    def __init__(self, runner: CommandRunner, workspace: Workspace, direction: Direction) -> None:
        self._runner = runner
        self._workspace = workspace
        self._direction = direction

    def __call__(self, project_id: str) -> ActionResult:
        project = self._workspace.get_project(project_id)
        if project is None:
            return ActionResult(success=False, message=f"unknown project '{project_id}'")

        compose_file = find_compose_file(project)
        if compose_file is None:
            logger.debug("No compose file for %s, nothing to %s", project_id, self._direction.value)
            return ActionResult(success=True, message=NO_COMPOSE_FILE)

        command = compose_command(compose_file, self._direction)
        result = self._runner.execute(project_id, command, project.dir)
        if not result.success:
            return ActionResult(
                success=False, message=_failure_message(result.stderr, result.exit_code)
            )
        return ActionResult(success=True)


@dataclass(frozen=True)
class ServiceState:
    """One compose service as ``docker compose ps`` reports it.

    Fields:
        name: Service name from the compose file
        state: Container state ("running", "exited", ...), or "not created"
        status: Human-readable status such as "Up 5 minutes" (may be empty)
    """

    name: str
    state: str
    status: str = ""

    @property
    def is_up(self) -> bool:
        return self.state == "running"


NOT_CREATED = "not created"


def compose_ps_command(compose_file: Path) -> list[str]:
    return ["docker", "compose", "-f", str(compose_file), "ps", "-a", "--format", "json"]


def parse_compose_ps(output: str) -> list[ServiceState]:
    """Parse ``docker compose ps --format json`` output.

    Older Compose releases print a single JSON array, newer ones print one
    JSON object per line; both are accepted.

    Raises:
        ValueError: If the output is not JSON
    """
    text = output.strip()
    if not text:
        return []

    try:
        if text.startswith("["):
            entries = json.loads(text)
        else:
            entries = [json.loads(line) for line in text.splitlines() if line.strip()]
    except json.JSONDecodeError as e:
        raise ValueError(f"unexpected docker compose ps output: {e}") from e

    states: list[ServiceState] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        name = entry.get("Service") or entry.get("Name")
        if not name:
            continue
        states.append(
            ServiceState(
                name=str(name),
                state=str(entry.get("State", "")),
                status=str(entry.get("Status", "")),
            )
        )
    return states


def query_services(
    runner: CommandRunner, project: Project, compose_file: Path
) -> list[ServiceState]:
    """State of every service of a project, declared ones first.

    Services declared in the compose file but without a container are
    reported as NOT_CREATED.

    Raises:
        ComposeQueryError: If the compose file or ``docker compose ps`` cannot
            be read
        RunnerUnavailableError: If docker cannot be launched
    """
    try:
        declared = compose_services(compose_file)
    except ValueError as e:
        raise ComposeQueryError(project.id, str(e)) from e

    result = runner.execute(project.id, compose_ps_command(compose_file), project.dir)
    if not result.success:
        raise ComposeQueryError(project.id, _failure_message(result.stderr, result.exit_code))
    try:
        running = {state.name: state for state in parse_compose_ps(result.stdout)}
    except ValueError as e:
        raise ComposeQueryError(project.id, str(e)) from e

    states = [running.pop(name, ServiceState(name, NOT_CREATED)) for name in declared]
    states.extend(running.values())
    logger.debug("Services of %s: %s", project.id, [(s.name, s.state) for s in states])
    return states
