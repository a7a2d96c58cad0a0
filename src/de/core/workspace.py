"""Workspace and project data structures and the workspace registry.

A workspace file lives at ``<de home>/workspaces/<name>.toml``::

    name = "shop"
    default_branch = "dev"

    [projects.db]
    dir = "~/src/shop-db"

    [projects.api]
    dir = "~/src/shop-api"

Projects keep the order of their tables (registration order). Each project
directory may hold a ``de.toml`` manifest::

    [project]
    docker_compose = "docker/compose.yml"
    depends_on = ["db"]

    [git]
    enabled = true
    default_remote = "origin"
"""

import logging
import re
import string
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from pathlib import Path

import tomlkit

logger = logging.getLogger(__name__)

MANIFEST_FILENAME = "de.toml"

_SLUG_PATTERN = re.compile(r"^[a-z][a-z0-9_-]*$")
_SLUG_CHARS = frozenset(string.ascii_lowercase + string.digits + "-_")


@dataclass(frozen=True)
class Project:
    """One source-controlled directory of a workspace."""

    id: str
    dir: Path
    depends_on: tuple[str, ...] = ()
    git_enabled: bool = True
    compose_file: Path | None = None
    default_remote: str = "origin"


@dataclass(frozen=True)
class Workspace:
    """Immutable workspace definition.

    ``projects`` is in registration order, which is also the tie-break order
    used when resolving dependencies.
    """

    name: str
    projects: tuple[Project, ...]
    default_branch: str | None = None

    def get_project(self, project_id: str) -> Project | None:
        for project in self.projects:
            if project.id == project_id:
                return project
        return None

    @property
    def git_projects(self) -> tuple[Project, ...]:
        return tuple(p for p in self.projects if p.git_enabled)


def sanitize_slug(value: str) -> str:
    """Turn arbitrary text into a valid slug, used for error suggestions."""
    chars: list[str] = []
    last_was_separator = True
    for ch in value.lower():
        if ch.isascii() and ch.isalnum():
            if not chars and ch.isdigit():
                chars.extend(["x", "-"])
            chars.append(ch)
            last_was_separator = False
        elif ch in "-_":
            if not last_was_separator:
                chars.append(ch)
                last_was_separator = True
        elif not last_was_separator:
            chars.append("-")
            last_was_separator = True

    sanitized = "".join(chars).strip("-_")
    return sanitized or "invalid-name"


def validate_slug(value: str) -> str:
    """Validate a workspace or project name.

    Names must start with a letter and contain only lowercase alphanumeric
    characters, hyphens and underscores.

    Returns:
        The stripped name

    Raises:
        ValueError: With a suggested valid name when the value is invalid
    """
    stripped = value.strip()
    if not stripped:
        raise ValueError("Name cannot be empty.")

    if _SLUG_PATTERN.match(stripped) is None:
        if not stripped[0].isascii() or not stripped[0].isalpha():
            problem = f"must start with an alphabetic character, not '{stripped[0]}'"
        else:
            bad = next(ch for ch in stripped if ch not in _SLUG_CHARS)
            problem = f"contains invalid character '{bad}'"
        raise ValueError(
            f"Invalid name '{stripped}': {problem}. "
            f"Suggested valid name: '{sanitize_slug(stripped)}'"
        )
    return stripped


def load_project(project_id: str, project_dir: Path) -> Project:
    """Build a Project from its directory, reading ``de.toml`` when present.

    Raises:
        ValueError: If the manifest is malformed
    """
    manifest_path = project_dir / MANIFEST_FILENAME
    if not manifest_path.exists():
        logger.debug("No manifest for project %s at %s", project_id, manifest_path)
        return Project(id=project_id, dir=project_dir)

    try:
        data = tomllib.loads(manifest_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Malformed manifest {manifest_path}: {e}") from e

    project_section = data.get("project", {})
    git_section = data.get("git", {})
    if not isinstance(project_section, dict):
        raise ValueError(f"'project' must be a table in {manifest_path}")
    if not isinstance(git_section, dict):
        raise ValueError(f"'git' must be a table in {manifest_path}")

    depends_on = project_section.get("depends_on", [])
    if not isinstance(depends_on, list):
        raise ValueError(f"'depends_on' must be a list in {manifest_path}")

    compose = project_section.get("docker_compose")
    compose_file = (project_dir / Path(compose).expanduser()) if compose else None

    return Project(
        id=project_id,
        dir=project_dir,
        depends_on=tuple(dict.fromkeys(str(dep) for dep in depends_on)),
        git_enabled=bool(git_section.get("enabled", True)),
        compose_file=compose_file,
        default_remote=str(git_section.get("default_remote", "origin")),
    )


class WorkspaceStore(ABC):
    """Read access to the workspace registry, plus the one setting it edits."""

    @abstractmethod
    def exists(self, name: str) -> bool:
        """Check if a workspace is registered."""
        ...

    @abstractmethod
    def list_names(self) -> list[str]:
        """List registered workspace names, sorted."""
        ...

    @abstractmethod
    def load(self, name: str) -> Workspace:
        """Load a workspace with all of its projects.

        Raises:
            FileNotFoundError: If the workspace is not registered
            ValueError: If the workspace definition is malformed
        """
        ...

    @abstractmethod
    def set_default_branch(self, name: str, branch: str | None) -> None:
        """Set or clear (``None``) the workspace's default branch."""
        ...


class FilesystemWorkspaceStore(WorkspaceStore):
    """Workspace registry backed by one TOML file per workspace."""

    def __init__(self, root: Path) -> None:
        self._root = root

    def path_for(self, name: str) -> Path:
        return self._root / f"{name}.toml"

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def list_names(self) -> list[str]:
        if not self._root.exists():
            return []
        return sorted(path.stem for path in self._root.glob("*.toml"))

    def load(self, name: str) -> Workspace:
        validate_slug(name)
        path = self.path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"Workspace '{name}' not found at {path}")

        try:
            data = tomllib.loads(path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Malformed workspace file {path}: {e}") from e

        projects_table = data.get("projects", {})
        if not isinstance(projects_table, dict):
            raise ValueError(f"'projects' must be a table in {path}")
        projects: list[Project] = []
        for project_id, entry in projects_table.items():
            validate_slug(project_id)
            raw_dir = entry.get("dir") if isinstance(entry, dict) else None
            if not raw_dir:
                raise ValueError(f"Missing 'dir' for project '{project_id}' in {path}")
            project_dir = Path(raw_dir).expanduser()
            if not project_dir.is_absolute():
                project_dir = path.parent / project_dir
            projects.append(load_project(project_id, project_dir))

        default_branch = data.get("default_branch")
        logger.debug("Loaded workspace %s with %d project(s)", name, len(projects))
        return Workspace(
            name=str(data.get("name", name)),
            projects=tuple(projects),
            default_branch=str(default_branch) if default_branch else None,
        )

    def set_default_branch(self, name: str, branch: str | None) -> None:
        path = self.path_for(name)
        if not path.exists():
            raise FileNotFoundError(f"Workspace '{name}' not found at {path}")

        # tomlkit keeps the user's comments and layout intact
        with path.open("r", encoding="utf-8") as f:
            doc = tomlkit.load(f)

        if branch is None:
            if "default_branch" in doc:
                del doc["default_branch"]
        else:
            doc["default_branch"] = branch

        with path.open("w", encoding="utf-8") as f:
            tomlkit.dump(doc, f)


class InMemoryWorkspaceStore(WorkspaceStore):
    """Test implementation holding workspaces in memory."""

    def __init__(self, workspaces: list[Workspace] | None = None) -> None:
        self._workspaces = {ws.name: ws for ws in workspaces or []}

    def exists(self, name: str) -> bool:
        return name in self._workspaces

    def list_names(self) -> list[str]:
        return sorted(self._workspaces)

    def load(self, name: str) -> Workspace:
        if name not in self._workspaces:
            raise FileNotFoundError(f"Workspace '{name}' not found")
        return self._workspaces[name]

    def set_default_branch(self, name: str, branch: str | None) -> None:
        self._workspaces[name] = replace(self.load(name), default_branch=branch)
