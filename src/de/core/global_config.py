"""Global configuration data structures and loading.

Provides immutable global config data loaded from ``<de home>/config.toml``::

    [active]
    workspace = "shop"

The de home directory is ``~/.de`` unless ``DE_HOME`` is set.
"""

import os
import tomllib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

import tomlkit


def de_home() -> Path:
    """Directory holding the global config and the workspace registry."""
    override = os.environ.get("DE_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".de"


@dataclass(frozen=True)
class GlobalConfig:
    """Immutable global configuration data.

    Loaded once at CLI entry point and stored in DeContext.
    """

    active_workspace: str | None = None


class ConfigStore(ABC):
    """Abstract interface for global config operations.

    Provides dependency injection for global config access, enabling
    in-memory implementations for tests without touching filesystem.
    """

    @abstractmethod
    def exists(self) -> bool:
        """Check if global config exists."""
        ...

    @abstractmethod
    def load(self) -> GlobalConfig:
        """Load global config.

        Returns:
            GlobalConfig instance; defaults when no config file exists

        Raises:
            ValueError: If config is malformed
        """
        ...

    @abstractmethod
    def save(self, config: GlobalConfig) -> None:
        """Save global config.

        Args:
            config: GlobalConfig instance to save
        """
        ...

    @abstractmethod
    def path(self) -> Path:
        """Get the path to the global config file (for error messages)."""
        ...


class RealConfigStore(ConfigStore):
    """Production implementation that reads/writes ``<de home>/config.toml``."""

    def __init__(self, home: Path | None = None) -> None:
        self._home = home

    def exists(self) -> bool:
        return self.path().exists()

    def load(self) -> GlobalConfig:
        config_path = self.path()
        if not config_path.exists():
            return GlobalConfig()

        try:
            data = tomllib.loads(config_path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"Malformed config file {config_path}: {e}") from e

        active = data.get("active", {})
        workspace = active.get("workspace") if isinstance(active, dict) else None
        return GlobalConfig(active_workspace=str(workspace) if workspace else None)

    def save(self, config: GlobalConfig) -> None:
        """Save global config, preserving unrelated content of an existing file.

        Raises:
            PermissionError: If directory or file cannot be written
        """
        config_path = self.path()
        parent = config_path.parent

        # Check parent directory permissions BEFORE attempting mkdir
        if parent.exists() and not os.access(parent, os.W_OK):
            raise PermissionError(
                f"Cannot write to directory: {parent}\n"
                f"The directory exists but is not writable."
            )

        try:
            parent.mkdir(parents=True, exist_ok=True)
        except PermissionError:
            raise PermissionError(
                f"Cannot create directory: {parent}\n"
                f"Check permissions on your home directory."
            ) from None

        if config_path.exists():
            with config_path.open("r", encoding="utf-8") as f:
                doc = tomlkit.load(f)
        else:
            doc = tomlkit.document()
            doc.add(tomlkit.comment("Global de configuration"))

        if "active" not in doc:
            doc["active"] = tomlkit.table()

        active = doc["active"]
        if config.active_workspace is None:
            if "workspace" in active:  # type: ignore[operator]
                del active["workspace"]  # type: ignore[union-attr]
        else:
            active["workspace"] = config.active_workspace  # type: ignore[index]

        with config_path.open("w", encoding="utf-8") as f:
            tomlkit.dump(doc, f)

    def path(self) -> Path:
        home = self._home if self._home is not None else de_home()
        return home / "config.toml"


class InMemoryConfigStore(ConfigStore):
    """Test implementation that stores config in memory without touching filesystem."""

    def __init__(self, config: GlobalConfig | None = None) -> None:
        """Initialize in-memory config store.

        Args:
            config: Initial config state (None = config doesn't exist)
        """
        self._config = config

    def exists(self) -> bool:
        return self._config is not None

    def load(self) -> GlobalConfig:
        if self._config is None:
            return GlobalConfig()
        return self._config

    def save(self, config: GlobalConfig) -> None:
        self._config = config

    def path(self) -> Path:
        return Path("/fake/de/config.toml")
