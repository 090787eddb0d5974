from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Repo2FileError(Exception):
    """Base exception for errors in the repo2file package."""

    @property
    def message(self) -> str:
        """Human readable description of the error."""
        return (self.__doc__ or self.__class__.__name__).strip()

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class ConfigurationError(Repo2FileError):
    """Raised when the run configuration is invalid."""


@dataclass(frozen=True)
class ConflictingRulesError(ConfigurationError):
    """Raised when include-only entries are combined with ignore entries."""

    include_files: tuple[str, ...]
    ignore_options: tuple[str, ...]

    @property
    def message(self) -> str:
        options = ", ".join(self.ignore_options)
        return f"--include-files cannot be used together with {options}"


@dataclass(frozen=True)
class InvalidGlobPatternError(ConfigurationError):
    """Raised when a file glob pattern cannot be compiled."""

    pattern: str
    reason: str

    @property
    def message(self) -> str:
        return f"Invalid glob pattern {self.pattern!r}: {self.reason}"


@dataclass(frozen=True)
class PolicyFileError(ConfigurationError):
    """Raised when a default policy file cannot be loaded."""

    file: Path
    reason: str

    @property
    def message(self) -> str:
        return f"Cannot load policy file {self.file}: {self.reason}"


@dataclass(frozen=True)
class InvalidSettingsError(ConfigurationError):
    """Raised when command line values do not form valid settings."""

    reason: str

    @property
    def message(self) -> str:
        return f"Invalid arguments: {self.reason}"


@dataclass(frozen=True)
class RetrievalError(Repo2FileError):
    """Raised when the source tree cannot be made available locally."""


@dataclass(frozen=True)
class GitCommandError(RetrievalError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str

    @property
    def message(self) -> str:
        detail = self.stderr.strip() or self.stdout.strip() or f"exit status {self.returncode}"
        return f"Failed to clone repository ({self.command}): {detail}"


@dataclass(frozen=True)
class SourceNotFoundError(RetrievalError):
    """Raised when a local source path does not exist."""

    path: Path

    @property
    def message(self) -> str:
        return f"Input path does not exist: {self.path}"
