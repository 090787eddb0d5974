from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "REPO2FILE_"

ARTIFACT_SUFFIX = ".txt"
ERROR_LOG_SUFFIX = ".error.log"


def env_defaults(env_file: str = ENV_FILE) -> dict[str, str]:
    """Collect ``REPO2FILE_*`` defaults from the `.env` file and the environment.

    Process environment variables win over the `.env` file. Keys are returned
    lower-cased without the prefix, e.g. ``REPO2FILE_LOG_FILE`` -> ``log_file``.

    Args:
        env_file (str, optional): path of the `.env` file, empty for none. Defaults to ENV_FILE.

    Returns:
        dict[str, str]: the defaults found
    """
    values: dict[str, str] = {}
    if env_file:
        values.update({k: v for k, v in dotenv_values(env_file).items() if v is not None})
    values.update(os.environ)
    return {
        key.removeprefix(ENV_PREFIX).lower(): value
        for key, value in values.items()
        if key.startswith(ENV_PREFIX)
    }


def default_output() -> Path:
    """Default output path: the current directory's name, inside it."""
    cwd = Path.cwd()
    return cwd / cwd.name


class Settings(BaseModel):
    """Configuration settings for one repo2file run."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    input: str = Field(..., description="Directory or GitHub URL of the repository.")
    output: Path = Field(default_factory=default_output, description="Output file stem.")
    ignore_files: list[str] = Field(default_factory=list, description="Files to ignore.")
    ignore_dirs: list[str] = Field(default_factory=list, description="Directories to ignore.")
    include_files: list[str] = Field(default_factory=list, description="Files to include exclusively.")
    error_log: bool = Field(default=False, description="Save unreadable files to an error log.")
    policy: Path | None = Field(default=None, description="YAML file replacing the default policy.")
    branch: str | None = Field(default=None, description="Branch or tag to clone.")
    hidden: bool = Field(default=False, description="Include hidden files and directories.")
    no_ignore_files: bool = Field(default=False, description="Do not honour .gitignore/.ignore.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("ignore_files", "ignore_dirs", "include_files", mode="before")
    @classmethod
    def _split_comma_lists(cls, value: Any) -> list[str]:  # noqa: ANN401
        if value is None:
            return []
        items = [value] if isinstance(value, str) else list(value)
        out: list[str] = []
        for item in items:
            out.extend(part.strip() for part in str(item).split(",") if part.strip())
        return out

    @field_validator("output", mode="before")
    @classmethod
    def _default_output_when_empty(cls, value: Any) -> Any:  # noqa: ANN401
        return value or default_output()

    @field_validator("output")
    @classmethod
    def _output_names_a_file(cls, value: Path) -> Path:
        if value.name in {"", ".", ".."}:
            msg = f"output {str(value)!r} must end with a file name"
            raise ValueError(msg)
        return value

    @property
    def artifact_path(self) -> Path:
        """Path of the aggregated text file."""
        return self.output.with_suffix(ARTIFACT_SUFFIX)

    @property
    def error_log_path(self) -> Path:
        """Path of the error log written when `error_log` is set."""
        return self.output.with_suffix(ERROR_LOG_SUFFIX)
