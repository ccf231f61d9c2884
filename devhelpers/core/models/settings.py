"""
Settings model — effective configuration for every helper command.

Loaded from an optional devhelpers.yml; every field has a default so
the tool works with no configuration file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator


class GitSettings(BaseModel):
    """How the git helpers talk to git."""

    executable: str = "git"
    remote: str = "origin"
    default_branch: str = "main"
    timeout: int = 120

    @field_validator("remote", "default_branch", "executable")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class PipSettings(BaseModel):
    """How the package helpers talk to pip."""

    executable: str = "pip"
    timeout: int = 600
    requirements_file: str = "requirements.txt"


class PythonSettings(BaseModel):
    """Interpreter used when creating version-qualified links."""

    executable: str = "python"


class Settings(BaseModel):
    """Root settings object — one per process."""

    git: GitSettings = Field(default_factory=GitSettings)
    pip: PipSettings = Field(default_factory=PipSettings)
    python: PythonSettings = Field(default_factory=PythonSettings)
