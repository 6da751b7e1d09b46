"""create-node-backend configuration.

Typed models for the answers collected at the prompt (``ProjectConfig``) and
for the runtime knobs of the install loop (``Settings``).  Everything uses
Pydantic v2 so bad values are rejected at construction time, before anything
touches the disk.
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


NAME_PATTERN = r"^[A-Za-z0-9_-]+$"
FALLBACK_PROJECT_NAME = "my-backend-app"
MAX_NAME_ATTEMPTS = 10_000

_NAME_RE = re.compile(NAME_PATTERN)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(Exception):
    """Raised when a configuration value breaks an internal invariant."""


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Framework(str, Enum):
    """Backend HTTP framework of the generated project."""
    EXPRESS = "express"
    FASTIFY = "fastify"
    HONO = "hono"


class Database(str, Enum):
    """Database the generated project connects to."""
    MONGODB = "mongodb"
    POSTGRES = "postgres"
    MYSQL = "mysql"
    NONE = "none"


class Language(str, Enum):
    """Source language of the generated project (doubles as file extension)."""
    TS = "ts"
    JS = "js"


# ---------------------------------------------------------------------------
# Project answers
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    """The resolved answers for one scaffold run.  Immutable once built."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., pattern=NAME_PATTERN, description="Resolved project/directory name")
    framework: Framework
    database: Database
    language: Language

    @property
    def extension(self) -> str:
        return self.language.value

    @property
    def typescript(self) -> bool:
        return self.language is Language.TS

    @property
    def uses_database(self) -> bool:
        return self.database is not Database.NONE

    @property
    def has_mvc_layers(self) -> bool:
        """Express projects with a database get controller/route modules."""
        return self.framework is Framework.EXPRESS and self.uses_database


# ---------------------------------------------------------------------------
# Name validation
# ---------------------------------------------------------------------------


def validate_name(raw: str) -> str:
    """Return *raw* if it is a safe identifier, else the fallback name.

    The match is exact: surrounding whitespace, path separators, dots,
    spaces and other punctuation all map to ``FALLBACK_PROJECT_NAME``.

    Examples::

        validate_name("demo")     -> "demo"
        validate_name("../evil")  -> "my-backend-app"
    """
    candidate = raw or ""
    if _NAME_RE.fullmatch(candidate):
        return candidate
    return FALLBACK_PROJECT_NAME


def resolve_available_name(
    base: str,
    exists: Callable[[str], bool],
    max_attempts: int = MAX_NAME_ATTEMPTS,
) -> str:
    """Return the first of ``base``, ``base1``, ``base2``, ... not flagged by *exists*.

    Args:
        base: Starting name.
        exists: Predicate telling whether a candidate is already taken.
        max_attempts: How many numeric suffixes to try before giving up.

    Raises:
        ConfigError: If every candidate up to *max_attempts* is taken.
    """
    if not exists(base):
        return base
    for counter in range(1, max_attempts + 1):
        candidate = f"{base}{counter}"
        if not exists(candidate):
            return candidate
    raise ConfigError(
        f"Could not find a free project name for '{base}' after {max_attempts} attempts"
    )


def directory_exists_in(cwd: str | Path) -> Callable[[str], bool]:
    """Build an ``exists`` predicate for names under *cwd*."""
    root = Path(cwd)

    def _exists(name: str) -> bool:
        return (root / name).exists()

    return _exists


def build_project_config(
    raw_name: str,
    framework: str | Framework,
    database: str | Database,
    typescript: bool,
    cwd: str | Path,
) -> ProjectConfig:
    """Validate prompt answers and resolve a collision-free name under *cwd*.

    Raises:
        ConfigError: On an unknown framework/database or when no free name
            can be found.
    """
    name = resolve_available_name(validate_name(raw_name), directory_exists_in(cwd))
    try:
        return ProjectConfig(
            name=name,
            framework=framework,
            database=database,
            language=Language.TS if typescript else Language.JS,
        )
    except ValidationError as exc:
        raise ConfigError(f"Invalid project configuration: {exc}") from exc


# ---------------------------------------------------------------------------
# Runtime settings
# ---------------------------------------------------------------------------


class Settings(BaseModel):
    """Tuning knobs for the network probe and the install loop."""

    registry_url: str = Field(default="https://registry.npmjs.org/")
    probe_timeout_ms: int = Field(default=3000, ge=100, description="Registry probe timeout")
    retry_delay_ms: int = Field(default=5000, ge=0, description="Pause between probes while offline")
    max_retries: Optional[int] = Field(
        default=None, ge=1, description="Give up after this many failed probes (unset = forever)"
    )
    package_manager: str = Field(default="npm")
    install_timeout: int = Field(default=900, ge=10, description="Per-install timeout in seconds")

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            CNB_REGISTRY_URL, CNB_PROBE_TIMEOUT_MS, CNB_RETRY_DELAY_MS,
            CNB_MAX_RETRIES, CNB_PACKAGE_MANAGER, CNB_INSTALL_TIMEOUT.

        Raises:
            ConfigError: If a variable holds a value the model rejects.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CNB_REGISTRY_URL"):
            kwargs["registry_url"] = os.environ["CNB_REGISTRY_URL"]
        if os.environ.get("CNB_PROBE_TIMEOUT_MS"):
            kwargs["probe_timeout_ms"] = os.environ["CNB_PROBE_TIMEOUT_MS"]
        if os.environ.get("CNB_RETRY_DELAY_MS"):
            kwargs["retry_delay_ms"] = os.environ["CNB_RETRY_DELAY_MS"]
        if os.environ.get("CNB_MAX_RETRIES"):
            kwargs["max_retries"] = os.environ["CNB_MAX_RETRIES"]
        if os.environ.get("CNB_PACKAGE_MANAGER"):
            kwargs["package_manager"] = os.environ["CNB_PACKAGE_MANAGER"]
        if os.environ.get("CNB_INSTALL_TIMEOUT"):
            kwargs["install_timeout"] = os.environ["CNB_INSTALL_TIMEOUT"]

        try:
            return cls(**kwargs)
        except ValidationError as exc:
            raise ConfigError(f"Invalid environment settings: {exc}") from exc

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000
