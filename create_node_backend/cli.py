"""create-node-backend CLI orchestrator.

Collects the answers interactively, resolves a safe project name, renders
and writes the scaffold, then installs dependencies (waiting for the
registry if offline).

Usage::

    create-node-backend
    python -m create_node_backend
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path
from typing import Any

from rich.prompt import Confirm, Prompt

from create_node_backend.config import (
    ConfigError,
    Database,
    Framework,
    ProjectConfig,
    Settings,
    build_project_config,
    validate_name,
)
from create_node_backend.installer import (
    CommandFailure,
    InstallDriver,
    InstallState,
    NetworkUnavailable,
)
from create_node_backend.scaffolder import ProjectWriter, build_file_set, dependency_manifest
from create_node_backend.utils import (
    console,
    print_banner,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CANCELLED = 130

BANNER = "Create Node Backend CLI"


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


def collect_answers() -> dict[str, Any]:
    """Ask the four scaffold questions and return the raw answers."""
    return {
        "name": Prompt.ask("Project name", console=console, default=""),
        "framework": Prompt.ask(
            "Choose a backend framework",
            choices=[f.value for f in Framework],
            default=Framework.EXPRESS.value,
            console=console,
        ),
        "database": Prompt.ask(
            "Select a database",
            choices=[d.value for d in Database],
            default=Database.MONGODB.value,
            console=console,
        ),
        "typescript": Confirm.ask("Use TypeScript?", default=True, console=console),
    }


def prepare_config(answers: dict[str, Any], cwd: Path) -> ProjectConfig:
    """Turn raw answers into a validated, collision-free ``ProjectConfig``.

    Raises:
        ConfigError: On unsupported choices or an exhausted name search.
    """
    raw_name = answers.get("name") or ""
    if validate_name(raw_name) != raw_name:
        print_warning("Invalid project name, using safe default.")
    config = build_project_config(
        raw_name,
        answers.get("framework"),
        answers.get("database"),
        bool(answers.get("typescript")),
        cwd,
    )
    if config.name != validate_name(raw_name):
        print_warning(f"Directory already exists, using '{config.name}' instead.")
    return config


# ---------------------------------------------------------------------------
# Flow
# ---------------------------------------------------------------------------


async def scaffold(config: ProjectConfig, cwd: Path, settings: Settings) -> int:
    """Write the project under *cwd* and install its dependencies.

    Returns:
        The process exit status.
    """
    project_path = cwd / config.name
    manifest = dependency_manifest(config.framework, config.database, config.language)

    print_summary_table(
        {
            "Project": config.name,
            "Location": str(project_path),
            "Framework": config.framework.value,
            "Database": config.database.value,
            "Language": "TypeScript" if config.typescript else "JavaScript",
            "Dependencies": " ".join(manifest.dependencies),
            "Dev dependencies": " ".join(manifest.dev_dependencies) or "-",
        },
        title="Scaffold",
    )

    report = await ProjectWriter(console).materialize(project_path, build_file_set(config))
    if not report.ok:
        print_warning(
            f"{len(report.failures)} file(s) could not be written; continuing with the rest."
        )

    print_success("Installing dependencies...")
    driver = InstallDriver(project_path, manifest, settings)
    try:
        state = await driver.run()
    except CommandFailure as exc:
        print_error(str(exc))
        return EXIT_FAILURE
    except NetworkUnavailable as exc:
        print_error(str(exc))
        return EXIT_FAILURE

    if state is InstallState.CANCELLED:
        return EXIT_CANCELLED
    return EXIT_OK if report.ok else EXIT_FAILURE


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """CLI entry point for ``create-node-backend``."""
    cwd = Path.cwd()
    print_banner(BANNER)

    try:
        settings = Settings.from_env()
        answers = collect_answers()
        config = prepare_config(answers, cwd)
    except ConfigError as exc:
        print_error(f"Error: {exc}")
        sys.exit(EXIT_FAILURE)
    except (KeyboardInterrupt, EOFError):
        console.print()
        print_error("Aborted.")
        sys.exit(EXIT_CANCELLED)

    try:
        status = asyncio.run(scaffold(config, cwd, settings))
    except KeyboardInterrupt:
        console.print()
        print_error("Aborted.")
        status = EXIT_CANCELLED
    sys.exit(status)


if __name__ == "__main__":
    main()
