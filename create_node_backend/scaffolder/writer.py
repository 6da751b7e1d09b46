"""Materialise a rendered file set on disk.

Each file is written through a temporary sibling that is renamed into place,
so a reader never observes a half-written file.  Failures are isolated per
path: the offending path is reported and the remaining files still land.
"""

from __future__ import annotations

import asyncio
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from rich.console import Console
from rich.markup import escape

from create_node_backend.utils import console as default_console

from .catalog import FileSet

# mkstemp creates 0600 files; generated sources are ordinary project files.
_FILE_MODE = 0o644


@dataclass
class WriteReport:
    """Outcome of :meth:`ProjectWriter.materialize`."""

    root: Path
    written: list[Path] = field(default_factory=list)
    failures: list[tuple[Path, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class ProjectWriter:
    """Writes a ``FileSet`` under a project root directory."""

    def __init__(self, output: Console | None = None) -> None:
        self.console = output or default_console

    async def materialize(self, base_path: str | Path, file_set: FileSet) -> WriteReport:
        """Create *base_path* and every file in *file_set* beneath it.

        Files are written one after another in key order.  Directory and file
        errors are printed, recorded in the report, and skipped.

        Args:
            base_path: Project root; created if missing.
            file_set: Mapping of POSIX relative path -> UTF-8 text.

        Returns:
            A ``WriteReport`` listing written paths and failures.
        """
        root = Path(base_path)
        report = WriteReport(root=root)

        if not await self._make_dir(root, report):
            return report

        for rel_path, content in file_set.items():
            target = root.joinpath(*PurePosixPath(rel_path).parts)
            if not await self._make_dir(target.parent, report):
                continue
            try:
                await asyncio.to_thread(_atomic_write, target, content)
            except OSError as exc:
                self._report_failure(report, target, "write file", exc)
                continue
            report.written.append(target)

        return report

    async def _make_dir(self, directory: Path, report: WriteReport) -> bool:
        try:
            await asyncio.to_thread(directory.mkdir, parents=True, exist_ok=True)
        except OSError as exc:
            self._report_failure(report, directory, "create folder", exc)
            return False
        return True

    def _report_failure(self, report: WriteReport, path: Path, action: str, exc: OSError) -> None:
        self.console.print(
            f"[bold red]Failed to {action}: {escape(str(path))}[/bold red] ({escape(str(exc))})"
        )
        report.failures.append((path, str(exc)))


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _atomic_write(path: Path, content: str) -> None:
    """Write *content* to a temp file next to *path*, then rename over it."""
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(content)
        os.chmod(tmp_name, _FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise
