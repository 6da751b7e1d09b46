"""Offline-aware dependency installation.

Drives a small state machine::

    PROBING --reachable--> INSTALLING --> DONE
    PROBING --unreachable--> WAITING --timer--> PROBING
    WAITING --'q' pressed--> CANCELLED

While WAITING, a keyboard listener and the retry timer are armed together on
the event loop, so a ``q`` keypress ends the wait immediately.  Installation
itself is never retried or cancelled: a failing package-manager invocation is
fatal.
"""

from __future__ import annotations

import asyncio
import os
import shutil
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, TextIO

from create_node_backend.config import Settings
from create_node_backend.network import NetworkProbe
from create_node_backend.scaffolder.catalog import DependencyManifest
from create_node_backend.utils import (
    print_error,
    print_info,
    print_success,
    print_warning,
    run_command,
)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class CommandFailure(Exception):
    """Raised when a package-manager invocation exits non-zero."""

    def __init__(self, command: list[str], returncode: int) -> None:
        self.command = list(command)
        self.returncode = returncode
        super().__init__(f"Failed to run: {self.command_line} (exit code {returncode})")

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class NetworkUnavailable(Exception):
    """Raised only when an explicit retry cap is exhausted while offline."""

    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"Package registry still unreachable after {attempts} attempt(s)")


# ---------------------------------------------------------------------------
# States
# ---------------------------------------------------------------------------


class InstallState(str, Enum):
    PROBING = "probing"
    WAITING = "waiting"
    INSTALLING = "installing"
    DONE = "done"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Keyboard cancellation
# ---------------------------------------------------------------------------


class CancelKeyListener:
    """Sets :attr:`cancelled` when ``q`` (either case) is typed while armed.

    On a POSIX terminal the stream is switched to cbreak mode so single
    keypresses arrive without Enter, and its descriptor is watched with
    ``loop.add_reader``.  On anything else (pipes, Windows consoles, test
    capture) arming is a no-op and only the timer can end the wait.
    """

    CANCEL_KEY = "q"

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self.stream = stream if stream is not None else sys.stdin
        self.cancelled = asyncio.Event()
        self._fd: Optional[int] = None
        self._saved_attrs: Any = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    @property
    def armed(self) -> bool:
        return self._fd is not None

    def feed(self, keys: str) -> None:
        """Process raw keypresses; anything but the cancel key is ignored."""
        if self.CANCEL_KEY in keys.lower():
            self.cancelled.set()

    def arm(self) -> None:
        if self.armed or os.name != "posix" or not _is_tty(self.stream):
            return
        import termios
        import tty

        fd = self.stream.fileno()
        self._saved_attrs = termios.tcgetattr(fd)
        tty.setcbreak(fd)
        self._loop = asyncio.get_running_loop()
        self._loop.add_reader(fd, self._on_readable)
        self._fd = fd

    def disarm(self) -> None:
        if not self.armed:
            return
        import termios

        assert self._loop is not None and self._fd is not None
        self._loop.remove_reader(self._fd)
        termios.tcsetattr(self._fd, termios.TCSADRAIN, self._saved_attrs)
        self._fd = None
        self._loop = None

    def _on_readable(self) -> None:
        assert self._fd is not None
        data = os.read(self._fd, 32)
        self.feed(data.decode("utf-8", errors="ignore"))

    async def __aenter__(self) -> "CancelKeyListener":
        self.arm()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.disarm()


def _is_tty(stream: TextIO) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        return False


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


CommandRunner = Callable[..., Awaitable[tuple[int, str, str]]]


class InstallDriver:
    """Installs a project's dependencies once the registry is reachable.

    Attributes:
        state: Current ``InstallState``.
        attempts: Number of failed registry probes so far.
    """

    def __init__(
        self,
        project_dir: str | Path,
        manifest: DependencyManifest,
        settings: Settings | None = None,
        *,
        probe: NetworkProbe | None = None,
        listener_factory: Callable[[], CancelKeyListener] = CancelKeyListener,
        runner: CommandRunner = run_command,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.manifest = manifest
        self.settings = settings or Settings()
        self.probe = probe or NetworkProbe(
            self.settings.registry_url, self.settings.probe_timeout_ms
        )
        self.listener_factory = listener_factory
        self.runner = runner
        self.state = InstallState.PROBING
        self.attempts = 0

    async def run(self) -> InstallState:
        """Probe, wait and retry until online, then install.

        Returns:
            ``InstallState.DONE`` or ``InstallState.CANCELLED``.

        Raises:
            CommandFailure: If a package-manager invocation fails.
            NetworkUnavailable: If ``settings.max_retries`` is set and exhausted.
        """
        while True:
            self.state = InstallState.PROBING
            if await self.probe.is_reachable():
                break

            self.attempts += 1
            max_retries = self.settings.max_retries
            if max_retries is not None and self.attempts >= max_retries:
                raise NetworkUnavailable(self.attempts)

            self.state = InstallState.WAITING
            if await self._wait_for_retry():
                self.state = InstallState.CANCELLED
                print_error("Quit installation watcher.")
                return self.state

        self.state = InstallState.INSTALLING
        print_success("Internet detected, installing packages...")
        if self.manifest.dependencies:
            await self._install(self.manifest.dependencies)
        if self.manifest.dev_dependencies:
            await self._install(self.manifest.dev_dependencies, dev=True)

        self.state = InstallState.DONE
        name = self.project_dir.name
        print_success(f"Project {name} is ready!")
        print_warning(f"cd {name} && {self.settings.package_manager} run dev")
        return self.state

    async def _wait_for_retry(self) -> bool:
        """Sleep for the retry delay; return ``True`` if the user cancelled."""
        delay = self.settings.retry_delay_seconds
        print_error("No internet connection.")
        print_warning(f"Retrying in {delay:g}s... (press 'q' to quit)")

        async with self.listener_factory() as listener:
            try:
                await asyncio.wait_for(listener.cancelled.wait(), timeout=delay)
            except asyncio.TimeoutError:
                return False
            return True

    def install_command(self, packages: tuple[str, ...], dev: bool = False) -> list[str]:
        manager = shutil.which(self.settings.package_manager) or self.settings.package_manager
        cmd = [manager, "install"]
        if dev:
            cmd.append("-D")
        cmd.extend(packages)
        return cmd

    async def _install(self, packages: tuple[str, ...], dev: bool = False) -> None:
        cmd = self.install_command(packages, dev=dev)
        print_info(" ".join(cmd))
        returncode, _stdout, _stderr = await self.runner(
            cmd,
            cwd=self.project_dir,
            timeout=self.settings.install_timeout,
            capture=False,
        )
        if returncode != 0:
            raise CommandFailure(cmd, returncode)
