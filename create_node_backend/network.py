"""Package-registry reachability probe.

A single HTTPS GET with a bounded timeout.  Retrying is the install driver's
job; this module only answers "is the registry reachable right now?".
"""

from __future__ import annotations

import httpx

DEFAULT_REGISTRY_URL = "https://registry.npmjs.org/"
DEFAULT_TIMEOUT_MS = 3000


class NetworkProbe:
    """Checks whether the package registry answers with HTTP 200."""

    def __init__(self, url: str = DEFAULT_REGISTRY_URL, timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.url = url
        self.timeout_ms = timeout_ms

    async def is_reachable(self, timeout_ms: int | None = None) -> bool:
        """Return ``True`` only if the registry responds 200 within the timeout.

        Connection refusal, DNS failure, TLS errors, timeouts and non-200
        statuses all yield ``False``; nothing is raised.
        """
        seconds = (timeout_ms if timeout_ms is not None else self.timeout_ms) / 1000
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(seconds)) as client:
                response = await client.get(self.url)
        except (httpx.HTTPError, httpx.InvalidURL, OSError):
            return False
        return response.status_code == 200
