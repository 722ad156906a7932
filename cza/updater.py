"""Self-update from the GitHub releases feed.

Queries the latest release, compares it with the installed version, and when
newer reinstalls the package with the running interpreter's pip.
"""

from __future__ import annotations

import logging
import sys

import httpx
from packaging.version import InvalidVersion, Version

from cza import __version__
from cza.errors import CzaError
from cza.output import Output
from cza.scaffolder.fetcher import github_auth_headers
from cza.utils import run_command

logger = logging.getLogger(__name__)

RELEASES_URL = "https://api.github.com/repos/sripwoud/cza/releases/latest"
PACKAGE_NAME = "cza"


class UpdateError(CzaError):
    """Raised when the release feed cannot be read or the upgrade fails."""


class Updater:
    """Checks for and installs newer cza releases.

    Args:
        current_version: Installed version (defaults to ``cza.__version__``).
        releases_url: Release feed endpoint.
        transport: Optional ``httpx`` transport (tests use ``MockTransport``).
    """

    def __init__(
        self,
        current_version: str = __version__,
        releases_url: str = RELEASES_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.current_version = Version(current_version)
        self.releases_url = releases_url
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=httpx.Timeout(30.0, connect=10.0),
            follow_redirects=True,
            headers={"Accept": "application/vnd.github+json", **github_auth_headers()},
            transport=self.transport,
        )

    async def latest_version(self) -> Version:
        """Return the version of the latest published release."""
        try:
            async with self._client() as client:
                response = await client.get(self.releases_url)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as exc:
            raise UpdateError(
                f"Release feed returned HTTP {exc.response.status_code} for {self.releases_url}"
            ) from exc
        except httpx.HTTPError as exc:
            raise UpdateError(f"Could not reach the release feed: {exc}") from exc
        except ValueError as exc:
            raise UpdateError(f"Failed to parse release JSON: {exc}") from exc

        tag = str(data.get("tag_name", "")).strip()
        try:
            return Version(tag.removeprefix("v"))
        except InvalidVersion as exc:
            raise UpdateError(f"Release feed returned an invalid version tag: '{tag}'") from exc

    async def run(self, output: Output) -> bool:
        """Update if a newer release exists.

        Returns:
            ``True`` when an upgrade was installed, ``False`` if already current.
        """
        output.step("Checking for updates...")
        latest = await self.latest_version()
        logger.debug("Installed %s, latest %s", self.current_version, latest)

        if latest <= self.current_version:
            output.success(f"cza is already up to date ({self.current_version})")
            return False

        output.step(f"Updating cza {self.current_version} -> {latest}...")
        cmd = [sys.executable, "-m", "pip", "install", "--upgrade", f"{PACKAGE_NAME}=={latest}"]
        try:
            returncode, _, stderr = await run_command(cmd)
        except OSError as exc:
            raise UpdateError(f"Could not run pip: {exc}") from exc
        if returncode != 0:
            raise UpdateError(
                f"pip failed with status {returncode}: {stderr}",
                hint=f"Run '{' '.join(cmd)}' manually.",
            )

        output.success(f"Updated cza to {latest}")
        return True
