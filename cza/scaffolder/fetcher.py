"""Fetch template sources.

GitHub HTTPS repositories are downloaded as a tarball over HTTP; any other
locator (SSH URLs, self-hosted git) is shallow-cloned with ``git``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import tarfile
from pathlib import Path

import httpx

from cza.errors import CzaError
from cza.utils import check_git_available, run_command

logger = logging.getLogger(__name__)

_GITHUB_HTTPS = re.compile(
    r"^https://github\.com/(?P<owner>[^/]+)/(?P<repo>[^/]+?)(?:\.git)?/?$"
)


class MaterializeError(CzaError):
    """Raised when a template cannot be fetched or written."""


def github_auth_headers() -> dict[str, str]:
    """Return an Authorization header when ``GITHUB_TOKEN``/``GH_TOKEN`` is set."""
    token = (os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN") or "").strip()
    return {"Authorization": f"Bearer {token}"} if token else {}


class TemplateFetcher:
    """Downloads or clones a template repository into a local directory.

    Args:
        timeout: Per-request HTTP timeout in seconds.
        transport: Optional ``httpx`` transport (tests use ``MockTransport``).
    """

    def __init__(
        self,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our timeout."""
        return httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            follow_redirects=True,
            headers=github_auth_headers(),
            transport=self.transport,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def fetch(
        self,
        repository: str,
        subfolder: str,
        dest: str | Path,
        revision: str | None = None,
    ) -> Path:
        """Fetch *repository* into *dest* and return the template directory.

        Raises:
            MaterializeError: On network, HTTP, archive or clone failures, or
                when *subfolder* does not exist in the repository.
        """
        dest = Path(dest)
        dest.mkdir(parents=True, exist_ok=True)

        match = _GITHUB_HTTPS.match(repository)
        if match:
            source_root = await self._download_tarball(
                match.group("owner"), match.group("repo"), revision, dest
            )
        else:
            source_root = await self._clone(repository, revision, dest)

        template_dir = (source_root / subfolder).resolve() if subfolder else source_root.resolve()
        if not template_dir.is_relative_to(source_root.resolve()) or not template_dir.is_dir():
            raise MaterializeError(
                f"Template subfolder '{subfolder}' not found in {repository}"
                + (f" at revision {revision}" if revision else "")
            )
        return template_dir

    # ------------------------------------------------------------------
    # Tarball download
    # ------------------------------------------------------------------

    @staticmethod
    def tarball_url(owner: str, repo: str, revision: str | None = None) -> str:
        return f"https://github.com/{owner}/{repo}/archive/{revision or 'HEAD'}.tar.gz"

    async def _download_tarball(
        self, owner: str, repo: str, revision: str | None, dest: Path
    ) -> Path:
        url = self.tarball_url(owner, repo, revision)
        archive = dest / f"{repo}.tar.gz"
        logger.debug("Downloading %s", url)

        try:
            async with self._client() as client:
                async with client.stream("GET", url) as response:
                    response.raise_for_status()
                    with archive.open("wb") as fh:
                        async for chunk in response.aiter_bytes():
                            fh.write(chunk)
        except httpx.HTTPStatusError as exc:
            raise MaterializeError(
                f"Failed to download template from {url}: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise MaterializeError(f"Failed to download template from {url}: {exc}") from exc

        return await asyncio.to_thread(_extract_archive, archive, dest / "extracted")

    # ------------------------------------------------------------------
    # git clone
    # ------------------------------------------------------------------

    async def _clone(self, repository: str, revision: str | None, dest: Path) -> Path:
        target = dest / "clone"
        cmd = ["git", "clone", "--depth", "1"]
        if revision:
            cmd += ["--branch", revision]
        cmd += [repository, str(target)]

        if not await asyncio.to_thread(check_git_available):
            raise MaterializeError(
                f"git is required to fetch {repository}",
                hint="Install git and make sure it is on your PATH.",
            )
        try:
            returncode, _, stderr = await run_command(cmd)
        except OSError as exc:
            raise MaterializeError(
                f"Could not run git to clone {repository}: {exc}",
                hint="Install git and make sure it is on your PATH.",
            ) from exc
        if returncode != 0:
            raise MaterializeError(f"git clone of {repository} failed (exit {returncode}): {stderr}")
        return target


def _extract_archive(archive: Path, dest: Path) -> Path:
    """Extract a GitHub tarball and return its single top-level directory."""
    try:
        with tarfile.open(archive, "r:gz") as tar:
            tar.extractall(dest, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise MaterializeError(f"Failed to extract template archive: {exc}") from exc

    roots = [p for p in dest.iterdir() if p.is_dir()]
    if len(roots) != 1:
        raise MaterializeError("Unexpected template archive layout")
    return roots[0]
