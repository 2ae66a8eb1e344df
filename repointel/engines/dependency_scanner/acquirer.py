"""Acquirers: fetch the raw descriptor files of a repository reference."""

from __future__ import annotations

import asyncio
import os
import posixpath
import tempfile
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from repointel.core.config import Settings
from repointel.core.errors import AcquisitionError
from repointel.core.github import (
    is_remote,
    parse_repo_url,
    repo_name_from_reference,
    split_credentials,
    strip_credentials,
)
from repointel.engines.dependency_scanner.models import AcquiredRepository, DescriptorFile
from repointel.engines.dependency_scanner.parsers.maven_pom import MavenPomParser
from repointel.engines.dependency_scanner.repo import shallow_clone

log = structlog.get_logger("repointel.engine")

DESCRIPTOR_NAME = MavenPomParser.file_name

# Build output, VCS metadata, IDE state and dependency caches.
EXCLUDED_DIRS = frozenset(
    {"target", "build", "out", ".git", ".svn", ".hg", ".idea", "node_modules", ".m2", ".gradle"}
)


@runtime_checkable
class Acquirer(Protocol):
    """Interface every acquirer satisfies.

    Raises :class:`AcquisitionError` when the repository cannot be fetched.
    """

    async def acquire(self, reference: str) -> AcquiredRepository: ...


def is_excluded(rel_path: str) -> bool:
    """True if any directory component of *rel_path* is excluded."""
    parts = rel_path.replace("\\", "/").split("/")[:-1]
    return any(part in EXCLUDED_DIRS for part in parts)


def collect_descriptor_files(root: Path) -> tuple[DescriptorFile, ...]:
    """Walk *root* and read every descriptor outside the excluded directories.

    Paths are POSIX and relative to *root*, sorted so that a parent directory's
    descriptor comes before its modules'.
    """
    found: list[DescriptorFile] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in EXCLUDED_DIRS)
        if DESCRIPTOR_NAME not in filenames:
            continue
        file_path = Path(dirpath) / DESCRIPTOR_NAME
        rel = file_path.relative_to(root).as_posix()
        try:
            found.append(DescriptorFile(path=rel, content=file_path.read_bytes()))
        except OSError as exc:
            log.warning("acquirer.read_failed", path=rel, error=str(exc))
    found.sort(key=lambda f: (f.path.count("/"), f.path))
    return tuple(found)


class LocalAcquirer:
    """Reads descriptors from a checkout already on disk."""

    async def acquire(self, reference: str) -> AcquiredRepository:
        root = Path(reference).expanduser().resolve()
        if not root.is_dir():
            raise AcquisitionError(reference, "not a directory")
        files = await asyncio.to_thread(collect_descriptor_files, root)
        return AcquiredRepository(
            name=repo_name_from_reference(reference),
            reference=reference,
            files=files,
        )


class GitAcquirer:
    """Shallow-clones the repository into a temporary directory."""

    def __init__(self, ref: str | None = None) -> None:
        self._ref = ref

    async def acquire(self, reference: str) -> AcquiredRepository:
        clean = strip_credentials(reference)
        with tempfile.TemporaryDirectory(prefix="repointel-") as tmpdir:
            log.info("acquirer.cloning", url=clean, ref=self._ref or "default branch")
            repo_path = await shallow_clone(reference, self._ref, Path(tmpdir))
            files = await asyncio.to_thread(collect_descriptor_files, repo_path)
        return AcquiredRepository(
            name=repo_name_from_reference(reference),
            reference=clean,
            files=files,
        )


class GitHubApiAcquirer:
    """Fetches descriptors through the GitHub REST API without cloning.

    Uses the recursive git tree of the branch to find descriptors and raw
    content URLs to download them.
    """

    def __init__(
        self,
        token: str | None = None,
        *,
        api_url: str = "https://api.github.com",
        raw_url: str = "https://raw.githubusercontent.com",
        ref: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._raw_url = raw_url.rstrip("/")
        self._ref = ref
        self._client = client or httpx.AsyncClient(timeout=30.0, follow_redirects=True)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> GitHubApiAcquirer:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def acquire(self, reference: str) -> AcquiredRepository:
        clean, url_token = split_credentials(reference)
        try:
            owner, repo = parse_repo_url(clean)
        except ValueError as exc:
            raise AcquisitionError(clean, str(exc)) from exc

        headers = self._headers(url_token or self._token)
        try:
            branch = self._ref or await self._default_branch(owner, repo, headers)
            tree = await self._get_json(
                f"{self._api_url}/repos/{owner}/{repo}/git/trees/{branch}",
                headers,
                params={"recursive": "1"},
            )
            nodes = tree.get("tree")
            if not isinstance(nodes, list):
                raise AcquisitionError(clean, "invalid tree response")
            if tree.get("truncated"):
                log.warning("acquirer.tree_truncated", repo=f"{owner}/{repo}")

            files: list[DescriptorFile] = []
            for node in nodes:
                path = node.get("path", "")
                if node.get("type") != "blob" or posixpath.basename(path) != DESCRIPTOR_NAME:
                    continue
                if is_excluded(path):
                    continue
                content = await self._get_raw(owner, repo, branch, path, headers)
                if content is not None:
                    files.append(DescriptorFile(path=path, content=content))
        except httpx.HTTPError as exc:
            raise AcquisitionError(clean, f"GitHub API request failed: {exc}") from exc

        files.sort(key=lambda f: (f.path.count("/"), f.path))
        return AcquiredRepository(
            name=repo_name_from_reference(clean),
            reference=clean,
            files=tuple(files),
        )

    # ── internal ───────────────────────────────────────────────────────────

    @staticmethod
    def _headers(token: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if token:
            headers["Authorization"] = f"token {token}"
        return headers

    async def _get_json(
        self,
        url: str,
        headers: dict[str, str],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        resp = await self._client.get(url, headers=headers, params=params)
        resp.raise_for_status()
        return resp.json()

    async def _default_branch(self, owner: str, repo: str, headers: dict[str, str]) -> str:
        meta = await self._get_json(f"{self._api_url}/repos/{owner}/{repo}", headers)
        return meta.get("default_branch") or "main"

    async def _get_raw(
        self,
        owner: str,
        repo: str,
        branch: str,
        path: str,
        headers: dict[str, str],
    ) -> bytes | None:
        raw_headers = {k: v for k, v in headers.items() if k == "Authorization"}
        resp = await self._client.get(
            f"{self._raw_url}/{owner}/{repo}/{branch}/{path}", headers=raw_headers
        )
        if resp.status_code != 200:
            log.warning(
                "acquirer.raw_fetch_failed",
                repo=f"{owner}/{repo}",
                path=path,
                status=resp.status_code,
            )
            return None
        return resp.content


class DefaultAcquirer:
    """Local paths go to :class:`LocalAcquirer`, URLs to the remote acquirer."""

    def __init__(self, remote: Acquirer | None = None, local: Acquirer | None = None) -> None:
        self._remote = remote or GitAcquirer()
        self._local = local or LocalAcquirer()

    async def acquire(self, reference: str) -> AcquiredRepository:
        if is_remote(reference):
            return await self._remote.acquire(reference)
        return await self._local.acquire(reference)

    async def close(self) -> None:
        close = getattr(self._remote, "close", None)
        if close is not None:
            await close()


def build_acquirer(settings: Settings, ref: str | None = None) -> DefaultAcquirer:
    """Acquirer configured from *settings* (``git`` or ``github`` remote)."""
    if settings.acquirer == "github":
        remote: Acquirer = GitHubApiAcquirer(
            settings.github_token, api_url=settings.github_api_url, ref=ref
        )
    else:
        remote = GitAcquirer(ref)
    return DefaultAcquirer(remote=remote)
