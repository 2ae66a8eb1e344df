"""Git clone helper for the dependency scanner."""

from __future__ import annotations

import asyncio
import os
import uuid
from pathlib import Path

from repointel.core.errors import AcquisitionError
from repointel.core.github import split_credentials


async def shallow_clone(repo_url: str, ref: str | None, workdir: Path) -> Path:
    """Shallow-clone *repo_url* into *workdir* and return the clone path.

    *ref* is a branch or tag name; ``None`` uses the remote's default branch.
    The caller is responsible for cleaning up the directory (e.g. via
    ``tempfile.TemporaryDirectory``).

    Raises :class:`AcquisitionError` on a non-zero git exit code. Any token
    embedded in the URL is masked in the error message.
    """
    target = workdir / f"repo-{uuid.uuid4().hex[:8]}"

    clone_cmd = ["git", "clone", "--depth", "1"]
    if ref:
        clone_cmd += ["--branch", ref]
    clone_cmd += ["--", repo_url, str(target)]
    await _run(clone_cmd, repo_url)
    return target


async def _run(cmd: list[str], repo_url: str) -> None:
    """Run a git command, raising AcquisitionError on failure."""
    clean_url, token = split_credentials(repo_url)
    env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
    except OSError as exc:
        raise AcquisitionError(clean_url, f"cannot run git: {exc}") from exc

    try:
        _, stderr = await proc.communicate()
    except asyncio.CancelledError:
        if proc.returncode is None:
            proc.kill()
        raise

    if proc.returncode != 0:
        message = stderr.decode(errors="replace").strip()
        if token:
            message = message.replace(token, "***")
        raise AcquisitionError(
            clean_url, f"git command failed (exit {proc.returncode}): {message}"
        )
