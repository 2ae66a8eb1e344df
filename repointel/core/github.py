"""Repository reference helpers: identity, credentials, GitHub owner/repo."""

from __future__ import annotations

from pathlib import Path

_REMOTE_PREFIXES = ("https://", "http://", "git@", "ssh://")


def is_remote(reference: str) -> bool:
    return reference.startswith(_REMOTE_PREFIXES)


def split_credentials(url: str) -> tuple[str, str | None]:
    """Split ``https://token@host/org/repo`` into (clean URL, token).

    Only http(s) URLs carry credentials this way; anything else is returned
    unchanged with ``None``.
    """
    if not url.startswith(("https://", "http://")):
        return url, None
    scheme_end = url.index("://") + 3
    at_idx = url.find("@", scheme_end)
    slash_idx = url.find("/", scheme_end)
    if at_idx == -1 or (slash_idx != -1 and at_idx > slash_idx):
        return url, None
    token = url[scheme_end:at_idx]
    return url[:scheme_end] + url[at_idx + 1 :], token or None


def strip_credentials(url: str) -> str:
    return split_credentials(url)[0]


def repo_name_from_reference(reference: str) -> str:
    """Derive the repository identity from a URL or a local path.

    ``https://tok@github.com/org/payments.git`` and ``/srv/checkouts/payments/``
    both yield ``payments``.
    """
    ref = reference.strip()
    if is_remote(ref):
        ref = strip_credentials(ref).rstrip("/")
        if ref.endswith(".git"):
            ref = ref[:-4]
        # git@host:org/repo has no slash before the repo path
        return ref.replace(":", "/").rsplit("/", 1)[-1]

    path = Path(ref).expanduser().resolve()
    name = path.name
    if name.endswith(".git"):
        name = name[:-4]
    return name


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """Extract (owner, repo) from a GitHub URL.

    Raises ValueError if the URL cannot be parsed.
    """
    result = _extract_owner_repo(repo_url)
    if result is None:
        raise ValueError(f"cannot parse GitHub repo URL: {repo_url!r}")
    owner, repo = result.split("/", 1)
    return owner, repo


def _extract_owner_repo(repo_url: str) -> str | None:
    """Extract 'owner/repo' from a GitHub URL.

    Handles:
      - https://github.com/owner/repo
      - https://token@github.com/owner/repo.git
      - git@github.com:owner/repo.git
    """
    repo_url = strip_credentials(repo_url.strip()).rstrip("/")
    if repo_url.endswith(".git"):
        repo_url = repo_url[:-4]

    if repo_url.startswith("git@"):
        colon_idx = repo_url.find(":")
        if colon_idx == -1:
            return None
        path = repo_url[colon_idx + 1 :]
        parts = path.split("/")
        if len(parts) == 2 and all(parts):
            return f"{parts[0]}/{parts[1]}"
        return None

    if "://" not in repo_url:
        return None
    parts = repo_url.split("://", 1)[1].split("/")
    if len(parts) >= 3 and parts[-2] and parts[-1]:
        return f"{parts[-2]}/{parts[-1]}"
    return None
