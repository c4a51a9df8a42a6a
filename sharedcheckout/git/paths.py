"""
Path derivation for shared-cache mirrors and working checkouts.

A repository identifier such as ``https://git.example.com/org/app.git`` maps to

    <shared_root>/org/app.git     (bare mirror, maintained out of band)
    <working_root>/org/app        (per-worker checkout, reused across builds)

Only the trailing ``namespace/name`` pair is significant; the host and any
leading path components are dropped. Both ``/`` and ``:`` act as separators so
scp-style identifiers (``git@host:org/app.git``) resolve the same way.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from sharedcheckout.exceptions import InvalidRepositoryIdentifier

GIT_SUFFIX = ".git"

_REPO_PATH_RE = re.compile(r"(?:^|[/:])(?P<namespace>[^/:]+)/(?P<name>[^/:]+)\.git$")
_TRAILING_PAIR_RE = re.compile(r"(?:^|[/:])(?P<namespace>[^/:]+)/(?P<name>[^/:]+)$")

# would resolve outside the shared and working roots
_DOT_SEGMENTS = (".", "..")


@dataclass(frozen=True)
class RepoPath:
    """The ``namespace/name`` pair identifying a repository on disk."""

    namespace: str
    name: str

    @property
    def relative(self) -> str:
        """Location relative to the shared root, e.g. ``org/app.git``."""
        return f"{self.namespace}/{self.name}{GIT_SUFFIX}"

    @property
    def checkout_relative(self) -> str:
        """Location relative to the working root, e.g. ``org/app``."""
        return f"{self.namespace}/{self.name}"

    def shared_dir(self, shared_root: Union[str, Path]) -> Path:
        return Path(shared_root) / self.namespace / f"{self.name}{GIT_SUFFIX}"

    def checkout_dir(self, working_root: Union[str, Path]) -> Path:
        return Path(working_root) / self.namespace / self.name


def _has_dot_segment(match: re.Match) -> bool:
    return any(match.group(part) in _DOT_SEGMENTS for part in ("namespace", "name"))


def parse_repo_path(identifier: str) -> RepoPath:
    """
    Extract the trailing ``namespace/name.git`` segment of a repository identifier.

    Examples:
        https://git.example.com/org/app.git -> RepoPath("org", "app")
        git@git.example.com:org/app.git -> RepoPath("org", "app")
        /mnt/nfs/git/org/app.git -> RepoPath("org", "app")

    Args:
        identifier: Repository URL, scp-style locator or filesystem path

    Returns:
        The parsed RepoPath

    Raises:
        InvalidRepositoryIdentifier: If the identifier does not end in
            ``<namespace>/<name>.git``, or either part is ``.`` or ``..``
    """
    match = _REPO_PATH_RE.search(identifier.strip().rstrip("/"))
    if match is None or _has_dot_segment(match):
        raise InvalidRepositoryIdentifier(identifier)
    return RepoPath(match.group("namespace"), match.group("name"))


def parse_submodule_repo_path(url: str) -> Optional[RepoPath]:
    """
    Best-effort variant of parse_repo_path for declared submodule URLs.

    Submodule URLs are not required to carry the ``.git`` suffix, so the last
    two path components are used as-is (minus any suffix). Returns None when
    the URL has fewer than two components, or when either of them is ``.``
    or ``..``.
    """
    url = url.strip().rstrip("/")
    if url.endswith(GIT_SUFFIX):
        url = url[: -len(GIT_SUFFIX)]
    match = _TRAILING_PAIR_RE.search(url)
    if match is None or _has_dot_segment(match):
        return None
    return RepoPath(match.group("namespace"), match.group("name"))


def checkout_path_for(identifier: str, working_root: Union[str, Path]) -> Path:
    """Working checkout directory for an identifier: ``working_root/namespace/name``."""
    return parse_repo_path(identifier).checkout_dir(working_root)


def shared_repo_dir_for(identifier: str, shared_root: Union[str, Path]) -> Path:
    """Shared mirror directory for an identifier: ``shared_root/namespace/name.git``."""
    return parse_repo_path(identifier).shared_dir(shared_root)
