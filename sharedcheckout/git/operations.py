"""
Version-control operations used by the materializer.

The materialization procedure only talks to a `GitOperations` implementation,
so it does not care whether commands end up in an external ``git`` binary or
somewhere else. `GitCommandOperations` is the production implementation and
shells out through GitPython's command wrapper.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, List, Optional, Protocol, Union

from git import Git
from git.exc import GitCommandNotFound

from sharedcheckout.exceptions import ExecutionFailure

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

SUBMODULE_URL_PATTERN = r"^submodule\..*\.url$"
SUBMODULE_PATH_PATTERN = r"^submodule\..*\.path$"

_SUBMODULE_KEY_RE = re.compile(r"^submodule\.(?P<name>.+)\.(?P<key>url|path) (?P<value>.+)$")


@dataclass(frozen=True)
class Submodule:
    """A submodule initialised in .git/config and declared in .gitmodules."""

    name: str
    path: str
    url: str


class GitOperations(Protocol):
    """Minimal set of version-control operations needed to materialize a checkout."""

    def revision_exists(self, repo_dir: Path, commit: str) -> bool:
        """True if ``commit`` resolves to a reachable revision in ``repo_dir``."""
        ...

    def clone_shared(self, source: Path, target: Path) -> None:
        """Clone sharing the source object database, without checking out files."""
        ...

    def reset_hard(self, repo_dir: Path) -> None: ...

    def clean_untracked(self, repo_dir: Path) -> None: ...

    def checkout(self, repo_dir: Path, commit: str) -> None: ...

    def submodule_init(self, repo_dir: Path) -> None: ...

    def list_submodule_urls(self, repo_dir: Path) -> List[Submodule]: ...

    def set_submodule_url(self, repo_dir: Path, name: str, url: str) -> None: ...

    def submodule_update(self, repo_dir: Path, path: str) -> None: ...


def parse_submodule_config(output: str) -> dict:
    """
    Parse ``git config --get-regexp`` output for submodule keys.

    Args:
        output: Lines such as ``submodule.libs/core.url https://host/org/core.git``

    Returns:
        Mapping of submodule name to its value, in declaration order
    """
    values = {}
    for line in output.splitlines():
        match = _SUBMODULE_KEY_RE.match(line.strip())
        if match:
            values[match.group("name")] = match.group("value")
    return values


class GitCommandOperations:
    """
    GitOperations backed by the ``git`` executable.

    Every command runs with the repository as its working directory; the
    process-wide cwd is never changed. A non-zero exit status that is not
    explicitly tolerated raises ExecutionFailure.
    """

    def __init__(self, allow_file_protocol: bool = True):
        """
        Args:
            allow_file_protocol: Pass ``protocol.file.allow=always`` to
                ``git submodule update`` so submodules can be cloned from
                local shared-cache paths.
        """
        self.allow_file_protocol = allow_file_protocol

    def _run(
        self,
        cwd: PathLike,
        command: str,
        *args: str,
        ok_status: Optional[Collection[int]] = (0,),
        **git_options: str,
    ) -> tuple:
        argv = ["git", command.replace("_", "-"), *args]
        logger.debug(f"Running `{' '.join(argv)}` in {cwd}")

        git = Git(str(cwd))
        if git_options:
            git = git(**git_options)
        try:
            status, stdout, stderr = getattr(git, command)(
                *args, with_extended_output=True, with_exceptions=False
            )
        except GitCommandNotFound as e:
            raise ExecutionFailure(argv, None, str(e)) from e

        if ok_status is not None and status not in ok_status:
            raise ExecutionFailure(argv, status, stderr)
        return status, stdout

    def revision_exists(self, repo_dir: Path, commit: str) -> bool:
        if not commit or commit.startswith("-"):
            return False
        status, _ = self._run(
            repo_dir, "rev_list", "--quiet", "-n1", commit, ok_status=None
        )
        return status == 0

    def clone_shared(self, source: Path, target: Path) -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        self._run(
            target.parent,
            "clone",
            "--quiet",
            "--shared",
            "--no-checkout",
            str(source),
            str(target),
        )

    def reset_hard(self, repo_dir: Path) -> None:
        self._run(repo_dir, "reset", "--hard")

    def clean_untracked(self, repo_dir: Path) -> None:
        # second -f also removes nested repositories (stale submodule checkouts)
        self._run(repo_dir, "clean", "-dfx", "-f")

    def checkout(self, repo_dir: Path, commit: str) -> None:
        self._run(repo_dir, "checkout", "--quiet", commit)

    def submodule_init(self, repo_dir: Path) -> None:
        self._run(repo_dir, "submodule", "--quiet", "init")

    def list_submodule_urls(self, repo_dir: Path) -> List[Submodule]:
        # exit status 1 means no key matched, i.e. no submodules
        _, stdout = self._run(
            repo_dir, "config", "--get-regexp", SUBMODULE_URL_PATTERN, ok_status=(0, 1)
        )
        urls = parse_submodule_config(stdout)
        if not urls or not (repo_dir / ".gitmodules").is_file():
            return []

        _, stdout = self._run(
            repo_dir,
            "config",
            "-f",
            ".gitmodules",
            "--get-regexp",
            SUBMODULE_PATH_PATTERN,
            ok_status=(0, 1),
        )
        paths = parse_submodule_config(stdout)

        # .git/config keeps entries of submodules dropped by later commits
        stale = [name for name in urls if name not in paths]
        if stale:
            logger.debug(
                f"Skipping submodules not declared in .gitmodules: {', '.join(stale)}"
            )

        return [
            Submodule(name=name, path=paths[name], url=url)
            for name, url in urls.items()
            if name in paths
        ]

    def set_submodule_url(self, repo_dir: Path, name: str, url: str) -> None:
        self._run(repo_dir, "config", "--replace-all", f"submodule.{name}.url", url)

    def submodule_update(self, repo_dir: Path, path: str) -> None:
        options = {"c": "protocol.file.allow=always"} if self.allow_file_protocol else {}
        self._run(repo_dir, "submodule", "update", "--", path, **options)
