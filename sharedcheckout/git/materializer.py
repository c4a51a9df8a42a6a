"""
Materialize working checkouts from the shared mirror cache.

Architecture Overview:
======================

Two locations per repository:
    1. Shared cache (read-only here)
       - Location: <shared_root>/{namespace}/{name}.git
       - Bare mirror on an NFS mount, kept fresh by an external mirroring job
       - Used as clone source and object store; never written to

    2. Working checkout (per worker)
       - Location: <working_root>/{namespace}/{name}
       - Created once with `git clone --shared --no-checkout`, so objects are
         read through alternates instead of being copied
       - Reset, cleaned and checked out in place for every build

Since the mirror is continually up to date, an existing checkout is never
fetched. Resolving a moving branch name is the caller's job; commit-pinned
builds need nothing more.

Submodules get the same treatment one level deep: each submodule whose
mirror exists under the shared root has its URL rewritten to that mirror
before `git submodule update`. Submodules without a mirror keep their
declared URL.

Usage:
    settings = get_settings()
    materializer = RepositoryMaterializer(settings)
    path = materializer.materialize("https://git.example.com/org/app.git", "abc123")

    # Or with the configured defaults
    path = materialize("https://git.example.com/org/app.git", "abc123")

Concurrency:
    Different repositories can be materialized concurrently. Materializations
    of the same checkout are serialized with a file lock next to the checkout
    directory unless `lock_checkouts` is disabled.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from filelock import FileLock, Timeout

from sharedcheckout.config import MaterializerSettings, get_settings
from sharedcheckout.exceptions import (
    CheckoutLockTimeout,
    RefNotFoundError,
    SharedRepositoryNotFound,
)
from sharedcheckout.git.operations import GitCommandOperations, GitOperations
from sharedcheckout.git.paths import parse_repo_path, parse_submodule_repo_path
from sharedcheckout.timing import benchmark

logger = logging.getLogger(__name__)


class RepositoryMaterializer:
    """
    Brings a per-worker checkout to a given commit using the shared mirror cache.

    The procedure touches nothing outside the checkout directory and its
    lock file. Any failing git command aborts the remaining steps; there are
    no retries at this layer.
    """

    def __init__(
        self,
        settings: MaterializerSettings,
        operations: Optional[GitOperations] = None,
    ):
        """
        Args:
            settings: Shared root, working root and locking options
            operations: Version-control backend (defaults to the git binary)
        """
        self.settings = settings
        if operations is None:
            operations = GitCommandOperations(
                allow_file_protocol=settings.allow_file_protocol
            )
        self.operations = operations

    def materialize(self, repository_identifier: str, commit: str) -> Path:
        """
        Ensure the working checkout for a repository reflects a commit.

        Args:
            repository_identifier: Repository URL ending in ``namespace/name.git``
            commit: Commit hash or ref that must exist in the shared mirror

        Returns:
            Path to the working checkout

        Raises:
            InvalidRepositoryIdentifier: Identifier has no namespace/name.git segment
            SharedRepositoryNotFound: No mirror under the shared root
            RefNotFoundError: Commit is not (yet) in the mirror
            ExecutionFailure: Any other git command failed
            CheckoutLockTimeout: Checkout lock not acquired within lock_timeout
        """
        with benchmark(
            f"SharedCache.materialize({repository_identifier}, {commit})"
        ):
            repo_path = parse_repo_path(repository_identifier)

            shared_repo_dir = repo_path.shared_dir(self.settings.shared_root)
            if not shared_repo_dir.is_dir():
                raise SharedRepositoryNotFound(str(shared_repo_dir))

            if not self.operations.revision_exists(shared_repo_dir, commit):
                raise RefNotFoundError(commit, str(shared_repo_dir))

            checkout_path = repo_path.checkout_dir(self.settings.working_root)
            with self._checkout_lock(checkout_path):
                self._prepare_checkout(shared_repo_dir, checkout_path, commit)
                self._sync_submodules(checkout_path)

            return checkout_path

    @contextmanager
    def _checkout_lock(self, checkout_path: Path) -> Iterator[None]:
        if not self.settings.lock_checkouts:
            yield
            return

        lock_file = checkout_path.with_name(f"{checkout_path.name}.lock")
        lock_file.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(str(lock_file), timeout=self.settings.lock_timeout)
        try:
            lock.acquire()
        except Timeout as e:
            raise CheckoutLockTimeout(str(lock_file), self.settings.lock_timeout) from e
        try:
            yield
        finally:
            lock.release()

    def _prepare_checkout(
        self, shared_repo_dir: Path, checkout_path: Path, commit: str
    ) -> None:
        if not checkout_path.exists():
            logger.info(f"Cloning {shared_repo_dir} to {checkout_path} (shared)")
            self.operations.clone_shared(shared_repo_dir, checkout_path)

        self.operations.reset_hard(checkout_path)
        self.operations.clean_untracked(checkout_path)
        self.operations.checkout(checkout_path, commit)
        logger.debug(f"Checked out {commit} in {checkout_path}")

    def _sync_submodules(self, checkout_path: Path) -> None:
        self.operations.submodule_init(checkout_path)

        for submodule in self.operations.list_submodule_urls(checkout_path):
            # best effort: point at the shared mirror when there is one
            submodule_repo = parse_submodule_repo_path(submodule.url)
            if submodule_repo is not None:
                shared_dir = submodule_repo.shared_dir(self.settings.shared_root)
                if shared_dir.is_dir():
                    logger.info(
                        f"Using shared mirror {shared_dir} for submodule {submodule.name}"
                    )
                    self.operations.set_submodule_url(
                        checkout_path, submodule.name, str(shared_dir)
                    )

            self.operations.submodule_update(checkout_path, submodule.path)


def materialize(
    repository_identifier: str,
    commit: str,
    settings: Optional[MaterializerSettings] = None,
) -> Path:
    """
    Materialize a checkout using the configured settings.

    Args:
        repository_identifier: Repository URL ending in ``namespace/name.git``
        commit: Commit hash or ref
        settings: Explicit settings (defaults to get_settings())

    Returns:
        Path to the working checkout
    """
    if settings is None:
        settings = get_settings()
    return RepositoryMaterializer(settings).materialize(repository_identifier, commit)
