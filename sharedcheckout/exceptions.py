"""
Exception classes for repository materialization.
"""

from typing import Optional, Sequence


class MaterializeError(Exception):
    """Base exception for all materialization errors."""

    pass


class InvalidRepositoryIdentifier(MaterializeError, ValueError):
    """Raised when a repository identifier has no `namespace/name.git` segment."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(
            f"Cannot derive a namespace/name.git path from '{identifier}'"
        )


class SharedRepositoryNotFound(MaterializeError):
    """Raised when the shared cache holds no mirror for a repository."""

    def __init__(self, shared_repo_dir: str):
        self.shared_repo_dir = shared_repo_dir
        super().__init__(f"Cannot find repo in shared repos: {shared_repo_dir}")


class RefNotFoundError(MaterializeError):
    """Raised when a commit cannot be resolved in the shared cache."""

    def __init__(self, commit: str, shared_repo_dir: str):
        self.commit = commit
        self.shared_repo_dir = shared_repo_dir
        super().__init__(f"Ref '{commit}' not found in {shared_repo_dir}")


class ExecutionFailure(MaterializeError):
    """Raised when a git command exits with an unexpected status."""

    def __init__(
        self,
        command: Sequence[str],
        status: Optional[int],
        stderr: str = "",
    ):
        self.command = list(command)
        self.status = status
        self.stderr = stderr
        message = f"Command '{' '.join(self.command)}' exited with status {status}"
        if stderr:
            message += f": {stderr.strip()}"
        super().__init__(message)


class CheckoutLockTimeout(MaterializeError):
    """Raised when the per-checkout lock cannot be acquired in time."""

    def __init__(self, lock_file: str, timeout: float):
        self.lock_file = lock_file
        self.timeout = timeout
        super().__init__(
            f"Could not acquire lock for {lock_file} within {timeout} seconds"
        )
