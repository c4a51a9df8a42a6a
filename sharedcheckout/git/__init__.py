"""
Git operations module for sharedcheckout.

Materializes per-worker checkouts at a given commit, cloning with
`git clone --shared` from an NFS-mounted cache of bare mirrors:

    - Shared cache: <shared_root>/{namespace}/{name}.git (read-only here)
    - Working checkout: <working_root>/{namespace}/{name}
"""

from .materializer import RepositoryMaterializer, materialize
from .operations import GitCommandOperations, GitOperations, Submodule
from .paths import (
    RepoPath,
    checkout_path_for,
    parse_repo_path,
    parse_submodule_repo_path,
    shared_repo_dir_for,
)

__all__ = [
    "RepositoryMaterializer",
    "materialize",
    "GitCommandOperations",
    "GitOperations",
    "Submodule",
    "RepoPath",
    "checkout_path_for",
    "parse_repo_path",
    "parse_submodule_repo_path",
    "shared_repo_dir_for",
]
