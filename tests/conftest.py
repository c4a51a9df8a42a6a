import io
import logging
from pathlib import Path

import pytest

from sharedcheckout.config import MaterializerSettings

from .repos import add_submodule, commit_files, init_repo, mirror


@pytest.fixture
def capture_logs():
    """Fixture to capture log output during tests."""
    log_stream = io.StringIO()
    handler = logging.StreamHandler(log_stream)
    logger = logging.getLogger("sharedcheckout")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    yield log_stream

    logger.removeHandler(handler)
    log_stream.close()


# git fixtures


@pytest.fixture
def shared_root(tmp_path) -> Path:
    """Root of the shared mirror cache."""
    root = tmp_path / "shared"
    root.mkdir()
    return root


@pytest.fixture
def working_root(tmp_path) -> Path:
    """Root under which checkouts are materialized."""
    return tmp_path / "work"


@pytest.fixture
def settings(shared_root, working_root) -> MaterializerSettings:
    return MaterializerSettings(shared_root=shared_root, working_root=working_root)


@pytest.fixture
def app_repo(tmp_path, shared_root):
    """
    Source repository ``org/app`` with two commits, mirrored into the shared root.

    Returns:
        Tuple of (source_path, [first_sha, second_sha])
    """
    source = tmp_path / "src" / "org" / "app"
    repo = init_repo(source)
    first = commit_files(
        repo,
        {"README.md": "first\n", ".gitignore": "build/\n", "old.txt": "old\n"},
        "first",
    )
    (source / "old.txt").unlink()
    second = commit_files(repo, {"README.md": "second\n", "src/main.c": "int main;\n"}, "second")
    mirror(source, shared_root, "org/app.git")
    return source, [first, second]


@pytest.fixture
def app_with_submodules(tmp_path, shared_root):
    """
    Source repository ``org/super`` with two submodules:

    - ``libs/core`` (named ``core``) from ``org/core``, which has a shared mirror
    - ``ext`` from ``vendor/ext``, which has none

    Returns:
        Dict with the super source path and commit sha, and the source paths of
        both submodules
    """
    core_source = tmp_path / "src" / "org" / "core"
    commit_files(init_repo(core_source), {"core.h": "core\n"}, "core")
    mirror(core_source, shared_root, "org/core.git")

    ext_source = tmp_path / "src" / "vendor" / "ext"
    commit_files(init_repo(ext_source), {"ext.h": "ext\n"}, "ext")

    super_source = tmp_path / "src" / "org" / "super"
    repo = init_repo(super_source)
    commit_files(repo, {"README.md": "super\n"}, "initial")
    add_submodule(repo, core_source, "libs/core", name="core")
    add_submodule(repo, ext_source, "ext")
    sha = commit_files(repo, {}, "add submodules")
    mirror(super_source, shared_root, "org/super.git")

    return {
        "source": super_source,
        "commit": sha,
        "core_source": core_source,
        "ext_source": ext_source,
    }
