"""Tests for repository identifier parsing and path derivation."""

from pathlib import Path

import pytest

from sharedcheckout.exceptions import InvalidRepositoryIdentifier
from sharedcheckout.git.paths import (
    RepoPath,
    checkout_path_for,
    parse_repo_path,
    parse_submodule_repo_path,
    shared_repo_dir_for,
)


class TestParseRepoPath:
    """Test extraction of the trailing namespace/name.git segment."""

    @pytest.mark.short
    def test_https(self):
        assert parse_repo_path("https://git.example.com/org/app.git") == RepoPath(
            "org", "app"
        )

    @pytest.mark.short
    def test_scp_style(self):
        assert parse_repo_path("git@git.example.com:org/app.git") == RepoPath(
            "org", "app"
        )

    @pytest.mark.short
    def test_ssh_url_with_port(self):
        assert parse_repo_path("ssh://git@git.example.com:2222/org/app.git") == RepoPath(
            "org", "app"
        )

    @pytest.mark.short
    def test_deep_path_keeps_last_two_components(self):
        url = "https://gitlab.example.com/group/subgroup/project.git"
        assert parse_repo_path(url) == RepoPath("subgroup", "project")

    @pytest.mark.short
    def test_filesystem_path(self):
        assert parse_repo_path("/mnt/nfs/git/org/app.git") == RepoPath("org", "app")

    @pytest.mark.short
    def test_bare_segment(self):
        assert parse_repo_path("org/app.git") == RepoPath("org", "app")

    @pytest.mark.short
    def test_trailing_slash(self):
        assert parse_repo_path("https://git.example.com/org/app.git/") == RepoPath(
            "org", "app"
        )

    @pytest.mark.short
    def test_dotted_name(self):
        assert parse_repo_path("https://host/org/my.app.git") == RepoPath(
            "org", "my.app"
        )

    @pytest.mark.short
    @pytest.mark.parametrize(
        "identifier",
        [
            "https://git.example.com/org/app",
            "app.git",
            "https://git.example.com/.git",
            "",
            "git@host:app.git",
            "https://git.example.com/../app.git",
            "https://git.example.com/./app.git",
            "https://git.example.com/org/..git",
            "https://git.example.com/org/...git",
            "git@host:../app.git",
        ],
    )
    def test_invalid(self, identifier):
        with pytest.raises(InvalidRepositoryIdentifier) as exc_info:
            parse_repo_path(identifier)
        assert exc_info.value.identifier == identifier

    @pytest.mark.short
    def test_invalid_is_value_error(self):
        with pytest.raises(ValueError):
            parse_repo_path("not a repo")


class TestRepoPath:
    @pytest.mark.short
    def test_relative_paths(self):
        repo_path = RepoPath("org", "app")
        assert repo_path.relative == "org/app.git"
        assert repo_path.checkout_relative == "org/app"

    @pytest.mark.short
    def test_checkout_dir_strips_git_suffix(self, tmp_path):
        checkout = checkout_path_for("https://git.example.com/org/app.git", tmp_path)
        assert checkout == tmp_path / "org" / "app"
        assert not checkout.name.endswith(".git")

    @pytest.mark.short
    def test_shared_dir(self):
        shared = shared_repo_dir_for("git@host:org/app.git", "/mnt/nfs/git")
        assert shared == Path("/mnt/nfs/git/org/app.git")


class TestParseSubmoduleRepoPath:
    """Submodule URLs are parsed leniently."""

    @pytest.mark.short
    def test_with_suffix(self):
        assert parse_submodule_repo_path("https://host/org/lib.git") == RepoPath(
            "org", "lib"
        )

    @pytest.mark.short
    def test_without_suffix(self):
        assert parse_submodule_repo_path("https://host/org/lib") == RepoPath(
            "org", "lib"
        )

    @pytest.mark.short
    def test_scp_style(self):
        assert parse_submodule_repo_path("git@host:org/lib") == RepoPath("org", "lib")

    @pytest.mark.short
    def test_local_path(self):
        assert parse_submodule_repo_path("/srv/src/vendor/ext/") == RepoPath(
            "vendor", "ext"
        )

    @pytest.mark.short
    def test_single_component(self):
        assert parse_submodule_repo_path("lib") is None

    @pytest.mark.short
    @pytest.mark.parametrize(
        "url",
        [
            "https://host/../lib",
            "https://host/./lib.git",
            "https://host/org/..",
            "https://host/org/..git",
            "/srv/src/vendor/.",
        ],
    )
    def test_dot_segments(self, url):
        assert parse_submodule_repo_path(url) is None


@pytest.mark.short
def test_dot_segments_never_leave_the_working_root(tmp_path):
    for identifier in ("https://h/org/...git", "https://h/../app.git"):
        with pytest.raises(InvalidRepositoryIdentifier):
            checkout_path_for(identifier, tmp_path)
