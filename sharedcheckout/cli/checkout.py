"""CLI commands for materializing checkouts from the shared mirror cache"""

import sys
from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError

from sharedcheckout.cli.utils.logging import logger
from sharedcheckout.config import ConfigAccessor, MaterializerSettings, get_settings
from sharedcheckout.exceptions import (
    InvalidRepositoryIdentifier,
    MaterializeError,
    RefNotFoundError,
)
from sharedcheckout.git import RepositoryMaterializer, parse_repo_path

# Distinct exit status so callers can wait for the mirror to catch up
EXIT_REF_NOT_FOUND = 2


def _load_settings(
    config_file: Optional[str],
    shared_root: Optional[str],
    working_root: Optional[str],
    **overrides,
) -> MaterializerSettings:
    accessor = ConfigAccessor(Path(config_file)) if config_file else None
    try:
        return get_settings(
            accessor,
            shared_root=shared_root,
            working_root=working_root,
            **overrides,
        )
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)


def settings_options(f):
    """Options shared by every command that needs MaterializerSettings."""
    f = click.option(
        "--working-root",
        type=click.Path(file_okay=False),
        default=None,
        help="Directory under which checkouts are created.",
    )(f)
    f = click.option(
        "--shared-root",
        type=click.Path(file_okay=False),
        default=None,
        help="Root of the shared mirror cache.",
    )(f)
    f = click.option(
        "--config",
        "config_file",
        type=click.Path(exists=True, dir_okay=False),
        default=None,
        help="Configuration file (defaults to the user config).",
    )(f)
    return f


@click.command(name="materialize")
@click.argument("repository")
@click.argument("commit")
@settings_options
@click.option(
    "--lock/--no-lock",
    default=None,
    help="Serialize materializations of the same checkout with a file lock.",
)
def materialize(
    repository: str,
    commit: str,
    config_file: Optional[str],
    shared_root: Optional[str],
    working_root: Optional[str],
    lock: Optional[bool],
):
    """Bring the working checkout of REPOSITORY to COMMIT.

    The checkout path is printed on success.

    Example:

      sharedcheckout materialize https://git.example.com/org/app.git abc123
    """
    settings = _load_settings(
        config_file, shared_root, working_root, lock_checkouts=lock
    )

    try:
        checkout_path = RepositoryMaterializer(settings).materialize(
            repository, commit
        )
    except RefNotFoundError as e:
        logger.error(str(e))
        sys.exit(EXIT_REF_NOT_FOUND)
    except MaterializeError as e:
        logger.error(f"Failed to materialize {repository}@{commit}: {e}")
        sys.exit(1)

    click.echo(str(checkout_path))


@click.command(name="paths")
@click.argument("repository")
@settings_options
def paths(
    repository: str,
    config_file: Optional[str],
    shared_root: Optional[str],
    working_root: Optional[str],
):
    """Show the shared mirror and checkout paths for REPOSITORY.

    No git command is run.
    """
    settings = _load_settings(config_file, shared_root, working_root)

    try:
        repo_path = parse_repo_path(repository)
    except InvalidRepositoryIdentifier as e:
        logger.error(str(e))
        sys.exit(1)

    shared_dir = repo_path.shared_dir(settings.shared_root)
    click.echo(f"shared:   {shared_dir}{'' if shared_dir.is_dir() else ' (missing)'}")
    click.echo(f"checkout: {repo_path.checkout_dir(settings.working_root)}")
