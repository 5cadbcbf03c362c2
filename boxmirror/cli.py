"""CLI interface for boxmirror."""

import logging
from pathlib import Path
from typing import Any, Optional

import click

from . import __version__
from .api import BoxClient
from .config import config
from .exceptions import BoxConfigError
from .run_log import RunLog
from .sync import RetryPolicy, RunCoordinator
from .utils import DEFAULT_MAX_RETRY_AFTER, DEFAULT_WORKERS

logger = logging.getLogger(__name__)


def split_folder_ids(tokens: tuple[str, ...]) -> tuple[list[str], list[str]]:
    """Separate folder IDs from unrecognized option markers.

    Args:
        tokens: Positional tokens left over after option parsing

    Returns:
        Tuple of (folder_ids, ignored_tokens)
    """
    folder_ids: list[str] = []
    ignored: list[str] = []
    for token in tokens:
        if token.startswith("-"):
            ignored.append(token)
        else:
            folder_ids.append(token)
    return folder_ids, ignored


def reject_option_marker(
    ctx: Any, param: Any, value: Optional[Path]
) -> Optional[Path]:
    """Refuse an option-like token as the value of a path option."""
    if value is not None and str(value).startswith("-"):
        click.echo(
            f"Warning: {value} is not a valid {param.opts[0]} value, "
            "using the default",
            err=True,
        )
        return None
    return value


@click.command(context_settings={"ignore_unknown_options": True})
@click.argument("folder_ids", nargs=-1)
@click.option(
    "--destination",
    "-d",
    type=click.Path(file_okay=False, path_type=Path),
    callback=reject_option_marker,
    help="Directory to mirror into (default: current directory)",
)
@click.option(
    "--workers",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_WORKERS,
    show_default=True,
    help="Parallel file downloads per root folder",
)
@click.option(
    "--log-dir",
    type=click.Path(file_okay=False, path_type=Path),
    callback=reject_option_marker,
    help="Directory for the activity and error logs (default: ./log)",
)
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="JSON config file with the Box access token",
)
@click.option(
    "--access-token",
    "-t",
    envvar="BOX_ACCESS_TOKEN",
    help="Box access token",
)
@click.option(
    "--max-retry-after",
    type=click.FloatRange(min=0),
    default=DEFAULT_MAX_RETRY_AFTER,
    show_default=True,
    help="Longest wait (seconds) honoured for a single rate limit",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    default=None,
    help="Give up on a root after this many rate-limited attempts "
    "(default: keep retrying)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose/debug logging output",
)
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: Any,
    folder_ids: tuple[str, ...],
    destination: Optional[Path],
    workers: int,
    log_dir: Optional[Path],
    config_file: Optional[Path],
    access_token: Optional[str],
    max_retry_after: float,
    max_attempts: Optional[int],
    verbose: bool,
) -> None:
    """Mirror Box folders to a local directory.

    FOLDER_IDS: One or more Box folder IDs. Each folder is mirrored into
    DESTINATION/<folder name>, and all folders are processed concurrently.

    Examples:
        boxmirror 123456789                       # Mirror into ./<name>
        boxmirror 123 456 --destination ./backup  # Two roots into ./backup
    """
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%H:%M:%S",
        )
        logging.getLogger("boxmirror").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    ids, ignored = split_folder_ids(folder_ids)
    for token in ignored:
        click.echo(f"Warning: ignoring unrecognized option {token}", err=True)
    if not ids:
        click.echo("Error: no folder IDs given", err=True)
        ctx.exit(1)

    try:
        if config_file is not None:
            config.load_file(config_file)
        config.set("access_token", access_token)
        config.set("log_dir", log_dir)
        client = BoxClient()
    except BoxConfigError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(1)

    destination_path = destination or Path.cwd()
    policy = RetryPolicy(max_retry_after=max_retry_after, max_attempts=max_attempts)

    with client, RunLog.open(config.log_dir) as run_log:
        run_log.info(
            f"Mirroring {len(ids)} root folder(s) into {destination_path.resolve()}"
        )
        coordinator = RunCoordinator(
            client,
            destination_path,
            max_workers=workers,
            policy=policy,
            run_log=run_log,
        )
        results = coordinator.run(ids)

        for result in results:
            if result.ok:
                run_log.info(
                    f"Root folder ID {result.folder_id}: completed, "
                    f"{result.files_downloaded} file(s) in {result.attempts} attempt(s)"
                )
            else:
                run_log.info(
                    f"Root folder ID {result.folder_id}: failed ({result.reason})"
                )


if __name__ == "__main__":
    main()
