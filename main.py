import logging
import sys
from datetime import timedelta
from pathlib import Path

import click

from gitlog.date_utils import format_duration, parse_duration
from gitlog.logging_config import setup_default_logging
from today import __version__
from today.config import OUTPUT_FORMATS, TodayConfig
from today.exceptions import (
    EXIT_FAILURE,
    EXIT_INVALID_DIRECTORY,
    EXIT_MISSING_ARGUMENT,
    VALIDATION_ERRORS,
    TodayError,
)
from today.exporter import Exporter
from today.scanner import RepositoryScanner
from today.types import ErrorPolicy, OrderingPolicy, SelectionCriteria

logger = logging.getLogger(__name__)


class DurationParamType(click.ParamType):
    """Click parameter accepting durations such as 12h, 90m or 1h30m."""
    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, timedelta):
            return value
        try:
            delta = parse_duration(value)
        except (ValueError, OverflowError) as e:
            self.fail(str(e), param, ctx)
        if delta < timedelta(0):
            self.fail(f"{value!r} is negative, the lookback must be zero or more", param, ctx)
        return delta


DURATION = DurationParamType()


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("directories", nargs=-1, metavar="GIT_DIRECTORY...")
@click.option('--since', type=DURATION, default=None,
              help="How far back to check for commits from now (default: 12h)")
@click.option('--short', is_flag=True, help="Display the first line of commit messages only")
@click.option('--author', default=None, help="Display commits whose author name contains this text")
@click.option('--full-scan', is_flag=True,
              help="Walk the whole history instead of stopping at the first older commit")
@click.option('--keep-going', is_flag=True,
              help="Report directories that fail and continue with the rest")
@click.option('--format', 'output_format', type=click.Choice(OUTPUT_FORMATS), default=None,
              help="Output format (default: text)")
@click.option('--config', 'config_path', type=click.Path(dir_okay=False, path_type=Path), default=None,
              help="Path to a YAML configuration file")
@click.option('--verbose', '-v', is_flag=True, help="Enable verbose (DEBUG level) logging")
@click.option('--quiet', '-q', is_flag=True, help="Suppress all logging output")
@click.version_option(__version__, prog_name="today")
@click.pass_context
def cli(ctx, directories, since, short, author, full_scan, keep_going, output_format, config_path, verbose, quiet):
    """today - what did I commit recently?

    Prints the commit messages authored within the lookback window for each
    GIT_DIRECTORY, most recent first.
    """
    if not directories:
        click.echo("Missing mandatory argument: git_directory", err=True)
        click.echo(ctx.get_usage(), err=True)
        sys.exit(EXIT_MISSING_ARGUMENT)

    try:
        config = TodayConfig.load(config_path)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURE)

    # Set up logging based on flags
    if quiet:
        logging.disable(logging.CRITICAL)
    else:
        logging.disable(logging.NOTSET)
        setup_default_logging(
            verbose=verbose,
            log_file=config.get_log_file(),
            console_level=config.get_console_level(),
        )

    lookback = since if since is not None else parse_duration(config.selection.since)
    ordering = OrderingPolicy.FULL_SCAN if (full_scan or config.selection.full_scan) else OrderingPolicy.EARLY_EXIT
    try:
        criteria = SelectionCriteria.from_lookback(
            lookback,
            author=author if author is not None else config.selection.author,
            truncate=short or config.selection.short,
            ordering=ordering,
        )
    except ValueError as e:
        raise click.BadParameter(str(e), ctx=ctx, param_hint="'--since'")

    logger.info(
        f"Starting run (since={format_duration(lookback)}, author={criteria.author!r}, "
        f"short={criteria.truncate}, ordering={criteria.ordering})"
    )

    error_policy = ErrorPolicy.KEEP_GOING if keep_going else ErrorPolicy.ABORT
    scanner = RepositoryScanner(error_policy=error_policy)

    try:
        run_result = scanner.scan_all(directories, criteria)
    except VALIDATION_ERRORS as e:
        # Directories must be tracked by git so that we can read commit messages
        logger.error(f"Invalid directory: {e}")
        click.echo(str(e), err=True)
        sys.exit(EXIT_INVALID_DIRECTORY)
    except TodayError as e:
        logger.error(f"Run failed: {type(e).__name__}: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_FAILURE)

    click.echo(Exporter(config.output).export(run_result, output_format))

    if run_result.errors:
        click.echo(f"{len(run_result.errors)} directories could not be read", err=True)
        sys.exit(EXIT_FAILURE)

    logger.info(f"Run completed: {run_result.total_messages} messages")


if __name__ == "__main__":
    cli()
