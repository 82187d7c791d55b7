"""CLI for the PVC reaper."""

import asyncio
import functools
import os
import signal
from collections.abc import Awaitable, Callable
from datetime import timedelta
from pathlib import Path
from typing import Any

import click
from safir.asyncio import run_with_asyncio
from safir.click import display_help
from safir.datetime import parse_timedelta
from safir.sentry import initialize_sentry, report_exception
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import get_logger

from . import __version__
from .config import Config
from .constants import ALERT_HOOK_ENV_VAR, CONFIG_FILE_ENV_VAR, ROOT_LOGGER
from .factory import Factory

__all__ = ["main", "main_with_sentry"]


def _common[R](
    func: Callable[[Config], Awaitable[R]],
) -> Callable[..., R]:
    """Add common Click options and error reporting to a command.

    The decorated command receives the resulting `Config` instead of the
    individual options.
    """

    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging",
    )
    @click.option(
        "--dry-run",
        "-x",
        is_flag=True,
        help="Do not delete, but report what would be deleted",
    )
    @click.option(
        "--config-file",
        "-c",
        envvar=CONFIG_FILE_ENV_VAR,
        help="Application configuration file",
        type=Path,
        default=None,
    )
    @click.option(
        "--storage-class",
        "storage_classes",
        multiple=True,
        help="Storage class to manage (may be repeated)",
    )
    @click.option(
        "--storage-provisioner",
        default=None,
        help="Storage provisioner to manage",
    )
    @click.option(
        "--interval",
        type=parse_timedelta,
        default=None,
        help="Time between reconciliation passes, such as 60s or 5m",
    )
    @click.option(
        "--threshold",
        type=parse_timedelta,
        default=None,
        help="How long a pod must be unschedulable, such as 2m",
    )
    @click.option(
        "--check-unschedulable-pods/--no-check-unschedulable-pods",
        default=None,
        help="Whether to delete claims of long-unschedulable pods",
    )
    @run_with_asyncio
    @functools.wraps(func)
    async def wrapper(**kwargs: Any) -> R:
        # Configure slack alerting and report any exceptions
        logger = get_logger(ROOT_LOGGER)
        if alert_hook := os.environ.get(ALERT_HOOK_ENV_VAR, None):
            slack_client = SlackWebhookClient(
                alert_hook,
                "PVC Reaper",
                logger=logger,
            )
        else:
            slack_client = None

        try:
            config = _make_config(**kwargs)
            return await func(config)
        except Exception as exc:
            await report_exception(exc, slack_client)
            raise

    return wrapper


def _make_config(
    *,
    config_file: Path | None,
    debug: bool,
    dry_run: bool,
    storage_classes: tuple[str, ...],
    storage_provisioner: str | None,
    interval: timedelta | None,
    threshold: timedelta | None,
    check_unschedulable_pods: bool | None,
) -> Config:
    """Construct the configuration, overriding it from CLI options."""
    config = Config.from_file(config_file)

    # For flags, if specified, use that, and if not, do whatever the config
    # says.
    if debug:
        config.debug = debug
        config.configure_logging()
    if dry_run:
        config.dry_run = dry_run
    if storage_classes:
        config.storage_classes = list(storage_classes)
    if storage_provisioner:
        config.storage_provisioner = storage_provisioner
    if interval:
        config.reap_interval = interval
    if threshold:
        config.unschedulable_pod_threshold = threshold
    if check_unschedulable_pods is not None:
        config.check_unschedulable_pods = check_unschedulable_pods

    logger = get_logger(ROOT_LOGGER)
    logger.info(
        "PVC reaper configured",
        version=__version__,
        config=config.to_logging_dict(),
    )
    return config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, message="%(version)s")
def main() -> None:
    """PVC reaper command-line interface."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.argument("subtopic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None, subtopic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic, subtopic)


@main.command
@_common
async def run(config: Config) -> None:
    """Delete stranded claims periodically until signalled to stop."""
    async with Factory.standalone(config) as factory:
        reaper_loop = factory.create_reaper_loop()
        event_loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            event_loop.add_signal_handler(sig, reaper_loop.stop)
        await reaper_loop.run()


@main.command
@_common
async def reap(config: Config) -> None:
    """Run a single reconciliation pass and exit."""
    async with Factory.standalone(config) as factory:
        await factory.create_reaper().reap()


@main.command
@_common
async def report(config: Config) -> None:
    """Report which claims would be deleted, without deleting any."""
    async with Factory.standalone(config) as factory:
        await factory.create_reaper().report()


def main_with_sentry() -> None:
    """Call the main command group after initializing Sentry."""
    initialize_sentry(release=__version__)
    main()
