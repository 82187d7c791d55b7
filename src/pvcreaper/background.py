"""Periodic execution of reconciliation passes."""

from __future__ import annotations

import asyncio
from contextlib import suppress
from datetime import timedelta

from safir.datetime import current_datetime
from safir.slack.blockkit import SlackException
from safir.slack.webhook import SlackWebhookClient
from structlog.stdlib import BoundLogger

from .services.reaper import Reaper

__all__ = ["ReaperLoop"]


class ReaperLoop:
    """Run reconciliation passes on a fixed interval until stopped.

    Passes never overlap: each runs to completion before the wait for the
    next one starts. Stopping only takes effect between passes, so a pass
    that is in progress is always allowed to finish.

    Parameters
    ----------
    reaper
        Reaper that performs a single pass.
    interval
        Time from the start of one pass to the start of the next.
    slack_client
        Optional Slack webhook client for alerts.
    logger
        Logger to use.
    """

    def __init__(
        self,
        *,
        reaper: Reaper,
        interval: timedelta,
        slack_client: SlackWebhookClient | None,
        logger: BoundLogger,
    ) -> None:
        self._reaper = reaper
        self._interval = interval
        self._slack = slack_client
        self._logger = logger
        self._stopping = asyncio.Event()

    @property
    def stopping(self) -> bool:
        """Whether a stop has been requested."""
        return self._stopping.is_set()

    def stop(self) -> None:
        """Ask the loop to exit once the current pass, if any, finishes."""
        if not self._stopping.is_set():
            self._logger.info("Shutdown requested")
        self._stopping.set()

    async def run(self) -> None:
        """Run passes until `stop` is called.

        A failed pass is logged (and reported to Slack if configured) and the
        loop carries on, so the next pass retries from scratch.
        """
        interval = self._interval.total_seconds()
        self._logger.info("Starting reconciliation loop", interval=interval)
        while not self._stopping.is_set():
            start = current_datetime(microseconds=True)
            try:
                await self._reaper.reap()
            except Exception as e:
                # On failure, log the exception but otherwise continue as
                # normal, including the delay. This will provide some time for
                # whatever the problem was to be resolved.
                elapsed = current_datetime(microseconds=True) - start
                self._logger.exception(
                    "Reconciliation pass failed",
                    elapsed=elapsed.total_seconds(),
                )
                await self._alert(e)
            now = current_datetime(microseconds=True)
            delay = self._interval - (now - start)
            if delay.total_seconds() < 1:
                msg = "Reconciliation is running continuously"
                self._logger.warning(msg)
                continue
            with suppress(TimeoutError):
                await asyncio.wait_for(
                    self._stopping.wait(), delay.total_seconds()
                )
        self._logger.info("Reconciliation loop stopped")

    async def _alert(self, exc: Exception) -> None:
        """Report a failed pass to Slack, if configured."""
        if not self._slack:
            return
        if isinstance(exc, SlackException):
            await self._slack.post_exception(exc)
        else:
            await self._slack.post_uncaught_exception(exc)
