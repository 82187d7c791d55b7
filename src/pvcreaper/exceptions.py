"""Exceptions for the reaper."""

from __future__ import annotations

from typing import Self, override

from kubernetes_asyncio.client import ApiException
from safir.slack.blockkit import (
    SlackCodeBlock,
    SlackException,
    SlackMessage,
    SlackTextBlock,
    SlackTextField,
)
from safir.slack.sentry import SentryEventInfo

__all__ = ["KubernetesClientError", "KubernetesError"]


class KubernetesClientError(SlackException):
    """No Kubernetes client could be configured at startup."""


class KubernetesError(SlackException):
    """An API call to Kubernetes failed.

    Parameters
    ----------
    message
        Summary of error.
    kind
        Kind of object being acted on.
    namespace
        Namespace of object being acted on.
    name
        Name of object being acted on.
    status
        Status code of failure, if any.
    body
        Body of failure message, if any.
    """

    @classmethod
    def from_exception(
        cls,
        message: str,
        exc: ApiException,
        *,
        kind: str | None = None,
        namespace: str | None = None,
        name: str | None = None,
    ) -> Self:
        """Create an exception from a Kubernetes API exception.

        Parameters
        ----------
        message
            Brief explanation of what was being attempted.
        exc
            Kubernetes API exception.
        kind
            Kind of object being acted on.
        namespace
            Namespace of object being acted on.
        name
            Name of object being acted on.

        Returns
        -------
        KubernetesError
            Newly-created exception.
        """
        return cls(
            message,
            kind=kind,
            namespace=namespace,
            name=name,
            status=exc.status,
            body=exc.body if exc.body else exc.reason,
        )

    def __init__(
        self,
        message: str,
        *,
        kind: str | None = None,
        namespace: str | None = None,
        name: str | None = None,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.namespace = namespace
        self.name = name
        self.status = status
        self.body = body

    @property
    def target(self) -> str | None:
        """Kind and name of the object acted on, such as ``Pod ns/name``."""
        name = self.name
        if name and self.namespace:
            name = f"{self.namespace}/{name}"
        return " ".join(p for p in (self.kind, name) if p) or None

    @override
    def __str__(self) -> str:
        result = self._summary()
        if self.body:
            result += f": {self.body}"
        return result

    @override
    def to_slack(self) -> SlackMessage:
        """Convert to a Slack message for Slack alerting.

        Returns
        -------
        safir.slack.blockkit.SlackMessage
            Slack message suitable for posting as an alert.
        """
        message = super().to_slack()
        message.message = self._summary()
        if self.status:
            field = SlackTextField(heading="Status", text=str(self.status))
            message.fields.append(field)
        if self.target:
            block = SlackTextBlock(heading="Object", text=self.target)
            message.blocks.append(block)
        if self.body:
            code = SlackCodeBlock(heading="Error", code=self.body)
            message.blocks.append(code)
        return message

    @override
    def to_sentry(self) -> SentryEventInfo:
        """Return Sentry event metadata about the exception."""
        info = super().to_sentry()
        if self.target:
            info.tags["object"] = self.target
        if self.status:
            info.tags["status"] = str(self.status)
        if self.body:
            info.attachments["body"] = self.body
        return info

    def _summary(self) -> str:
        """Summarize the exception on one line, without the body."""
        details = []
        if self.target:
            details.append(self.target)
        if self.status:
            details.append(f"status {self.status}")
        if not details:
            return self.message
        return f"{self.message} ({', '.join(details)})"
