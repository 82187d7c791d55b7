"""Tests for reaper exceptions."""

from __future__ import annotations

from kubernetes_asyncio.client import ApiException
from safir.slack.blockkit import SlackCodeBlock, SlackTextBlock

from pvcreaper.exceptions import KubernetesError


def test_kubernetes_error() -> None:
    exc = ApiException(status=409, reason="Conflict")
    error = KubernetesError.from_exception(
        "Error deleting PersistentVolumeClaim",
        exc,
        kind="PersistentVolumeClaim",
        namespace="a",
        name="c1",
    )
    assert error.target == "PersistentVolumeClaim a/c1"
    summary = (
        "Error deleting PersistentVolumeClaim"
        " (PersistentVolumeClaim a/c1, status 409)"
    )
    assert str(error) == f"{summary}: Conflict"

    message = error.to_slack()
    assert message.message == summary
    assert SlackTextBlock(heading="Object", text=error.target) in (
        message.blocks
    )
    assert SlackCodeBlock(heading="Error", code="Conflict") in message.blocks

    info = error.to_sentry()
    assert info.tags["object"] == "PersistentVolumeClaim a/c1"
    assert info.tags["status"] == "409"
    assert info.attachments["body"] == "Conflict"


def test_partial_details() -> None:
    error = KubernetesError("Error listing nodes", kind="Node")
    assert error.target == "Node"
    assert str(error) == "Error listing nodes (Node)"

    error = KubernetesError("Error listing nodes")
    assert error.target is None
    assert str(error) == "Error listing nodes"
