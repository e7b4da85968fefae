"""Split delivery failures into transient (connectivity) and surfaced ones."""

from __future__ import annotations

from queuecord.delivery.types import Failed

DEFAULT_ERROR_MESSAGE = "Failed to send message"

# Lowercase substrings of OS/resolver errors meaning "no network path right now".
TRANSIENT_SIGNATURES: tuple[str, ...] = (
    # host resolution failure
    "unable to resolve host",
    "name or service not known",
    "temporary failure in name resolution",
    "nodename nor servname provided",
    "getaddrinfo failed",
    # hostname has no address
    "no address associated with hostname",
    "network is unreachable",
    "connection refused",
)


def is_transient_failure(failure: Failed) -> bool:
    detail = failure.detail.lower()
    return any(signature in detail for signature in TRANSIENT_SIGNATURES)


def describe_failure(failure: Failed) -> str:
    """Human-readable text for the error slot."""
    return failure.detail.strip() or DEFAULT_ERROR_MESSAGE
