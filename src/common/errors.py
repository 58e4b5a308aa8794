"""
Error types and HTTP status helpers shared by the enrichment providers.
"""

from collections.abc import Mapping


class EnrichmentConfigError(ValueError):
    """Raised when the enrichment subsystem cannot run with the given configuration."""


def describe_http_status(status_code: int, messages: Mapping[int, str] | None = None) -> str:
    """
    Map an HTTP status code to a human readable message.

    Args:
        status_code: Status returned by the provider API.
        messages: Provider specific messages keyed by status code.

    Returns:
        The provider message when the status is known, else "API error: <status>".
    """
    if messages and status_code in messages:
        return messages[status_code]
    return f"API error: {status_code}"
