"""Exception hierarchy and HTTP status classification for upstream calls."""

import httpx


# ── Exception Hierarchy ──────────────────────────────────────────────────────


class WeatherGatewayError(Exception):
    """Base class for all weather gateway errors."""


class InvalidInputError(WeatherGatewayError, ValueError):
    """The request subject is empty or malformed. Raised before any I/O."""


class UpstreamError(WeatherGatewayError):
    """Base class for failures of the upstream weather provider."""


class UpstreamNotFoundError(UpstreamError):
    """The provider reports that the requested city does not exist (404)."""


class UpstreamUnavailableError(UpstreamError):
    """Network, status or parse failure talking to the provider."""


# ── Response Classification ──────────────────────────────────────────────────


def classify_response(response: httpx.Response, subject: str | None = None) -> None:
    """Raise an appropriate error based on HTTP status code.

    Args:
        response: The upstream response.
        subject: Optional name of the thing requested, used in the 404 message.

    Raises:
        UpstreamNotFoundError: On 404.
        UpstreamUnavailableError: On any other non-2xx status.
    """
    status = response.status_code
    if 200 <= status < 300:
        return

    if status == 404:
        if subject:
            raise UpstreamNotFoundError(f"city '{subject}' not found")
        raise UpstreamNotFoundError(f"Resource not found (HTTP {status})")
    raise UpstreamUnavailableError(f"Weather API returned status {status}")
