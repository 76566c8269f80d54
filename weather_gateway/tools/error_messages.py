"""User-friendly error messages and safe tool wrapper."""

import logging

from weather_gateway.clients.errors import (
    InvalidInputError,
    UpstreamError,
    UpstreamNotFoundError,
    UpstreamUnavailableError,
)

logger = logging.getLogger(__name__)


def get_user_message(error: Exception, context: dict | None = None) -> str:
    """Map an exception to a user-friendly message.

    Args:
        error: The exception to translate.
        context: Optional dict with extra info (e.g. {"city": "London"}).

    Returns:
        A human-readable error message.
    """
    city = (context or {}).get("city") or "that city"

    if isinstance(error, InvalidInputError):
        return "Please provide a city name, e.g. 'London'."
    if isinstance(error, UpstreamNotFoundError):
        return f"Could not find weather for {city}. Check the spelling and try again."
    if isinstance(error, UpstreamUnavailableError):
        return (
            "The weather service is temporarily unavailable. "
            "Please try again shortly."
        )
    if isinstance(error, UpstreamError):
        return f"Could not complete the request for {city}. {error}"
    return "Something went wrong. Please try again or contact support."


async def safe_tool_wrapper(
    func,  # type: ignore[no-untyped-def]
    *args: object,
    context: dict | None = None,
    **kwargs: object,
) -> str:
    """Call an async function, catching errors and returning friendly messages.

    Args:
        func: Async callable to invoke.
        *args: Positional arguments for *func*.
        context: Optional context dict for error messages.
        **kwargs: Keyword arguments for *func*.

    Returns:
        The function's return value on success, or a user-friendly error string.
    """
    try:
        return await func(*args, **kwargs)
    except InvalidInputError as exc:
        logger.info("Rejected tool input in %s: %s", func.__name__, exc)
        return get_user_message(exc, context)
    except UpstreamError as exc:
        logger.warning("Upstream error in %s: %s", func.__name__, exc)
        return get_user_message(exc, context)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool error in %s", func.__name__)
        return get_user_message(exc, context)
