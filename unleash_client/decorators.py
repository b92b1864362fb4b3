"""Feature toggle decorators."""

from __future__ import annotations

import functools
import inspect
import logging
from typing import TYPE_CHECKING, Any, Callable, Optional, TypeVar

if TYPE_CHECKING:
    from unleash_client.client import Unleash

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def feature_flag(
    client: "Unleash",
    toggle_name: str,
    default: bool = False,
    fallback: Optional[Callable[..., Any]] = None,
) -> Callable[[F], F]:
    """Decorator to gate function execution behind a toggle.

    Args:
        client: Client answering the toggle query
        toggle_name: Name of the toggle
        default: Value used if the toggle is not known
        fallback: Called with the same arguments when the toggle is off

    Example:
        @feature_flag(unleash, "new_pricing", fallback=legacy_pricing)
        def pricing(cart):
            return price_v2(cart)
    """

    def decorator(func: F) -> F:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                if client.is_enabled(toggle_name, default):
                    return await func(*args, **kwargs)
                if fallback:
                    result = fallback(*args, **kwargs)
                    if inspect.isawaitable(result):
                        result = await result
                    return result
                logger.debug(f"Toggle '{toggle_name}' is disabled, skipping {func.__name__}")
                return None

            return async_wrapper  # type: ignore

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            if client.is_enabled(toggle_name, default):
                return func(*args, **kwargs)
            elif fallback:
                return fallback(*args, **kwargs)
            else:
                logger.debug(f"Toggle '{toggle_name}' is disabled, skipping {func.__name__}")
                return None

        return wrapper  # type: ignore

    return decorator
