"""Authentication decorators for function protection.
"""

from __future__ import annotations

import logging
import time
from functools import wraps
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

from walletauth.common.exceptions import (
    DeviceUnavailable,
    NetworkError,
    NotAuthenticated,
)

logger = logging.getLogger(__name__)

TRANSIENT_ERRORS = (DeviceUnavailable, NetworkError)


def requires_authentication(
    auth_client: Any | Callable[[Any], Any] | str,
    error_message: str = "Wallet is not authenticated",
    *,
    raise_exception: bool = True,
) -> Callable:
    """Decorator that ensures function runs only after a completed handshake.

    Args:
        auth_client: WalletAuthClient instance, callable that returns one, or
            the name of an attribute on ``self`` holding one
        error_message: Message to show when not authenticated
        raise_exception: Whether to raise exception or return None

    Returns:
        Decorated function that only executes when authenticated
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            # Get client instance (direct, callable, or attribute name)
            if isinstance(auth_client, str):
                if args:
                    client = getattr(args[0], auth_client)
                else:
                    error_msg = (
                        f"Cannot get client attribute '{auth_client}' without self"
                    )
                    raise ValueError(error_msg)
            elif callable(auth_client) and not hasattr(
                auth_client, "is_authenticated"
            ):
                client = auth_client()
            else:
                client = auth_client

            if not client.is_authenticated():
                if raise_exception:
                    raise NotAuthenticated(error_message)
                logger.warning("Authentication check failed: %s", error_message)
                return None
            return func(*args, **kwargs)

        return wrapper

    return decorator


def retry_on_transient(
    max_retries: int = 3,
    retry_delay: float = 1.0,
) -> Callable:
    """Decorator that retries a call failing with a transient device or network error.

    Declined requests, insecure environments and server rejections are raised
    immediately.

    Args:
        max_retries: Maximum number of retry attempts
        retry_delay: Delay between retries in seconds, doubled after each retry

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = retry_delay
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except TRANSIENT_ERRORS as e:
                    if attempt >= max_retries:
                        raise
                    logger.warning(
                        "%s failed (%s), retrying in %.1fs", func.__name__, e, delay
                    )
                    time.sleep(delay)
                    delay *= 2
            return None

        return wrapper

    return decorator
