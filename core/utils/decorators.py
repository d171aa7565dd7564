"""Reusable decorators for the gateway."""

import functools
import inspect
import time
from typing import Callable, Type

from core.utils.logging import get_logger

logger = get_logger(__name__)


def log_time(func: Callable) -> Callable:
    """
    Log execution time of a function, including failed calls.

    Usage:
        @log_time
        def get_secrets(self, workspace_id):
            ...
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed = time.perf_counter() - start
            logger.info(f"{func.__name__} completed in {elapsed:.3f}s")

    return wrapper


def validate_args(
    error_cls: Type[Exception] = ValueError, **validators: Callable
) -> Callable:
    """
    Validate function arguments before the call.

    Args:
        error_cls: Exception raised for an invalid argument
        **validators: arg_name=(predicate, message) pairs

    Usage:
        @validate_args(workspace_id=(bool, "workspaceId is required"))
        def get_environments(self, workspace_id):
            ...
    """

    def decorator(func: Callable) -> Callable:
        sig = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            bound = sig.bind(*args, **kwargs)
            bound.apply_defaults()

            for arg_name, (predicate, message) in validators.items():
                if arg_name in bound.arguments and not predicate(
                    bound.arguments[arg_name]
                ):
                    raise error_cls(message)

            return func(*args, **kwargs)

        return wrapper

    return decorator
