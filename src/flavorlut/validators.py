"""
Validation decorators for flavorlut.

Provides reusable argument checking for builders, mappers, pipelines and previews.
"""

from __future__ import annotations

from collections.abc import Callable
from functools import wraps
from typing import Any, TypeAlias

# Type alias for callables
F: TypeAlias = Callable[..., Any]


def _get_argument(args: tuple, kwargs: dict, param_name: str, param_index: int) -> tuple[bool, Any]:
    if len(args) > param_index:
        return True, args[param_index]
    if param_name in kwargs:
        return True, kwargs[param_name]
    return False, None


def validate_range(
    min_val: float,
    max_val: float,
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating numeric parameter ranges.

    Args:
        min_val: Minimum allowed value (inclusive)
        max_val: Maximum allowed value (inclusive)
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature (default: 1 = first arg after self)

    Returns:
        Decorated function with range validation

    Example:
        >>> @validate_range(1, 256, 'slab_size')
        ... def __init__(self, slab_size: int = 16):
        ...     self.slab_size = slab_size
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _get_argument(args, kwargs, param_name, param_index)
            if not found:
                # No value provided, let function handle it
                return func(*args, **kwargs)

            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise TypeError(
                    f"{param_name} must be a number, got {type(value).__name__}. "
                    f"Provide a numeric value (int or float)."
                )

            if not min_val <= value <= max_val:
                suggestion = ""
                if param_name == "slab_size":
                    suggestion = " Smaller slabs check for cancellation more often at a small throughput cost."
                elif "swatch" in param_name:
                    suggestion = " Use a pixel count such as 40 or 60."
                elif param_name == "margin":
                    suggestion = " Use a pixel count such as 5 or 10; 0 packs swatches edge to edge."
                elif param_name == "grid_size":
                    suggestion = " The default 5x5 grid holds 25 swatches."

                raise ValueError(
                    f"{param_name}={value} is outside valid range [{min_val}, {max_val}].{suggestion}"
                )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_positive(param_name: str = "value", param_index: int = 1) -> Callable[[F], F]:
    """
    Decorator for validating positive numeric parameters.

    Args:
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with positive validation

    Example:
        >>> @validate_positive('max_jobs')
        ... def __init__(self, max_jobs: int = 2):
        ...     self.max_jobs = max_jobs
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _get_argument(args, kwargs, param_name, param_index)
            if not found:
                return func(*args, **kwargs)

            if not isinstance(value, (int, float)) or isinstance(value, bool):
                raise TypeError(
                    f"{param_name} must be a number, got {type(value).__name__}. "
                    f"Provide a numeric value (int or float)."
                )

            if value <= 0:
                suggestion = ""
                if "jobs" in param_name:
                    suggestion = " At least one job must be allowed to run. The default is 2."

                raise ValueError(f"{param_name}={value} must be positive (> 0).{suggestion}")

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator


def validate_type(
    expected_type: type | tuple[type, ...],
    param_name: str = "value",
    param_index: int = 1,
) -> Callable[[F], F]:
    """
    Decorator for validating parameter types.

    Args:
        expected_type: Expected type or tuple of types
        param_name: Name of parameter for error messages
        param_index: Position of parameter in function signature

    Returns:
        Decorated function with type validation

    Example:
        >>> @validate_type(np.ndarray, 'pixels')
        ... def apply(self, pixels: np.ndarray) -> np.ndarray:
        ...     ...
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            found, value = _get_argument(args, kwargs, param_name, param_index)
            if not found:
                return func(*args, **kwargs)

            if not isinstance(value, expected_type):
                if isinstance(expected_type, tuple):
                    type_names = ", ".join(t.__name__ for t in expected_type)
                    raise TypeError(
                        f"{param_name} must be one of ({type_names}), got {type(value).__name__}"
                    )
                else:
                    raise TypeError(
                        f"{param_name} must be {expected_type.__name__}, got {type(value).__name__}"
                    )

            return func(*args, **kwargs)

        return wrapper  # type: ignore

    return decorator
