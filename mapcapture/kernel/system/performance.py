import logging
import time
import functools
from typing import Any, Callable, TypeVar
from typing_extensions import ParamSpec
from mapcapture.kernel.system.logging import get_logger

logger = get_logger("perf")

P = ParamSpec("P")
R = TypeVar("R")


def _find_shape(args: Any, kwargs: Any) -> Any:
    # First argument carrying a .shape (array) or .size (PixelBuffer)
    for val in list(args) + list(kwargs.values()):
        if hasattr(val, "shape"):
            return getattr(val, "shape")
        if hasattr(val, "size") and isinstance(getattr(val, "size"), tuple):
            return getattr(val, "size")
    return "N/A"


def time_function(func: Callable[P, R]) -> Callable[P, R]:
    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        result = func(*args, **kwargs)
        duration_ms = (time.perf_counter() - start) * 1000

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                f"PERF: {func.__name__} took {duration_ms:.3f}ms (shape: {_find_shape(args, kwargs)})"
            )
        return result

    return wrapper
