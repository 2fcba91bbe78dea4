from typing import Any, cast
import numpy as np
from mapcapture.domain.types import ImageBuffer, CHANNELS


def ensure_image(arr: Any) -> ImageBuffer:
    """
    Ensures the input is a float32 (H, W, 4) numpy array and returns it as an ImageBuffer.
    This is preferred over a raw cast because it performs runtime validation.
    """
    if not isinstance(arr, np.ndarray):
        raise TypeError(f"Expected numpy.ndarray, got {type(arr)}")

    if arr.ndim != 3 or arr.shape[2] != CHANNELS:
        raise ValueError(f"Expected (H, W, {CHANNELS}) RGBA array, got {arr.shape}")

    # We convert to float32 if needed
    if arr.dtype != np.float32:
        arr = arr.astype(np.float32)

    return cast(ImageBuffer, arr)


def validate_float(val: Any, default: float = 0.0) -> float:
    """
    Ensures a value is a float, providing a default if None.
    A value that is present but not numeric raises ValueError.
    """
    if val is None:
        return default
    if isinstance(val, bool):
        raise ValueError(f"Expected a number, got {val!r}")
    try:
        return float(val)
    except (TypeError, ValueError) as e:
        raise ValueError(f"Expected a number, got {val!r}") from e


def validate_int(val: Any, default: int = 0) -> int:
    """Ensures a value is an int, providing a default if None."""
    num = validate_float(val, float(default))
    # 3.0 and "3" are fine, 2.5 and nan are not
    if not num.is_integer():
        raise ValueError(f"Expected an integer, got {val!r}")
    return int(num)
