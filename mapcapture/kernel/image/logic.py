from typing import Any, Sequence
import numpy as np
from mapcapture.domain.types import ImageBuffer, RGBA


def float_to_uint8(img: ImageBuffer) -> np.ndarray:
    """
    Quantizes a float image to 8 bits. Values outside [0, 1] (e.g. from additive
    blending) are clipped here, never earlier in the pipeline.
    """
    clipped = np.clip(np.nan_to_num(img), 0.0, 1.0)
    return np.round(clipped * 255.0).astype(np.uint8)


def uint8_to_float32(img: np.ndarray) -> ImageBuffer:
    return (img.astype(np.float32) / 255.0).astype(np.float32)


def parse_color(value: Any) -> RGBA:
    """
    Accepts '#RRGGBB', '#RRGGBBAA' or a 3/4 element sequence of floats in [0, 1].
    Missing alpha defaults to 1.0.
    """
    if isinstance(value, str):
        hex_str = value.strip().lstrip("#")
        if len(hex_str) not in (6, 8):
            raise ValueError(f"Invalid hex color: {value!r}")
        try:
            channels = [int(hex_str[i : i + 2], 16) / 255.0 for i in range(0, len(hex_str), 2)]
        except ValueError as e:
            raise ValueError(f"Invalid hex color: {value!r}") from e
        return _to_rgba(channels)

    if isinstance(value, Sequence) or isinstance(value, np.ndarray):
        return _to_rgba([float(c) for c in value])

    raise TypeError(f"Unsupported color value: {value!r}")


def color_to_hex(color: RGBA) -> str:
    r, g, b, a = (int(round(min(max(c, 0.0), 1.0) * 255)) for c in color)
    return f"#{r:02X}{g:02X}{b:02X}{a:02X}"


def _to_rgba(channels: list) -> RGBA:
    if len(channels) == 3:
        channels = channels + [1.0]
    if len(channels) != 4:
        raise ValueError(f"Color needs 3 or 4 channels, got {len(channels)}")
    r, g, b, a = channels
    return (float(r), float(g), float(b), float(a))
