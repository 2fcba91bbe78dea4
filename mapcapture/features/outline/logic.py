from typing import Optional
import numpy as np
from numba import njit, prange  # type: ignore
from mapcapture.domain.types import ImageBuffer, RGBA
from mapcapture.kernel.image.validation import ensure_image
from mapcapture.kernel.system.performance import time_function


def chebyshev_offsets(width: int) -> np.ndarray:
    """
    (dy, dx) offsets of the square neighbourhood [-width, width]^2, row-major.
    Returns an (N, 2) int64 array; the centre is included and harmless since
    the centre of a candidate pixel is always transparent.
    """
    if width < 0:
        raise ValueError(f"Outline width must be >= 0, got {width}")
    r = np.arange(-width, width + 1, dtype=np.int64)
    dy, dx = np.meshgrid(r, r, indexing="ij")
    return np.stack([dy.ravel(), dx.ravel()], axis=1)


@njit(parallel=True, cache=True)
def _dilate_outline_jit(
    img: np.ndarray,
    offsets: np.ndarray,
    color: np.ndarray,
) -> np.ndarray:
    h, w, c = img.shape
    res = img.copy()
    n = offsets.shape[0]

    for y in prange(h):
        for x in range(w):
            if img[y, x, 3] > 0:
                continue

            # Existence test over the neighbourhood, first hit is enough
            hit = False
            for k in range(n):
                ny = y + offsets[k, 0]
                nx = x + offsets[k, 1]
                if ny >= 0 and ny < h and nx >= 0 and nx < w:
                    if img[ny, nx, 3] > 0:
                        hit = True
                        break

            if hit:
                for ch in range(c):
                    res[y, x, ch] = color[ch]

    return res


@time_function
def apply_outline(
    img: ImageBuffer,
    outline_color: RGBA,
    width: int,
    offsets: Optional[np.ndarray] = None,
) -> ImageBuffer:
    """
    Chebyshev dilation ring around the painted regions of an image.

    Every transparent pixel with at least one painted pixel within ``width``
    (max of |dx|, |dy|) becomes the outline color at full alpha. Painted pixels
    pass through untouched and ``width == 0`` returns a plain copy.

    ``offsets`` overrides the neighbourhood scan table (see
    ``chebyshev_offsets``); any permutation of it yields the same image.
    """
    img = ensure_image(img)
    if width < 0:
        raise ValueError(f"Outline width must be >= 0, got {width}")
    if width == 0:
        return img.copy()

    if offsets is None:
        offsets = chebyshev_offsets(width)
    offsets = np.ascontiguousarray(offsets, dtype=np.int64)
    if offsets.ndim != 2 or offsets.shape[1] != 2:
        raise ValueError(f"offsets must be (N, 2), got {offsets.shape}")

    color = np.array(outline_color, dtype=np.float32)
    color[3] = 1.0

    return ensure_image(
        _dilate_outline_jit(
            np.array(img, dtype=np.float32, order="C", copy=True),
            offsets,
            color,
        )
    )
