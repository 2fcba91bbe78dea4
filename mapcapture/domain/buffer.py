from typing import Any, Iterator, Tuple
import numpy as np
from mapcapture.domain.types import ImageBuffer, Dimensions, RGBA, CHANNELS, ALPHA
from mapcapture.kernel.image.validation import ensure_image


class PixelBuffer:
    """
    Immutable W x H raster of straight-alpha RGBA float pixels.

    Storage is a read-only (H, W, 4) float32 array, so the row-major pixel
    sequence is ``flat()`` and always holds exactly W * H entries. Row 0 is the
    top of the image. Stages never write into a buffer they received; they
    build a new array and wrap it.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Any) -> None:
        arr = np.array(ensure_image(np.asarray(data)), dtype=np.float32, copy=True)
        if arr.shape[0] == 0 or arr.shape[1] == 0:
            raise ValueError(f"PixelBuffer needs a non-empty raster, got {arr.shape}")
        arr.flags.writeable = False
        self._data: ImageBuffer = arr

    @classmethod
    def transparent(cls, width: int, height: int) -> "PixelBuffer":
        return cls(np.zeros((height, width, CHANNELS), dtype=np.float32))

    @classmethod
    def filled(cls, width: int, height: int, color: RGBA) -> "PixelBuffer":
        arr = np.empty((height, width, CHANNELS), dtype=np.float32)
        arr[...] = np.asarray(color, dtype=np.float32)
        return cls(arr)

    @property
    def width(self) -> int:
        return int(self._data.shape[1])

    @property
    def height(self) -> int:
        return int(self._data.shape[0])

    @property
    def size(self) -> Dimensions:
        return (self.width, self.height)

    @property
    def data(self) -> ImageBuffer:
        """Read-only (H, W, 4) view."""
        return self._data

    @property
    def alpha(self) -> np.ndarray:
        return self._data[:, :, ALPHA]

    def flat(self) -> np.ndarray:
        """Row-major (W * H, 4) view."""
        return self._data.reshape(-1, CHANNELS)

    def copy_array(self) -> ImageBuffer:
        """Writable copy of the pixel data."""
        return self._data.copy()

    def get_pixel(self, x: int, y: int) -> RGBA:
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(
                f"Pixel ({x}, {y}) is outside a {self.width}x{self.height} buffer"
            )
        r, g, b, a = (float(c) for c in self._data[y, x])
        return (r, g, b, a)

    def opaque_count(self) -> int:
        return int(np.count_nonzero(self.alpha > 0))

    def __len__(self) -> int:
        return self.width * self.height

    def __iter__(self) -> Iterator[Tuple[float, ...]]:
        for px in self.flat():
            yield tuple(float(c) for c in px)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return bool(np.array_equal(self._data, other._data))

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"PixelBuffer({self.width}x{self.height}, opaque={self.opaque_count()})"
