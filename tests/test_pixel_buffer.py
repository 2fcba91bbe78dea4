import numpy as np
import pytest

from mapcapture.domain.buffer import PixelBuffer


def test_length_is_width_times_height():
    buf = PixelBuffer.transparent(7, 3)
    assert buf.size == (7, 3)
    assert len(buf) == 21
    assert buf.flat().shape == (21, 4)


def test_row_major_layout():
    arr = np.zeros((2, 3, 4), dtype=np.float32)
    arr[1, 2] = (0.1, 0.2, 0.3, 1.0)
    buf = PixelBuffer(arr)
    # (x=2, y=1) is the last pixel in row-major order
    assert np.allclose(buf.flat()[5], (0.1, 0.2, 0.3, 1.0))
    assert buf.get_pixel(2, 1) == pytest.approx((0.1, 0.2, 0.3, 1.0))
    pixels = list(buf)
    assert len(pixels) == 6
    assert pixels[5] == pytest.approx((0.1, 0.2, 0.3, 1.0))


@pytest.mark.parametrize("x,y", [(-1, 0), (0, -1), (4, 0), (0, 4)])
def test_out_of_range_access_fails(x, y):
    buf = PixelBuffer.transparent(4, 4)
    with pytest.raises(IndexError):
        buf.get_pixel(x, y)


def test_buffer_is_read_only_and_detached_from_source():
    arr = np.zeros((2, 2, 4), dtype=np.float32)
    buf = PixelBuffer(arr)
    arr[0, 0] = 1.0
    assert buf.get_pixel(0, 0) == (0.0, 0.0, 0.0, 0.0)
    with pytest.raises(ValueError):
        buf.data[0, 0, 0] = 1.0

    copy = buf.copy_array()
    copy[0, 0] = 1.0
    assert buf.get_pixel(0, 0) == (0.0, 0.0, 0.0, 0.0)


def test_rejects_non_rgba_input():
    with pytest.raises(ValueError):
        PixelBuffer(np.zeros((2, 2, 3), dtype=np.float32))
    with pytest.raises(ValueError):
        PixelBuffer(np.zeros((0, 2, 4), dtype=np.float32))


def test_filled_and_equality():
    a = PixelBuffer.filled(3, 2, (0.0, 0.0, 1.0, 1.0))
    b = PixelBuffer.filled(3, 2, (0.0, 0.0, 1.0, 1.0))
    assert a == b
    assert a.opaque_count() == 6
    assert a != PixelBuffer.transparent(3, 2)
