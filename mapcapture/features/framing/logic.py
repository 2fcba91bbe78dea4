import math
from typing import List, Sequence, Tuple
import numpy as np
from mapcapture.domain.errors import InvalidFrame
from mapcapture.domain.models import FrameConfig
from mapcapture.domain.types import Vec3

EPSILON = 1e-9


def corner_array(frame: FrameConfig) -> np.ndarray:
    """
    Returns the four corners as a (4, 3) float64 array in perimeter order.
    Raises InvalidFrame if any corner is unset.
    """
    corners = frame.corners
    if any(c is None for c in corners):
        raise InvalidFrame("Please assign all corners of the map")
    return np.array(corners, dtype=np.float64)


def validate_frame(frame: FrameConfig) -> np.ndarray:
    pts = corner_array(frame)

    if not np.isfinite(pts).all():
        raise InvalidFrame("Corner positions must be finite")

    h = frame.render_height
    if not (isinstance(h, (int, float)) and math.isfinite(h) and h > 0):
        raise InvalidFrame(f"Render height must be a positive number, got {h!r}")

    for i in range(4):
        for j in range(i + 1, 4):
            if np.allclose(pts[i], pts[j], atol=EPSILON):
                raise InvalidFrame(f"Corners {i} and {j} coincide")

    ground = pts[:, [0, 2]]
    extent = ground.max(axis=0) - ground.min(axis=0)
    if extent[0] <= EPSILON or extent[1] <= EPSILON:
        raise InvalidFrame("Corners span a zero-area footprint")

    if _max_triangle_area(ground) <= EPSILON:
        raise InvalidFrame("Corners are collinear")

    return pts


def _max_triangle_area(points: np.ndarray) -> float:
    best = 0.0
    n = len(points)
    for i in range(n):
        for j in range(i + 1, n):
            for k in range(j + 1, n):
                a = points[j] - points[i]
                b = points[k] - points[i]
                best = max(best, abs(a[0] * b[1] - a[1] * b[0]) * 0.5)
    return best


def compute_bounds(pts: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Axis-aligned (min, max) of the corner set."""
    return pts.min(axis=0), pts.max(axis=0)


def compute_half_extent(pts: np.ndarray, margin: float) -> float:
    lo, hi = compute_bounds(pts)
    size = hi - lo
    # x is width, z is depth on the ground plane
    return float(max(size[0], size[2]) / 2.0 + margin)


def compute_centroid(pts: np.ndarray) -> Vec3:
    c = pts.mean(axis=0)
    return (float(c[0]), float(c[1]), float(c[2]))


def capture_volume_edges(frame: FrameConfig) -> List[Tuple[Vec3, Vec3]]:
    """
    Line segments outlining the capture prism: the ground quad, the same quad
    raised by the render height, and the four verticals joining them.
    """
    pts = corner_array(frame)
    lift = np.array([0.0, frame.render_height, 0.0])
    top = pts + lift

    edges: List[Tuple[Vec3, Vec3]] = []
    for i in range(4):
        j = (i + 1) % 4
        edges.append((_vec(pts[i]), _vec(pts[j])))
        edges.append((_vec(top[i]), _vec(top[j])))
        edges.append((_vec(pts[i]), _vec(top[i])))
    return edges


def _vec(p: Sequence[float]) -> Vec3:
    return (float(p[0]), float(p[1]), float(p[2]))
