from typing import TypeAlias, Tuple
import numpy as np
import numpy.typing as npt


# Image Types
# Floating point RGBA image, straight alpha (Height, Width, 4)
ImageBuffer: TypeAlias = npt.NDArray[np.float32]

# Geometry Types
# (Width, Height) in pixels
Dimensions: TypeAlias = Tuple[int, int]
# World-space point (x, y, z), y is up
Vec3: TypeAlias = Tuple[float, float, float]
# Ground plane point (x, z)
Vec2: TypeAlias = Tuple[float, float]

# Color Types
# Normalized RGBA, straight alpha
RGBA: TypeAlias = Tuple[float, float, float, float]

CHANNELS = 4
ALPHA = 3

CLEAR: RGBA = (0.0, 0.0, 0.0, 0.0)
