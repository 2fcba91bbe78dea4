import os
import tempfile
from typing import Any, Dict, Optional

import numpy as np
from PIL import Image

from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.models import ExportConfig
from mapcapture.kernel.image.logic import float_to_uint8, uint8_to_float32
from mapcapture.kernel.system.logging import get_logger
from mapcapture.services.export.templating import FilenameTemplater

logger = get_logger(__name__)


class PngExporter:
    """
    Writes finished maps as RGBA PNG files into one directory.

    The file is encoded into a temporary sibling and moved into place, so a
    failed write never leaves a truncated map behind.
    """

    def __init__(self, export_dir: str, filename_pattern: str = "{{ name }}") -> None:
        self.export_dir = export_dir
        self.filename_pattern = filename_pattern
        self.templater = FilenameTemplater()

    @classmethod
    def from_config(cls, config: ExportConfig) -> "PngExporter":
        return cls(config.export_dir, config.filename_pattern)

    def resolve_path(self, buffer: PixelBuffer, name: str, extra: Optional[Dict[str, Any]] = None) -> str:
        context = {"name": name, "width": buffer.width, "height": buffer.height, **(extra or {})}
        base_name = self.templater.render(self.filename_pattern, context)
        return os.path.join(self.export_dir, f"{base_name}.png")

    def encode(self, buffer: PixelBuffer) -> Image.Image:
        return Image.fromarray(float_to_uint8(buffer.data))

    def save(self, buffer: PixelBuffer, name: str) -> str:
        out_path = self.resolve_path(buffer, name)
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)

        pil_img = self.encode(buffer)
        fd, tmp_path = tempfile.mkstemp(suffix=".png.tmp", dir=os.path.dirname(out_path) or ".")
        try:
            with os.fdopen(fd, "wb") as out_f:
                pil_img.save(out_f, format="PNG")
            os.replace(tmp_path, out_path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

        logger.info(f"{os.path.basename(out_path)} was created in {self.export_dir}")
        return out_path


def load_png(path: str) -> PixelBuffer:
    """Reads a PNG written by PngExporter back into a PixelBuffer."""
    with Image.open(path) as img:
        arr = np.asarray(img.convert("RGBA"))
    return PixelBuffer(uint8_to_float32(arr))
