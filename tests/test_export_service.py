import os
from unittest.mock import patch

import numpy as np
import pytest

from mapcapture.domain.buffer import PixelBuffer
from mapcapture.domain.models import ExportConfig
from mapcapture.kernel.image.logic import color_to_hex, float_to_uint8, parse_color
from mapcapture.services.export.service import PngExporter, load_png
from mapcapture.services.export.templating import FilenameTemplater


def _map() -> PixelBuffer:
    img = np.zeros((6, 10, 4), dtype=np.float32)
    img[1:3, 2:5] = (1.0, 0.0, 0.0, 1.0)
    img[4, 7] = (0.0, 0.0, 1.0, 1.0)
    return PixelBuffer(img)


def test_png_round_trip(tmp_path):
    exporter = PngExporter(str(tmp_path))
    path = exporter.save(_map(), "village")

    assert path == os.path.join(str(tmp_path), "village.png")
    loaded = load_png(path)
    assert loaded.size == (10, 6)
    assert loaded == _map()


def test_export_dir_is_created(tmp_path):
    target = tmp_path / "nested" / "maps"
    path = PngExporter(str(target)).save(_map(), "m")
    assert os.path.isfile(path)


def test_blend_overflow_is_clipped_on_export(tmp_path):
    img = np.full((2, 2, 4), 1.7, dtype=np.float32)
    path = PngExporter(str(tmp_path)).save(PixelBuffer(img), "bright")
    assert load_png(path).get_pixel(1, 1) == (1.0, 1.0, 1.0, 1.0)


def test_existing_file_is_replaced(tmp_path):
    exporter = PngExporter(str(tmp_path))
    exporter.save(PixelBuffer.filled(4, 4, (0.0, 1.0, 0.0, 1.0)), "m")
    path = exporter.save(_map(), "m")
    assert load_png(path) == _map()
    assert sorted(os.listdir(tmp_path)) == ["m.png"]


def test_failed_write_leaves_nothing_behind(tmp_path):
    exporter = PngExporter(str(tmp_path))
    with patch("PIL.Image.Image.save", side_effect=OSError("disk full")):
        with pytest.raises(OSError):
            exporter.save(_map(), "broken")
    assert os.listdir(tmp_path) == []


def test_from_config_uses_pattern(tmp_path):
    exporter = PngExporter.from_config(
        ExportConfig(name="x", export_dir=str(tmp_path), filename_pattern="{{ name }}_{{ width }}x{{ height }}")
    )
    assert exporter.resolve_path(_map(), "town") == os.path.join(str(tmp_path), "town_10x6.png")


@pytest.mark.parametrize(
    "pattern",
    ["{{ name", "{{ '' }}", "../{{ name }}", "sub\\{{ name }}"],
)
def test_templater_falls_back_to_name(pattern):
    assert FilenameTemplater().render(pattern, {"name": "town"}) == "town"


def test_templater_provides_date():
    rendered = FilenameTemplater().render("{{ name }}_{{ date }}", {"name": "town"})
    assert rendered.startswith("town_")
    assert len(rendered) == len("town_") + 10


def test_float_to_uint8_rounds_and_clips():
    arr = np.array([[[-0.5, 0.5, 1.0, 2.0]]], dtype=np.float32)
    assert float_to_uint8(arr).tolist() == [[[0, 128, 255, 255]]]


def test_color_helpers():
    assert parse_color("#FF000080") == pytest.approx((1.0, 0.0, 0.0, 128 / 255))
    assert parse_color([0.5, 0.5, 0.5]) == (0.5, 0.5, 0.5, 1.0)
    assert color_to_hex((0.0, 0.0, 1.0, 1.0)) == "#0000FFFF"
    with pytest.raises(TypeError):
        parse_color(3)
