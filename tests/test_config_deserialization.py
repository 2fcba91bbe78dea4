import json
import unittest

from mapcapture.domain.errors import InvalidFrame
from mapcapture.domain.models import (
    BlendPolicy,
    CaptureConfig,
    CompositeConfig,
    ElementSpec,
    ExportConfig,
    FrameConfig,
    RecolorMode,
    load_capture_config,
)


def _config() -> CaptureConfig:
    return CaptureConfig(
        elements=[
            ElementSpec(
                "house",
                outline_width=3,
                outline_color=(0.0, 0.0, 0.0, 1.0),
                recolor_mode=RecolorMode.USE_FLAT_COLOR,
                flat_color=(1.0, 0.0, 0.0, 1.0),
            ),
            ElementSpec("road"),
        ],
        corners=FrameConfig(
            right_top=(10.0, 0.0, 10.0),
            left_top=(0.0, 0.0, 10.0),
            right_bottom=(10.0, 0.0, 0.0),
            left_bottom=(0.0, 0.0, 0.0),
            render_height=25.0,
        ),
        composite=CompositeConfig(output_size=(1024, 512), blend_policy=BlendPolicy.BLEND),
        export=ExportConfig(name="village", export_dir="out", filename_pattern="{{ name }}_{{ date }}"),
    )


class TestConfigDeserialization(unittest.TestCase):
    def test_basic_deserialization(self):
        data = {
            "elements": [{"renderable": "tree", "outline_width": 2, "recolor_mode": "UseFlatColor", "flat_color": "#00FF00"}],
            "output_size": 256,
            "blend_policy": "Blend",
            "name": "forest",
        }
        config = CaptureConfig.from_dict(data)

        self.assertEqual(len(config.elements), 1)
        element = config.elements[0]
        self.assertEqual(element.renderable, "tree")
        self.assertEqual(element.outline_width, 2)
        self.assertEqual(element.recolor_mode, RecolorMode.USE_FLAT_COLOR)
        self.assertEqual(element.flat_color, (0.0, 1.0, 0.0, 1.0))
        self.assertEqual(config.composite.output_size, (256, 256))
        self.assertEqual(config.composite.blend_policy, BlendPolicy.BLEND)
        self.assertEqual(config.export.name, "forest")

    def test_defaults_for_missing_keys(self):
        config = CaptureConfig.from_dict({})

        self.assertEqual(config.elements, ())
        self.assertIsNone(config.corners.right_top)
        self.assertEqual(config.corners.render_height, 10.0)
        self.assertEqual(config.composite.blend_policy, BlendPolicy.OVERLAP_ORDERED)
        self.assertEqual(config.export.filename_pattern, "{{ name }}")

    def test_round_trip(self):
        config = _config()
        restored = CaptureConfig.from_dict(json.loads(json.dumps(config.to_dict())))
        self.assertEqual(restored, config)

    def test_colors_are_stored_as_hex(self):
        data = _config().to_dict()
        self.assertEqual(data["elements"][0]["flat_color"], "#FF0000FF")
        self.assertEqual(data["elements"][0]["outline_color"], "#000000FF")
        self.assertEqual(data["output_size"], [1024, 512])

    def test_load_from_file(self):
        import tempfile
        import os

        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "capture.json")
            with open(path, "w") as f:
                json.dump(_config().to_dict(), f)
            self.assertEqual(load_capture_config(path), _config())

    def test_corner_order_is_perimeter(self):
        frame = _config().corners
        self.assertEqual(
            frame.corners,
            (frame.right_top, frame.left_top, frame.left_bottom, frame.right_bottom),
        )

    def test_negative_outline_width_rejected(self):
        with self.assertRaises(ValueError):
            ElementSpec("a", outline_width=-1)
        with self.assertRaises(ValueError):
            ElementSpec("a", outline_width=1.5)

    def test_unreadable_outline_width_rejected(self):
        for bad in ("three", 2.5, True, [1]):
            with self.assertRaises(ValueError):
                CaptureConfig.from_dict({"elements": [{"renderable": "A", "outline_width": bad}]})

    def test_numeric_strings_are_accepted(self):
        config = CaptureConfig.from_dict(
            {"elements": [{"renderable": "A", "outline_width": "3"}], "output_size": ["64", 32.0]}
        )
        self.assertEqual(config.elements[0].outline_width, 3)
        self.assertEqual(config.composite.output_size, (64, 32))

    def test_unreadable_output_size_rejected(self):
        with self.assertRaises(ValueError):
            CaptureConfig.from_dict({"output_size": ["big", 32]})

    def test_unreadable_render_height_is_an_invalid_frame(self):
        with self.assertRaises(InvalidFrame):
            CaptureConfig.from_dict({"corners": {"render_height": "tall"}})

    def test_unreadable_corner_is_an_invalid_frame(self):
        with self.assertRaises(InvalidFrame):
            FrameConfig.from_dict({"right_top": [1.0, "x", 2.0]})
        with self.assertRaises(InvalidFrame):
            FrameConfig.from_dict({"right_top": [1.0, 2.0]})

    def test_invalid_color_rejected(self):
        with self.assertRaises(ValueError):
            ElementSpec.from_dict({"renderable": "a", "flat_color": "#12"})


if __name__ == "__main__":
    unittest.main()
