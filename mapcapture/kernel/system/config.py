import os
from dataclasses import dataclass

# User dir env (export target for generated maps)
BASE_USER_DIR = os.path.abspath(os.getenv("MAPCAPTURE_USER_DIR", "user"))


@dataclass(frozen=True)
class AppConfig:
    max_workers: int
    frame_margin: float
    near_clip: float
    default_output_size: int
    default_export_dir: str


# Global application constants
APP_CONFIG = AppConfig(
    max_workers=max(1, (os.cpu_count() or 1) - 1),
    frame_margin=1.0,  # World units added around the corner bounds
    near_clip=0.1,
    default_output_size=512,
    default_export_dir=os.path.join(BASE_USER_DIR, "maps"),
)
