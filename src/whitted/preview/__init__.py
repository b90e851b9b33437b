"""Output helpers for traced images.

Components:
    export: tone mapping, gamma encoding and PNG writing (Pillow)
"""

from src.whitted.preview.export import (
    ToneMapMethod,
    compute_rmse,
    encode_gamma,
    image_to_uint8,
    save_png,
    tone_map,
)

__all__ = [
    "ToneMapMethod",
    "tone_map",
    "encode_gamma",
    "image_to_uint8",
    "save_png",
    "compute_rmse",
]
