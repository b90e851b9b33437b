"""Convert traced RGBA buffers into displayable 8-bit images.

The tracer returns linear, unclamped float32 RGBA (alpha 0 where the
primary ray saw only the environment). This module turns such buffers into
8-bit images and writes them with Pillow.

Pipeline applied to the RGB channels:
    1. Tone mapping: "none" (clip), "reinhard" (c / (1 + c)) or
       "exposure" (1 - exp(-c * exposure))
    2. Gamma encoding: c ** (1 / gamma)
    3. Quantization to uint8

Alpha is carried through unchanged when the output keeps it.

Example:
    >>> from src.whitted.preview.export import save_png
    >>> image = tracer.trace_image(origin, directions)
    >>> save_png(image, "spheres.png", tone_map_method="reinhard")
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map(
    rgb: npt.NDArray[np.float32],
    method: ToneMapMethod = "none",
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Map linear RGB into [0, 1].

    Raises:
        ValueError: If the method is unknown.
    """
    rgb = np.maximum(rgb, 0.0)
    if method == "none":
        mapped = np.minimum(rgb, 1.0)
    elif method == "reinhard":
        mapped = rgb / (1.0 + rgb)
    elif method == "exposure":
        mapped = 1.0 - np.exp(-rgb * exposure)
    else:
        raise ValueError(f"Unknown tone mapping method: {method}")
    return mapped.astype(np.float32)


def encode_gamma(rgb: npt.NDArray[np.float32], gamma: float = 2.2) -> npt.NDArray[np.float32]:
    if gamma <= 0.0:
        raise ValueError(f"Gamma = {gamma} must be positive.")
    rgb = np.clip(rgb, 0.0, 1.0)
    if gamma == 1.0:
        return rgb.astype(np.float32)
    return np.power(rgb, 1.0 / gamma).astype(np.float32)


def image_to_uint8(
    image: npt.NDArray[np.float32],
    *,
    tone_map_method: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    keep_alpha: bool = False,
) -> npt.NDArray[np.uint8]:
    """Convert a traced image to 8-bit.

    Args:
        image: Linear image of shape (H, W, 3) or (H, W, 4).
        tone_map_method: "none", "reinhard" or "exposure".
        gamma: Gamma used for encoding (2.2 for sRGB-like output).
        exposure: Exposure for the "exposure" tone mapper.
        keep_alpha: Return (H, W, 4) with the alpha channel when the input
            has one; otherwise (H, W, 3).

    Returns:
        uint8 array ready for Pillow.

    Raises:
        ValueError: If the image shape or a parameter is invalid.
    """
    image = np.asarray(image, dtype=np.float32)
    if image.ndim != 3 or image.shape[2] not in (3, 4):
        raise ValueError(f"Image must have shape (H, W, 3) or (H, W, 4), got {image.shape}")

    rgb = encode_gamma(tone_map(image[..., :3], tone_map_method, exposure), gamma)
    channels = [rgb]
    if keep_alpha and image.shape[2] == 4:
        channels.append(np.clip(image[..., 3:4], 0.0, 1.0))

    # Rounded: 1.0 -> 255, 0.5 -> 128
    return np.rint(np.concatenate(channels, axis=2) * 255.0).astype(np.uint8)


def save_png(
    image: npt.NDArray[np.float32],
    filepath: str | Path,
    *,
    tone_map_method: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    keep_alpha: bool = False,
) -> Path:
    """Write a traced image to a PNG file.

    With keep_alpha the PNG is RGBA and environment-only pixels are
    transparent, which is how a host composites the render over its own
    background.

    Returns:
        The path written.
    """
    pixels = image_to_uint8(
        image,
        tone_map_method=tone_map_method,
        gamma=gamma,
        exposure=exposure,
        keep_alpha=keep_alpha,
    )
    path = Path(filepath)
    PILImage.fromarray(pixels).save(path)
    return path


def compute_rmse(
    image_a: npt.NDArray[np.floating],
    image_b: npt.NDArray[np.floating],
) -> float:
    """Root mean squared error between two images of the same shape.

    Raises:
        ValueError: If the shapes differ.
    """
    if image_a.shape != image_b.shape:
        raise ValueError(f"Image shapes must match: {image_a.shape} vs {image_b.shape}")
    diff = image_a.astype(np.float64) - image_b.astype(np.float64)
    return float(np.sqrt(np.mean(diff**2)))
