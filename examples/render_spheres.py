#!/usr/bin/env python3
"""Render a small scene of reflective spheres.

This script acts as a minimal host application for the Whitted tracer: it
builds a demo scene, generates one pinhole-camera ray per pixel with NumPy,
traces them in parallel and saves the result as a PNG.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH       Image width in pixels (default: 640)
    --height HEIGHT     Image height in pixels (default: 480)
    --bounces N         Mirror bounce limit (default: 4)
    --scene PATH        JSON scene configuration (default: built-in demo)
    --output OUTPUT     Output file path (default: spheres.png)
    --tone-map METHOD   none, reinhard or exposure (default: none)
    --alpha             Write RGBA with a transparent background
    --quiet             Only log warnings and errors

Example:
    python -m examples.render_spheres --width 320 --height 240 --bounces 2
"""

from __future__ import annotations

import argparse
import json
import logging
import math
import sys
import time
from pathlib import Path

import numpy as np
import taichi as ti

logger = logging.getLogger("render_spheres")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of reflective spheres.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=640,
        help="Image width in pixels (default: 640)",
    )
    parser.add_argument(
        "--height",
        type=int,
        default=480,
        help="Image height in pixels (default: 480)",
    )
    parser.add_argument(
        "--bounces",
        type=int,
        default=4,
        help="Mirror bounce limit (default: 4)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene configuration (default: built-in demo)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="spheres.png",
        help="Output file path (default: spheres.png)",
    )
    parser.add_argument(
        "--tone-map",
        choices=["none", "reinhard", "exposure"],
        default="none",
        help="Tone mapping applied before gamma (default: none)",
    )
    parser.add_argument(
        "--alpha",
        action="store_true",
        help="Write RGBA with a transparent background",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )
    return parser.parse_args()


def demo_config():
    """Four spheres on a large floor sphere, lit by two lights."""
    from src.whitted.scene.config import LightSpec, MaterialSpec, SceneConfig, SphereSpec

    mirror = MaterialSpec(diffuse=(0.05, 0.05, 0.05), specular=(0.9, 0.9, 0.9), shininess=200.0)
    red = MaterialSpec(diffuse=(0.7, 0.1, 0.1), specular=(0.3, 0.3, 0.3), shininess=50.0)
    blue = MaterialSpec(diffuse=(0.1, 0.2, 0.7), specular=(0.2, 0.2, 0.2), shininess=20.0)
    floor = MaterialSpec(diffuse=(0.5, 0.5, 0.5), specular=(0.1, 0.1, 0.1), shininess=10.0)

    return SceneConfig(
        spheres=[
            SphereSpec(center=(0.0, -101.0, -6.0), radius=100.0, material=floor),
            SphereSpec(center=(0.0, 0.0, -6.0), radius=1.0, material=mirror),
            SphereSpec(center=(-2.2, -0.3, -5.5), radius=0.7, material=red),
            SphereSpec(center=(2.2, -0.3, -5.5), radius=0.7, material=blue),
        ],
        lights=[
            LightSpec(position=(-4.0, 6.0, -2.0), intensity=(0.8, 0.8, 0.8)),
            LightSpec(position=(5.0, 4.0, -8.0), intensity=(0.4, 0.4, 0.5)),
        ],
    )


def pinhole_rays(width: int, height: int, vfov: float = 60.0):
    """Per-pixel ray directions for a camera at the origin looking down -z.

    Returns:
        Array of shape (height, width, 3); row 0 is the top of the image.
    """
    half_h = math.tan(math.radians(vfov) / 2.0)
    half_w = half_h * width / height

    u = (np.arange(width, dtype=np.float32) + 0.5) / width
    v = (np.arange(height, dtype=np.float32) + 0.5) / height
    uu, vv = np.meshgrid(u, v)

    directions = np.empty((height, width, 3), dtype=np.float32)
    directions[..., 0] = (2.0 * uu - 1.0) * half_w
    directions[..., 1] = (1.0 - 2.0 * vv) * half_h
    directions[..., 2] = -1.0
    directions /= np.linalg.norm(directions, axis=2, keepdims=True)
    return directions


def render_spheres(
    width: int = 640,
    height: int = 480,
    bounces: int = 4,
    scene_path: str | None = None,
    output_path: str = "spheres.png",
    tone_map_method: str = "none",
    keep_alpha: bool = False,
) -> Path:
    """Render the scene and save to file.

    Args:
        width: Image width in pixels.
        height: Image height in pixels.
        bounces: Mirror bounce limit.
        scene_path: Optional JSON scene configuration.
        output_path: Output file path (PNG).
        tone_map_method: "none", "reinhard" or "exposure".
        keep_alpha: Write RGBA with a transparent background.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports to allow Taichi initialization first
    from src.whitted.core.tracer import WhittedTracer
    from src.whitted.preview.export import save_png
    from src.whitted.scene.config import SceneConfig
    from src.whitted.scene.environment import GradientEnvironment
    from src.whitted.scene.scene import Scene

    if scene_path is None:
        config = demo_config()
    else:
        config = SceneConfig.from_dict(json.loads(Path(scene_path).read_text()))
    config.bounce_limit = bounces

    scene = Scene.from_config(config)
    tracer = WhittedTracer(scene, GradientEnvironment())

    logger.info("Rendering %dx%d with %d bounces...", width, height, bounces)
    start_time = time.time()

    image = tracer.trace_image(np.zeros(3, dtype=np.float32), pinhole_rays(width, height))

    output_file = save_png(
        image, output_path, tone_map_method=tone_map_method, keep_alpha=keep_alpha
    )

    logger.info("Saved to: %s", output_file.absolute())
    logger.info("Total time: %.2fs", time.time() - start_time)
    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    # Taichi falls back to CPU on its own when no GPU backend is available
    ti.init(arch=ti.gpu)
    logger.info("Using %s backend", ti.lang.impl.current_cfg().arch)

    try:
        render_spheres(
            width=args.width,
            height=args.height,
            bounces=args.bounces,
            scene_path=args.scene,
            output_path=args.output,
            tone_map_method=args.tone_map,
            keep_alpha=args.alpha,
        )
        return 0
    except (OSError, ValueError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
