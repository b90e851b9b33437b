"""Scene module for scene description and ray-scene queries.

Components:
    config: Validated sphere/light/material descriptions and scene settings
    scene: Scene context holding fixed-size sphere and light fields
    intersection: Nearest-hit query over every sphere in a scene
    environment: Colors for rays that leave the scene

The scene module manages:
    - Sphere and light storage in Taichi fields, sized once per scene
    - Bounce limit and shadow-test settings read by the shader and tracer
    - Conversion between plain dictionaries and scene configuration
"""

from .config import (
    MAX_BOUNCES,
    SHADOW_BIAS,
    LightSpec,
    MaterialSpec,
    SceneConfig,
    ShadowTest,
    SphereSpec,
    parse_shadow_test,
    validate_bounce_limit,
)
from .environment import ConstantEnvironment, GradientEnvironment
from .intersection import NO_HIT_T, intersect_ray
from .scene import HitResult, Light, Scene, check_direction

__all__ = [
    # Configuration
    "MAX_BOUNCES",
    "SHADOW_BIAS",
    "MaterialSpec",
    "SphereSpec",
    "LightSpec",
    "SceneConfig",
    "ShadowTest",
    "parse_shadow_test",
    "validate_bounce_limit",
    # Scene context
    "Scene",
    "Light",
    "HitResult",
    "check_direction",
    # Intersection
    "intersect_ray",
    "NO_HIT_T",
    # Environment
    "ConstantEnvironment",
    "GradientEnvironment",
]
