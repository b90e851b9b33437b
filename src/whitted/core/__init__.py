"""Core rendering module.

This module contains the fundamental building blocks for Whitted-style ray
tracing:

Components:
    ray: Ray data structure and vector utilities
    shading: Blinn-Phong local illumination with hard shadows
    tracer: Mirror-reflection chain and environment fallback

Every evaluator is a pure Taichi function of (ray, scene); the tracer's
kernels run one independent evaluation per ray in parallel.
"""

from .ray import (
    Ray,
    channel_sum,
    dot,
    length_squared,
    make_ray,
    mirror,
    normalize,
    ray_at,
    vec3,
    vec4,
)

# shading and tracer: import from src.whitted.core.shading / .tracer

__all__ = [
    "Ray",
    "ray_at",
    "make_ray",
    "vec3",
    "vec4",
    "dot",
    "length_squared",
    "normalize",
    "mirror",
    "channel_sum",
]
