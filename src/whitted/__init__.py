"""Whitted-style sphere ray tracer built on Taichi.

This package evaluates the color of individual camera rays against a small
scene of spheres and point lights, with support for:
- Nearest-hit ray-sphere intersection
- Blinn-Phong shading with hard shadows
- Bounded chains of mirror reflections ending in an environment lookup
- Batched, parallel evaluation of many independent rays

Subpackages:
    core: Ray and vector utilities, the shader and the tracer
    geometry: Sphere primitive and intersection
    scene: Scene configuration, scene context, intersector and environments
"""

__version__ = "0.1.0"
