"""Ray data structure and vector utilities for the Whitted ray tracer.

This module provides the Ray dataclass and the small set of vector helpers the
intersector, shader and tracer share. All operations are Taichi functions so
they can be inlined into kernels that evaluate many rays in parallel.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> origin = ti.math.vec3(0.0, 0.0, 0.0)
    >>> direction = ti.math.vec3(0.0, 0.0, -1.0)
    >>> ray = Ray(origin=origin, direction=direction)
    >>> point = ray_at(ray, 4.0)  # (0, 0, -4)
"""

import taichi as ti
import taichi.math as tm

# Type aliases for 3D vectors and RGBA colors using Taichi's math module
vec3 = tm.vec3
vec4 = tm.vec4


@ti.dataclass
class Ray:
    """A ray with an origin point and direction vector.

    Attributes:
        origin: The starting point of the ray (vec3).
        direction: The direction vector of the ray (vec3). Not required to be
            normalized; functions that need a unit direction normalize it
            themselves. Must not be the zero vector.
    """

    origin: vec3
    direction: vec3


@ti.func
def ray_at(ray: Ray, t: ti.f32) -> vec3:
    """Compute the point along the ray at parameter t.

    Args:
        ray: The ray to evaluate.
        t: The parameter value. Positive values are in front of the origin.

    Returns:
        The point ray.origin + t * ray.direction.
    """
    return ray.origin + t * ray.direction


@ti.func
def make_ray(origin: vec3, direction: vec3) -> Ray:
    """Create a ray from origin and direction."""
    return Ray(origin=origin, direction=direction)


# =============================================================================
# Vector Utility Functions
# =============================================================================


@ti.func
def dot(a: vec3, b: vec3) -> ti.f32:
    """Compute the dot product of two vectors."""
    return tm.dot(a, b)


@ti.func
def length_squared(v: vec3) -> ti.f32:
    """Compute the squared length of a vector."""
    return tm.dot(v, v)


@ti.func
def normalize(v: vec3) -> vec3:
    """Normalize a vector to unit length.

    The zero vector has no direction; callers must not pass one.
    """
    return tm.normalize(v)


@ti.func
def mirror(view: vec3, normal: vec3) -> vec3:
    """Mirror a view vector about a surface normal.

    Unlike the usual ``reflect(incident, normal)``, ``view`` points *away*
    from the surface (toward where the light would come from), so the result
    is also pointing away from the surface:

        R = 2 (V . N) N - V

    Args:
        view: Direction from the surface toward the viewer.
        normal: The surface normal (unit length for a unit result).

    Returns:
        The mirror reflection direction.
    """
    return 2.0 * tm.dot(view, normal) * normal - view


@ti.func
def channel_sum(color: vec3) -> ti.f32:
    """Sum of the RGB channels of a color."""
    return color.x + color.y + color.z
