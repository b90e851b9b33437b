"""Sphere primitive with near-root ray-sphere intersection.

This module provides the Material, Sphere and HitInfo dataclasses and the
ray-sphere solver used by the scene intersector.

The ray-sphere intersection is found by solving:
    |origin + t * direction - center|^2 = radius^2

which expands to the quadratic a*t^2 + b*t + c = 0 with:
    a = dot(d, d)
    b = dot(2d, p - c)
    c = dot(p - c, p - c) - r^2

Only the near root (-b - sqrt(b^2 - 4ac)) / 2a is ever used. Rays are assumed
to enter spheres from outside; a ray starting inside a sphere gets a negative
near root and therefore never hits that sphere.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.geometry.sphere import Sphere, Material, hit_sphere
    >>> # Use hit_sphere within a Taichi kernel
"""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, vec3


@ti.dataclass
class Material:
    """Blinn-Phong surface material.

    Attributes:
        diffuse: Diffuse reflectance (RGB).
        specular: Specular reflectance (RGB). Also the mirror reflection
            attenuation used by the tracer; all zeros means no reflections.
        shininess: Blinn-Phong specular exponent.
    """

    diffuse: vec3
    specular: vec3
    shininess: ti.f32


@ti.dataclass
class Sphere:
    """A sphere defined by center point, radius and material.

    Attributes:
        center: The center point of the sphere (vec3).
        radius: The radius of the sphere (positive float).
        material: The sphere's surface material.
    """

    center: vec3
    radius: ti.f32
    material: Material


@ti.dataclass
class HitInfo:
    """Record of a ray-scene intersection.

    Attributes:
        hit: Whether the ray intersected any sphere (1 if hit, 0 if miss).
        t: The (strictly positive) ray parameter of the nearest hit.
            Only valid if hit == 1.
        position: The 3D point where the ray hit the sphere.
            Only valid if hit == 1.
        normal: The outward surface normal at the hit point (unit length).
            Only valid if hit == 1.
        material: Copy of the hit sphere's material.
            Only valid if hit == 1.
        sphere_index: Index of the hit sphere in the scene, -1 on a miss.
    """

    hit: ti.i32
    t: ti.f32
    position: vec3
    normal: vec3
    material: Material
    sphere_index: ti.i32


@ti.func
def near_root(ray: Ray, sphere: Sphere):
    """Solve for the near intersection parameter of a ray with a sphere.

    Args:
        ray: The ray to test. The direction must not be zero-length.
        sphere: The sphere to test against.

    Returns:
        A tuple (found, t) where found is 1 if the quadratic has real roots
        (discriminant >= 0) and t is the near root. The sign of t is not
        checked here.
    """
    oc = ray.origin - sphere.center

    a = tm.dot(ray.direction, ray.direction)
    b = tm.dot(2.0 * ray.direction, oc)
    c = tm.dot(oc, oc) - sphere.radius * sphere.radius

    discriminant = b * b - 4.0 * a * c

    found = 0
    t = 0.0
    if discriminant >= 0.0:
        found = 1
        t = (-b - ti.sqrt(discriminant)) / (2.0 * a)

    return found, t


@ti.func
def hit_sphere(ray: Ray, sphere: Sphere, t_max: ti.f32) -> HitInfo:
    """Test a ray against a single sphere.

    A hit is reported only if the near root lies in (0, t_max).

    Args:
        ray: The ray to test.
        sphere: The sphere to test against.
        t_max: Exclusive upper bound on accepted t (best hit so far).

    Returns:
        A HitInfo; check the hit field to determine if it is valid. The
        sphere_index field is left at -1 for the caller to fill in.
    """
    record = make_miss_record()

    found, t = near_root(ray, sphere)
    if found == 1 and t > 0.0 and t < t_max:
        position = ray.origin + t * ray.direction
        record = HitInfo(
            hit=1,
            t=t,
            position=position,
            normal=tm.normalize(position - sphere.center),
            material=sphere.material,
            sphere_index=-1,
        )

    return record


@ti.func
def make_miss_record() -> HitInfo:
    """Create a HitInfo indicating no intersection."""
    return HitInfo(
        hit=0,
        t=0.0,
        position=vec3(0.0, 0.0, 0.0),
        normal=vec3(0.0, 0.0, 0.0),
        material=Material(
            diffuse=vec3(0.0, 0.0, 0.0),
            specular=vec3(0.0, 0.0, 0.0),
            shininess=0.0,
        ),
        sphere_index=-1,
    )
