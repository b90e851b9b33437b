"""Blinn-Phong local illumination with hard shadows.

For every point light the shader evaluates

    diffuse  = max(0, N . L) * k_d
    specular = k_s * max(0, N . H) ^ n,   H = normalize(L + V)

and adds ``intensity * (diffuse + specular)`` unless a shadow ray toward the
light is blocked. The shadow ray starts at the shaded point with direction
``light.position - position`` (not normalized, so the light sits at t = 1).
It is blocked when the scene's nearest hit satisfies

    shadow_bias < hit.t < t_light

where t_light is recovered according to the scene's ShadowTest. The result
is a non-negative, unclamped RGB value.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.shading import shade
    >>> # Use shade(scene, material, position, normal, view) within a kernel
"""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, vec3
from src.whitted.scene.config import ShadowTest
from src.whitted.scene.intersection import intersect_ray


@ti.func
def light_parameter(
    shadow_test: ti.template(), position: vec3, light_position: vec3, direction: vec3
) -> ti.f32:
    """Ray parameter at which a shadow ray reaches its light.

    Args:
        shadow_test: ShadowTest value (compile-time constant).
        position: Shadow ray origin.
        light_position: Light position.
        direction: Shadow ray direction.

    Returns:
        t such that position + t * direction is the light position.
    """
    t_light = 0.0
    if ti.static(shadow_test == ShadowTest.X_AXIS):
        t_light = (light_position.x - position.x) / direction.x
    else:
        t_light = tm.dot(light_position - position, direction) / tm.dot(direction, direction)
    return t_light


@ti.func
def blinn_phong(material, normal: vec3, light_dir: vec3, view: vec3) -> vec3:
    """Unshadowed Blinn-Phong reflectance for one light direction.

    All three vectors must be unit length.
    """
    half_vector = tm.normalize(light_dir + view)

    geometry_term = tm.max(0.0, tm.dot(normal, light_dir))
    specular_cosine = tm.max(0.0, tm.dot(normal, half_vector))

    diffuse = geometry_term * material.diffuse
    specular = material.specular * specular_cosine**material.shininess
    return diffuse + specular


@ti.func
def is_shadowed(scene: ti.template(), position: vec3, light_position: vec3) -> ti.i32:
    """Check whether the segment from position to a light is blocked.

    Args:
        scene: The scene to cast the shadow ray into.
        position: The shaded point.
        light_position: The light position.

    Returns:
        1 if a sphere lies strictly between the point (beyond the bias) and
        the light, 0 otherwise.
    """
    shadow_ray = Ray(origin=position, direction=light_position - position)
    rec = intersect_ray(scene, shadow_ray)

    blocked = 0
    if rec.hit == 1:
        t_light = light_parameter(
            scene.shadow_test, position, light_position, shadow_ray.direction
        )
        if rec.t > scene.shadow_bias[None] and rec.t < t_light:
            blocked = 1
    return blocked


@ti.func
def shade(scene: ti.template(), material, position: vec3, normal: vec3, view: vec3) -> vec3:
    """Shade a surface point with every light in the scene.

    Args:
        scene: The scene providing lights and occluders.
        material: The surface material at the point.
        position: The surface point.
        normal: The surface normal (normalized internally).
        view: Direction from the point toward the viewer (normalized
            internally).

    Returns:
        The summed RGB contribution of all unoccluded lights.
    """
    color = vec3(0.0, 0.0, 0.0)

    n = tm.normalize(normal)
    v = tm.normalize(view)

    for i in range(scene.num_lights):
        light = scene.lights[i]
        light_dir = tm.normalize(light.position - position)
        reflectance = blinn_phong(material, n, light_dir, v)

        if is_shadowed(scene, position, light.position) == 0:
            color += light.intensity * reflectance

    return color
