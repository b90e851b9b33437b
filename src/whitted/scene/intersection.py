"""Scene-level ray intersection testing.

This module provides the nearest-hit query over every sphere in a scene.
The scene is passed in explicitly (any object with ``spheres`` and
``num_spheres`` attributes, normally a ``Scene``), so the query is a pure
function of (ray, scene).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene.intersection import intersect_ray
    >>> # Use intersect_ray(scene, ray) within a Taichi kernel
"""

import taichi as ti

from src.whitted.geometry.sphere import HitInfo, hit_sphere, make_miss_record

# Initial "best t" for the nearest-hit search. A search that never improves
# on it reports no hit.
NO_HIT_T = 1e30


@ti.func
def intersect_ray(scene: ti.template(), ray) -> HitInfo:
    """Find the nearest sphere hit along a ray.

    Scans every sphere; a sphere contributes a candidate only through its
    near root, and the candidate is accepted if 0 < t < best t so far.

    Args:
        scene: The scene holding the sphere field.
        ray: The ray to test. The direction must not be zero-length.

    Returns:
        A HitInfo for the globally nearest accepted hit, or a miss record
        (hit == 0) if no sphere produced an accepted candidate.
    """
    closest_t = NO_HIT_T
    result = make_miss_record()

    for i in range(scene.num_spheres):
        rec = hit_sphere(ray, scene.spheres[i], closest_t)
        if rec.hit == 1:
            closest_t = rec.t
            result = rec
            result.sphere_index = i

    return result
