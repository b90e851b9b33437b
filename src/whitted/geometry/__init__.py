"""Geometry module for the sphere primitive.

Components:
    sphere: Material/Sphere/HitInfo structures and ray-sphere intersection

All intersection routines are implemented as Taichi functions (@ti.func)
so the scene intersector can inline them into parallel kernels.
"""

from .sphere import (
    HitInfo,
    Material,
    Sphere,
    hit_sphere,
    make_miss_record,
    near_root,
)

__all__ = [
    "Material",
    "Sphere",
    "HitInfo",
    "near_root",
    "hit_sphere",
    "make_miss_record",
]
