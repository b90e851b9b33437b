"""Scene context holding spheres, lights and the bounce limit.

A Scene owns fixed-size Taichi fields for its spheres and lights plus the
scene-wide bounce limit and shadow settings. It is the read-only context
that the intersector, shader and tracer receive for every query; nothing in
those evaluators writes to it. Individual entries can be replaced from
Python between traces, but the array sizes are fixed at construction.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.scene import LightSpec, MaterialSpec, Scene, SphereSpec
    >>> scene = Scene(
    ...     spheres=[SphereSpec((0.0, 0.0, -5.0), 1.0, MaterialSpec(diffuse=(1.0, 1.0, 1.0)))],
    ...     lights=[LightSpec(position=(0.0, 5.0, -5.0))],
    ... )
    >>> hit = scene.intersect((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
    >>> hit.t  # 4.0
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

import taichi as ti

from src.whitted.core.ray import Ray, vec3
from src.whitted.geometry.sphere import Sphere
from src.whitted.scene.config import (
    SHADOW_BIAS,
    LightSpec,
    MaterialSpec,
    SceneConfig,
    ShadowTest,
    SphereSpec,
    Vec3Tuple,
    parse_shadow_test,
    validate_bounce_limit,
)
from src.whitted.scene.intersection import intersect_ray

logger = logging.getLogger(__name__)


@ti.dataclass
class Light:
    """A point light.

    Attributes:
        position: Light position in world space.
        intensity: Light intensity (RGB).
    """

    position: vec3
    intensity: vec3


@dataclass(frozen=True)
class HitResult:
    """Python-side result of a successful intersection query.

    Attributes:
        t: Ray parameter of the hit (strictly positive).
        position: Hit point.
        normal: Unit outward normal at the hit point.
        material: Copy of the hit sphere's material.
        sphere_index: Index of the hit sphere in the scene.
    """

    t: float
    position: Vec3Tuple
    normal: Vec3Tuple
    material: MaterialSpec
    sphere_index: int


def _to_tuple(v) -> Vec3Tuple:
    return (float(v[0]), float(v[1]), float(v[2]))


def check_direction(direction: Sequence[float]) -> None:
    """Reject ray directions the evaluators cannot handle.

    Raises:
        ValueError: If the direction is not 3D or has zero length.
    """
    if len(direction) != 3:
        raise ValueError(f"Ray direction must have 3 components, got {len(direction)}")
    if direction[0] == 0.0 and direction[1] == 0.0 and direction[2] == 0.0:
        raise ValueError("Ray direction must not be the zero vector")


@ti.data_oriented
class Scene:
    """Fixed-size scene of spheres and point lights.

    Attributes:
        num_spheres: Number of spheres (fixed).
        num_lights: Number of lights (fixed).
        shadow_test: How shadow rays locate the light. Fixed at construction
            because it selects code at kernel compile time.
        spheres: Taichi field of Sphere structs.
        lights: Taichi field of Light structs.
        bounce_limit: 0-d Taichi field with the current bounce limit.
        shadow_bias: 0-d Taichi field with the shadow-ray bias.
    """

    def __init__(
        self,
        spheres: Sequence[SphereSpec],
        lights: Sequence[LightSpec],
        *,
        bounce_limit: int = 1,
        shadow_test: ShadowTest | str | int = ShadowTest.PROJECTED,
        shadow_bias: float = SHADOW_BIAS,
    ) -> None:
        """Create a scene and upload its contents to Taichi fields.

        Args:
            spheres: Sphere descriptions; their count fixes num_spheres.
            lights: Light descriptions; their count fixes num_lights.
            bounce_limit: Maximum mirror bounces, 0..MAX_BOUNCES.
            shadow_test: ShadowTest member, name ("projected", "x_axis") or
                value.
            shadow_bias: Shadow-ray hits at t <= shadow_bias are ignored.

        Raises:
            ValueError: If any description or setting is invalid.
        """
        self.num_spheres = len(spheres)
        self.num_lights = len(lights)
        self.shadow_test = int(parse_shadow_test(shadow_test))

        # Taichi fields cannot be empty; unused slots are never read because
        # the loops are bounded by num_spheres / num_lights.
        self.spheres = Sphere.field(shape=max(self.num_spheres, 1))
        self.lights = Light.field(shape=max(self.num_lights, 1))
        self.bounce_limit = ti.field(dtype=ti.i32, shape=())
        self.shadow_bias = ti.field(dtype=ti.f32, shape=())

        # Intersection query output (Python-side queries only)
        self._query_hit = ti.field(dtype=ti.i32, shape=())
        self._query_t = ti.field(dtype=ti.f32, shape=())
        self._query_position = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._query_normal = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._query_index = ti.field(dtype=ti.i32, shape=())

        self._sphere_specs: list[SphereSpec] = []
        self._light_specs: list[LightSpec] = []

        for spec in spheres:
            spec.validate()
            self._sphere_specs.append(spec)
        for spec in lights:
            spec.validate()
            self._light_specs.append(spec)

        for i, spec in enumerate(self._sphere_specs):
            self._upload_sphere(i, spec)
        for i, spec in enumerate(self._light_specs):
            self._upload_light(i, spec)

        self.set_bounce_limit(bounce_limit)
        self.set_shadow_bias(shadow_bias)

        logger.debug(
            "Created scene with %d spheres, %d lights (bounce_limit=%d, shadow_test=%s)",
            self.num_spheres,
            self.num_lights,
            bounce_limit,
            ShadowTest(self.shadow_test).name,
        )

    @classmethod
    def from_config(cls, config: SceneConfig) -> "Scene":
        """Build a scene from a SceneConfig.

        Raises:
            ValueError: If the configuration is invalid.
        """
        config.validate()
        return cls(
            config.spheres,
            config.lights,
            bounce_limit=config.bounce_limit,
            shadow_test=config.shadow_test,
            shadow_bias=config.shadow_bias,
        )

    def to_config(self) -> SceneConfig:
        """Export the current scene contents to a SceneConfig."""
        return SceneConfig(
            spheres=list(self._sphere_specs),
            lights=list(self._light_specs),
            bounce_limit=self.get_bounce_limit(),
            shadow_test=ShadowTest(self.shadow_test),
            shadow_bias=float(self.shadow_bias[None]),
        )

    # =========================================================================
    # Scene Updates
    # =========================================================================

    def _upload_sphere(self, index: int, spec: SphereSpec) -> None:
        self.spheres.center[index] = spec.center
        self.spheres.radius[index] = spec.radius
        material = self.spheres.material
        material.diffuse[index] = spec.material.diffuse
        material.specular[index] = spec.material.specular
        material.shininess[index] = spec.material.shininess

    def _upload_light(self, index: int, spec: LightSpec) -> None:
        self.lights.position[index] = spec.position
        self.lights.intensity[index] = spec.intensity

    def set_sphere(self, index: int, spec: SphereSpec) -> None:
        """Replace the sphere at index.

        Raises:
            IndexError: If index is outside [0, num_spheres).
            ValueError: If the sphere description is invalid.
        """
        if not 0 <= index < self.num_spheres:
            raise IndexError(f"Sphere index {index} out of range [0, {self.num_spheres})")
        spec.validate()
        self._sphere_specs[index] = spec
        self._upload_sphere(index, spec)

    def set_light(self, index: int, spec: LightSpec) -> None:
        """Replace the light at index.

        Raises:
            IndexError: If index is outside [0, num_lights).
            ValueError: If the light description is invalid.
        """
        if not 0 <= index < self.num_lights:
            raise IndexError(f"Light index {index} out of range [0, {self.num_lights})")
        spec.validate()
        self._light_specs[index] = spec
        self._upload_light(index, spec)

    def set_bounce_limit(self, bounce_limit: int) -> None:
        """Set the number of mirror bounces traced after the primary hit.

        Raises:
            ValueError: If the bounce limit is outside [0, MAX_BOUNCES].
        """
        validate_bounce_limit(bounce_limit)
        self.bounce_limit[None] = bounce_limit

    def get_bounce_limit(self) -> int:
        return int(self.bounce_limit[None])

    def set_shadow_bias(self, shadow_bias: float) -> None:
        """Set the minimum distance at which a shadow-ray hit blocks a light.

        Raises:
            ValueError: If the bias is negative.
        """
        if shadow_bias < 0.0:
            raise ValueError(f"Shadow bias = {shadow_bias} is negative.")
        self.shadow_bias[None] = shadow_bias

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def sphere_spec(self, index: int) -> SphereSpec:
        return self._sphere_specs[index]

    def light_spec(self, index: int) -> LightSpec:
        return self._light_specs[index]

    @ti.kernel
    def _intersect_kernel(self, origin: vec3, direction: vec3):
        rec = intersect_ray(self, Ray(origin=origin, direction=direction))
        self._query_hit[None] = rec.hit
        self._query_t[None] = rec.t
        self._query_position[None] = rec.position
        self._query_normal[None] = rec.normal
        self._query_index[None] = rec.sphere_index

    def intersect(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
    ) -> "HitResult | None":
        """Find the nearest sphere hit along a ray.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z); need not be normalized.

        Returns:
            A HitResult for the nearest hit with t > 0, or None on a miss.

        Raises:
            ValueError: If the direction is zero-length or not 3D.
        """
        check_direction(direction)
        self._intersect_kernel(vec3(*origin), vec3(*direction))

        if self._query_hit[None] == 0:
            return None

        index = int(self._query_index[None])
        return HitResult(
            t=float(self._query_t[None]),
            position=_to_tuple(self._query_position[None]),
            normal=_to_tuple(self._query_normal[None]),
            material=self._sphere_specs[index].material,
            sphere_index=index,
        )
