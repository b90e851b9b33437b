"""Whitted-style ray tracer: direct shading plus a mirror-reflection chain.

For a primary ray the tracer:
    1. Intersects the scene. A miss returns the environment color with
       alpha 0.
    2. Shades the primary hit with the Blinn-Phong shader.
    3. Follows perfect mirror reflections for up to
       min(MAX_BOUNCES, scene bounce limit) bounces, adding each reflected
       hit's shading scaled by the running product of specular
       coefficients (the attenuation). A reflection ray that escapes adds
       the attenuated environment color and ends the chain.
    4. Returns the accumulated color with alpha 1.

The reflection chain is an explicit state machine (TraceState) with the
statuses TRACING, ESCAPED and DONE. A chain stops when the bounce limit is
reached, when the attenuation channels sum to zero or less, or when a ray
escapes.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from src.whitted.core.tracer import WhittedTracer
    >>> from src.whitted.scene import ConstantEnvironment, Scene
    >>> tracer = WhittedTracer(scene, ConstantEnvironment((0.1, 0.1, 0.1)))
    >>> r, g, b, a = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
"""

import logging
from collections.abc import Sequence

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import Ray, channel_sum, mirror, vec3, vec4
from src.whitted.core.shading import shade
from src.whitted.geometry.sphere import Material
from src.whitted.scene.config import MAX_BOUNCES, MaterialSpec
from src.whitted.scene.intersection import intersect_ray
from src.whitted.scene.scene import Scene, check_direction

logger = logging.getLogger(__name__)

# =============================================================================
# Reflection Chain State
# =============================================================================

# Chain is still casting reflection rays
TRACING = 0
# Last reflection ray left the scene; environment already accumulated
ESCAPED = 1
# Stopped by the bounce limit or exhausted attenuation
DONE = 2


@ti.dataclass
class TraceState:
    """State of a reflection chain after a primary hit.

    Attributes:
        status: TRACING, ESCAPED or DONE.
        depth: Number of reflection bounces completed.
        position: Current surface point (reflection ray origin).
        normal: Unit normal at the current surface point.
        view: Direction from the current point back along the incoming ray.
        attenuation: Running product of specular coefficients (k_s).
        color: Accumulated color so far.
    """

    status: ti.i32
    depth: ti.i32
    position: vec3
    normal: vec3
    view: vec3
    attenuation: vec3
    color: vec3


@ti.func
def begin_chain(scene: ti.template(), hit, ray) -> TraceState:
    """Shade the primary hit and set up the reflection chain.

    Args:
        scene: The scene.
        hit: The primary HitInfo (hit == 1).
        ray: The primary ray.

    Returns:
        A TRACING state holding the direct shading of the primary hit.
    """
    view = tm.normalize(-ray.direction)
    color = shade(scene, hit.material, hit.position, hit.normal, view)
    return TraceState(
        status=TRACING,
        depth=0,
        position=hit.position,
        normal=hit.normal,
        view=view,
        attenuation=hit.material.specular,
        color=color,
    )


@ti.func
def step_chain(scene: ti.template(), environment: ti.template(), state: TraceState) -> TraceState:
    """Advance a TRACING chain by at most one bounce.

    Args:
        scene: The scene.
        environment: Environment providing sample(direction).
        state: Current state; must be TRACING.

    Returns:
        The next state. DONE if the bounce limit is reached or the
        attenuation is exhausted, ESCAPED if the reflection ray missed,
        otherwise TRACING one bounce deeper.
    """
    next_state = state

    if state.depth >= scene.bounce_limit[None]:
        next_state.status = DONE
    elif channel_sum(state.attenuation) <= 0.0:
        next_state.status = DONE
    else:
        reflection = Ray(
            origin=state.position,
            direction=mirror(state.view, state.normal),
        )
        hit = intersect_ray(scene, reflection)

        if hit.hit == 1:
            view = -reflection.direction
            next_state.color += (
                shade(scene, hit.material, hit.position, hit.normal, view) * state.attenuation
            )
            next_state.view = view
            next_state.normal = hit.normal
            next_state.position = hit.position
            next_state.attenuation = state.attenuation * hit.material.specular
            next_state.depth = state.depth + 1
        else:
            next_state.color += state.attenuation * environment.sample(reflection.direction)
            next_state.status = ESCAPED

    return next_state


@ti.func
def trace(scene: ti.template(), environment: ti.template(), ray) -> vec4:
    """Trace a primary ray and return its color.

    Args:
        scene: The scene.
        environment: Environment providing sample(direction).
        ray: The primary ray. The direction must not be zero-length.

    Returns:
        (r, g, b, 1) when the ray hits a sphere, or the environment color
        in ray.direction with alpha 0 when it misses.
    """
    result = vec4(0.0, 0.0, 0.0, 0.0)
    hit = intersect_ray(scene, ray)

    if hit.hit == 0:
        env = environment.sample(ray.direction)
        result = vec4(env.x, env.y, env.z, 0.0)
    else:
        state = begin_chain(scene, hit, ray)
        # Bounded by MAX_BOUNCES + 1 so a chain at the maximum bounce limit
        # still gets its final DONE step.
        for _ in range(MAX_BOUNCES + 1):
            if state.status == TRACING:
                state = step_chain(scene, environment, state)
        result = vec4(state.color.x, state.color.y, state.color.z, 1.0)

    return result


# =============================================================================
# Python-Facing Tracer
# =============================================================================


def _as_ray_array(values: npt.ArrayLike, name: str) -> npt.NDArray[np.float32]:
    array = np.ascontiguousarray(values, dtype=np.float32)
    if array.ndim != 2 or array.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {array.shape}")
    return array


@ti.data_oriented
class WhittedTracer:
    """Binds a scene and an environment and evaluates rays against them.

    The scene and environment are only read. The tracer can be reused
    across frames; updating the scene between calls (e.g. a new bounce
    limit) takes effect on the next trace.

    Attributes:
        scene: The Scene being rendered.
        environment: Object with a ``@ti.func sample(direction) -> vec3``.
    """

    def __init__(self, scene: Scene, environment) -> None:
        self.scene = scene
        self.environment = environment

    @ti.kernel
    def _trace_one(self, origin: vec3, direction: vec3) -> vec4:
        return trace(self.scene, self.environment, Ray(origin=origin, direction=direction))

    @ti.kernel
    def _trace_many(
        self,
        origins: ti.types.ndarray(dtype=ti.f32, ndim=2),
        directions: ti.types.ndarray(dtype=ti.f32, ndim=2),
        out: ti.types.ndarray(dtype=ti.f32, ndim=2),
    ):
        for i in range(origins.shape[0]):
            ray = Ray(
                origin=vec3(origins[i, 0], origins[i, 1], origins[i, 2]),
                direction=vec3(directions[i, 0], directions[i, 1], directions[i, 2]),
            )
            color = trace(self.scene, self.environment, ray)
            for c in ti.static(range(4)):
                out[i, c] = color[c]

    @ti.kernel
    def _shade_one(
        self,
        diffuse: vec3,
        specular: vec3,
        shininess: ti.f32,
        position: vec3,
        normal: vec3,
        view: vec3,
    ) -> vec3:
        material = Material(diffuse=diffuse, specular=specular, shininess=shininess)
        return shade(self.scene, material, position, normal, view)

    def trace_ray(
        self,
        origin: Sequence[float],
        direction: Sequence[float],
    ) -> tuple[float, float, float, float]:
        """Trace a single ray.

        Args:
            origin: Ray origin (x, y, z).
            direction: Ray direction (x, y, z); need not be normalized.

        Returns:
            Tuple of (R, G, B, A). A is 1.0 for a sphere hit and 0.0 when
            the color came straight from the environment.

        Raises:
            ValueError: If the direction is zero-length or not 3D.
        """
        check_direction(direction)
        color = self._trace_one(vec3(*origin), vec3(*direction))
        return (float(color[0]), float(color[1]), float(color[2]), float(color[3]))

    def trace_rays(
        self,
        origins: npt.ArrayLike,
        directions: npt.ArrayLike,
    ) -> npt.NDArray[np.float32]:
        """Trace many independent rays in parallel.

        Args:
            origins: Array of shape (N, 3) with ray origins.
            directions: Array of shape (N, 3) with ray directions; none may
                be zero-length.

        Returns:
            Array of shape (N, 4) with float32 RGBA per ray.

        Raises:
            ValueError: If the arrays have the wrong shape, differ in
                length, or contain a zero-length direction.
        """
        origins_arr = _as_ray_array(origins, "origins")
        directions_arr = _as_ray_array(directions, "directions")
        if origins_arr.shape[0] != directions_arr.shape[0]:
            raise ValueError(
                f"Got {origins_arr.shape[0]} origins but {directions_arr.shape[0]} directions"
            )
        if np.any(np.all(directions_arr == 0.0, axis=1)):
            raise ValueError("Ray directions must not contain the zero vector")

        out = np.zeros((origins_arr.shape[0], 4), dtype=np.float32)
        if out.shape[0] == 0:
            return out

        logger.debug("Tracing %d rays", out.shape[0])
        self._trace_many(origins_arr, directions_arr, out)
        return out

    def trace_image(
        self,
        origins: npt.ArrayLike,
        directions: npt.ArrayLike,
    ) -> npt.NDArray[np.float32]:
        """Trace a grid of rays, e.g. one per pixel.

        Args:
            origins: Array of shape (H, W, 3), or a single (3,) origin shared
                by every ray (pinhole camera).
            directions: Array of shape (H, W, 3).

        Returns:
            Array of shape (H, W, 4) with float32 RGBA.

        Raises:
            ValueError: If the shapes are inconsistent.
        """
        directions_arr = np.asarray(directions, dtype=np.float32)
        if directions_arr.ndim != 3 or directions_arr.shape[2] != 3:
            raise ValueError(f"directions must have shape (H, W, 3), got {directions_arr.shape}")
        height, width = directions_arr.shape[:2]

        origins_arr = np.broadcast_to(np.asarray(origins, dtype=np.float32), directions_arr.shape)

        colors = self.trace_rays(origins_arr.reshape(-1, 3), directions_arr.reshape(-1, 3))
        return colors.reshape(height, width, 4)

    def shade_point(
        self,
        material: MaterialSpec,
        position: Sequence[float],
        normal: Sequence[float],
        view: Sequence[float],
    ) -> tuple[float, float, float]:
        """Evaluate the shader at an arbitrary surface point.

        Args:
            material: The surface material.
            position: The surface point.
            normal: Surface normal (need not be normalized).
            view: Direction toward the viewer (need not be normalized).

        Returns:
            Tuple of (R, G, B).

        Raises:
            ValueError: If the material is invalid.
        """
        material.validate()
        color = self._shade_one(
            vec3(*material.diffuse),
            vec3(*material.specular),
            material.shininess,
            vec3(*position),
            vec3(*normal),
            vec3(*view),
        )
        return (float(color[0]), float(color[1]), float(color[2]))
