"""Environment lookups for rays that escape the scene.

The tracer only needs a total function from direction to color. Any
``@ti.data_oriented`` object with a ``@ti.func sample(self, direction)``
method returning a vec3 can be plugged in (for example a cube-map sampler
owned by the host application). This module ships two analytic ones.

Example:
    >>> from src.whitted.scene.environment import GradientEnvironment
    >>> sky = GradientEnvironment(horizon=(1.0, 1.0, 1.0), zenith=(0.5, 0.7, 1.0))
"""

import taichi as ti
import taichi.math as tm

from src.whitted.core.ray import vec3


@ti.data_oriented
class ConstantEnvironment:
    """Environment returning the same color in every direction.

    Attributes:
        color: The background color (R, G, B).
    """

    def __init__(self, color: tuple[float, float, float] = (0.0, 0.0, 0.0)) -> None:
        self._color = ti.Vector.field(3, dtype=ti.f32, shape=())
        self.set_color(color)

    @property
    def color(self) -> tuple[float, float, float]:
        c = self._color[None]
        return (float(c[0]), float(c[1]), float(c[2]))

    def set_color(self, color: tuple[float, float, float]) -> None:
        self._color[None] = [color[0], color[1], color[2]]

    @ti.func
    def sample(self, direction: vec3) -> vec3:
        return self._color[None]


@ti.data_oriented
class GradientEnvironment:
    """Two-color sky gradient along one world axis.

    The direction is normalized and its component along ``up_axis`` is
    remapped from [-1, 1] to a blend factor in [0, 1]:

        t = 0.5 * (d_up + 1)
        color = (1 - t) * horizon + t * zenith

    Attributes:
        horizon: Color looking straight down the axis (t = 0).
        zenith: Color looking straight up the axis (t = 1).
        up_axis: 0, 1 or 2 for x, y or z. Defaults to y.
    """

    def __init__(
        self,
        horizon: tuple[float, float, float] = (1.0, 1.0, 1.0),
        zenith: tuple[float, float, float] = (0.5, 0.7, 1.0),
        up_axis: int = 1,
    ) -> None:
        if up_axis not in (0, 1, 2):
            raise ValueError(f"up_axis must be 0, 1 or 2, got {up_axis}")
        self.up_axis = up_axis
        self._horizon = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._zenith = ti.Vector.field(3, dtype=ti.f32, shape=())
        self._horizon[None] = [horizon[0], horizon[1], horizon[2]]
        self._zenith[None] = [zenith[0], zenith[1], zenith[2]]

    @ti.func
    def sample(self, direction: vec3) -> vec3:
        unit = tm.normalize(direction)
        t = 0.5 * (unit[ti.static(self.up_axis)] + 1.0)
        return (1.0 - t) * self._horizon[None] + t * self._zenith[None]
