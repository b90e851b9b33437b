"""Scene configuration dataclasses.

Plain-Python descriptions of materials, spheres and lights, plus the
scene-wide settings the tracer reads (bounce limit, shadow test). These are
validated on the Python side before anything is uploaded to Taichi fields,
and can be converted to and from plain dictionaries (e.g. decoded JSON).

Example:
    >>> from src.whitted.scene.config import (
    ...     LightSpec, MaterialSpec, SceneConfig, SphereSpec
    ... )
    >>> white = MaterialSpec(diffuse=(1.0, 1.0, 1.0))
    >>> config = SceneConfig(
    ...     spheres=[SphereSpec(center=(0.0, 0.0, -5.0), radius=1.0, material=white)],
    ...     lights=[LightSpec(position=(0.0, 5.0, -5.0), intensity=(1.0, 1.0, 1.0))],
    ...     bounce_limit=2,
    ... )
    >>> config.validate()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

# Upper bound on reflection bounces; the per-scene bounce_limit may not exceed it
MAX_BOUNCES = 16

# Minimum shadow-ray hit distance that counts as an occluder
SHADOW_BIAS = 1e-7

Vec3Tuple = tuple[float, float, float]


class ShadowTest(IntEnum):
    """How the shadow test recovers the ray parameter of the light.

    The shadow ray direction is ``light.position - position``, so the light
    sits at t = 1 in exact arithmetic.

    PROJECTED: t_light = dot(L - p, d) / dot(d, d). Stable for any direction.
    X_AXIS: t_light = (L.x - p.x) / d.x. Reproduces the classic per-axis
        back-solve; undefined when the shadow ray is perpendicular to x.
    """

    PROJECTED = 0
    X_AXIS = 1


def _as_vec3(value: Any, name: str) -> Vec3Tuple:
    """Convert a 3-element sequence to a float tuple."""
    items = tuple(value)
    if len(items) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(items)}")
    return (float(items[0]), float(items[1]), float(items[2]))


def _check_non_negative(value: Vec3Tuple, name: str) -> None:
    for i, component in enumerate(value):
        if component < 0.0:
            raise ValueError(f"{name} component {i} = {component} is negative.")


def parse_shadow_test(value: ShadowTest | str | int) -> ShadowTest:
    """Parse a shadow test from an enum member, name or integer value.

    Raises:
        ValueError: If the value does not name a ShadowTest.
    """
    if isinstance(value, ShadowTest):
        return value
    if isinstance(value, str):
        try:
            return ShadowTest[value.upper()]
        except KeyError:
            raise ValueError(f"Unknown shadow test: {value}") from None
    try:
        return ShadowTest(value)
    except ValueError:
        raise ValueError(f"Unknown shadow test: {value}") from None


@dataclass(frozen=True)
class MaterialSpec:
    """Blinn-Phong material description.

    Attributes:
        diffuse: Diffuse reflectance (R, G, B), non-negative.
        specular: Specular / mirror reflectance (R, G, B), non-negative.
        shininess: Specular exponent, non-negative.
    """

    diffuse: Vec3Tuple = (0.0, 0.0, 0.0)
    specular: Vec3Tuple = (0.0, 0.0, 0.0)
    shininess: float = 0.0

    def validate(self) -> None:
        """Check the material parameters.

        Raises:
            ValueError: If a color has the wrong arity or a negative
                component, or the shininess is negative.
        """
        _check_non_negative(_as_vec3(self.diffuse, "diffuse"), "Diffuse")
        _check_non_negative(_as_vec3(self.specular, "specular"), "Specular")
        if self.shininess < 0.0:
            raise ValueError(f"Shininess = {self.shininess} is negative.")

    def to_dict(self) -> dict[str, Any]:
        return {
            "diffuse": list(self.diffuse),
            "specular": list(self.specular),
            "shininess": self.shininess,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MaterialSpec:
        return cls(
            diffuse=_as_vec3(data.get("diffuse", [0.0, 0.0, 0.0]), "diffuse"),
            specular=_as_vec3(data.get("specular", [0.0, 0.0, 0.0]), "specular"),
            shininess=float(data.get("shininess", 0.0)),
        )


@dataclass(frozen=True)
class SphereSpec:
    """Sphere description.

    Attributes:
        center: Center point (x, y, z).
        radius: Radius, strictly positive.
        material: Surface material.
    """

    center: Vec3Tuple
    radius: float
    material: MaterialSpec = field(default_factory=MaterialSpec)

    def validate(self) -> None:
        """Check the sphere parameters.

        Raises:
            ValueError: If the center has the wrong arity, the radius is not
                positive, or the material is invalid.
        """
        _as_vec3(self.center, "center")
        if self.radius <= 0.0:
            raise ValueError(f"Radius = {self.radius} must be positive.")
        self.material.validate()

    def to_dict(self) -> dict[str, Any]:
        return {
            "center": list(self.center),
            "radius": self.radius,
            "material": self.material.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SphereSpec:
        return cls(
            center=_as_vec3(data.get("center", [0.0, 0.0, 0.0]), "center"),
            radius=float(data.get("radius", 1.0)),
            material=MaterialSpec.from_dict(data.get("material", {})),
        )


@dataclass(frozen=True)
class LightSpec:
    """Point light description.

    Attributes:
        position: Light position (x, y, z).
        intensity: Light intensity (R, G, B), non-negative.
    """

    position: Vec3Tuple
    intensity: Vec3Tuple = (1.0, 1.0, 1.0)

    def validate(self) -> None:
        """Check the light parameters.

        Raises:
            ValueError: If a vector has the wrong arity or the intensity has
                a negative component.
        """
        _as_vec3(self.position, "position")
        _check_non_negative(_as_vec3(self.intensity, "intensity"), "Intensity")

    def to_dict(self) -> dict[str, Any]:
        return {"position": list(self.position), "intensity": list(self.intensity)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LightSpec:
        return cls(
            position=_as_vec3(data.get("position", [0.0, 0.0, 0.0]), "position"),
            intensity=_as_vec3(data.get("intensity", [1.0, 1.0, 1.0]), "intensity"),
        )


@dataclass
class SceneConfig:
    """Configuration for a whole scene.

    Attributes:
        spheres: Sphere descriptions; their count fixes the scene's sphere
            array size.
        lights: Light descriptions; their count fixes the light array size.
        bounce_limit: Maximum number of mirror bounces, 0..MAX_BOUNCES.
        shadow_test: How shadow rays locate the light (see ShadowTest).
        shadow_bias: Shadow-ray hits at t <= shadow_bias are ignored.
    """

    spheres: list[SphereSpec] = field(default_factory=list)
    lights: list[LightSpec] = field(default_factory=list)
    bounce_limit: int = 1
    shadow_test: ShadowTest = ShadowTest.PROJECTED
    shadow_bias: float = SHADOW_BIAS

    def validate(self) -> None:
        """Check every sphere, light and scene-wide setting.

        Raises:
            ValueError: If any part of the configuration is invalid.
        """
        for sphere in self.spheres:
            sphere.validate()
        for light in self.lights:
            light.validate()
        validate_bounce_limit(self.bounce_limit)
        parse_shadow_test(self.shadow_test)
        if self.shadow_bias < 0.0:
            raise ValueError(f"Shadow bias = {self.shadow_bias} is negative.")

    def to_dict(self) -> dict[str, Any]:
        """Export the configuration to a dictionary (for JSON serialization)."""
        return {
            "spheres": [sphere.to_dict() for sphere in self.spheres],
            "lights": [light.to_dict() for light in self.lights],
            "bounce_limit": self.bounce_limit,
            "shadow_test": parse_shadow_test(self.shadow_test).name.lower(),
            "shadow_bias": self.shadow_bias,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SceneConfig:
        """Load a configuration from a dictionary.

        Args:
            data: Dictionary with 'spheres', 'lights' and optional
                'bounce_limit', 'shadow_test', 'shadow_bias' keys.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        config = cls(
            spheres=[SphereSpec.from_dict(s) for s in data.get("spheres", [])],
            lights=[LightSpec.from_dict(light) for light in data.get("lights", [])],
            bounce_limit=int(data.get("bounce_limit", 1)),
            shadow_test=parse_shadow_test(data.get("shadow_test", "projected")),
            shadow_bias=float(data.get("shadow_bias", SHADOW_BIAS)),
        )
        config.validate()
        return config


def validate_bounce_limit(bounce_limit: int) -> None:
    """Check that a bounce limit is within [0, MAX_BOUNCES].

    Raises:
        ValueError: If the bounce limit is out of range.
    """
    if bounce_limit < 0 or bounce_limit > MAX_BOUNCES:
        raise ValueError(
            f"Bounce limit = {bounce_limit} is outside [0, {MAX_BOUNCES}]."
        )
