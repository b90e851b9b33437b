"""Tests for the Whitted tracer.

This module tests the primary-ray and reflection-chain behavior including:
- Primary misses returning the environment with alpha 0
- Direct shading when the bounce limit is 0 or the material is diffuse
- Reflection rays escaping into the environment
- Attenuated reflection chains between facing mirrors
- Bounce limit changes taking effect on the next trace
- Batch tracing of ray arrays and ray grids

Note: Imports are done inside test methods to avoid Taichi initialization issues.
The conftest.py fixture initializes Taichi before tests run.
"""

import numpy as np
import pytest


@pytest.fixture
def facing_mirrors():
    """Two half-mirror spheres facing each other with a light between them."""
    from src.whitted.scene.config import LightSpec, MaterialSpec, SphereSpec

    half_mirror = MaterialSpec(
        diffuse=(1.0, 1.0, 1.0), specular=(0.5, 0.5, 0.5), shininess=10.0
    )
    spheres = [
        SphereSpec((0.0, 0.0, -5.0), 1.0, half_mirror),
        SphereSpec((0.0, 0.0, 5.0), 1.0, half_mirror),
    ]
    lights = [LightSpec(position=(0.0, 0.0, 0.0), intensity=(1.0, 1.0, 1.0))]
    return spheres, lights


def _chain_value(bounces):
    # Each surface contributes 1.5 (diffuse 1 + specular 0.5), halved per bounce
    return 1.5 * (2.0 - 0.5**bounces)


class TestPrimaryRay:
    """Tests for primary ray hits and misses."""

    def test_miss_returns_environment_with_zero_alpha(self, make_tracer, white_diffuse):
        """Test a ray missing everything returns the environment and alpha 0."""
        from src.whitted.scene.config import SphereSpec

        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)],
            env_color=(0.2, 0.3, 0.4),
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, 1.0))

        assert color == pytest.approx((0.2, 0.3, 0.4, 0.0), abs=1e-6)

    def test_empty_scene_always_misses(self, make_tracer):
        """Test an empty scene shows only the environment."""
        tracer = make_tracer([], env_color=(1.0, 0.5, 0.25))
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.3, -0.2, -1.0))

        assert color == pytest.approx((1.0, 0.5, 0.25, 0.0), abs=1e-6)

    def test_hit_has_alpha_one(self, make_tracer, white_diffuse):
        """Test an unlit hit is black but opaque."""
        from src.whitted.scene.config import SphereSpec

        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)],
            env_color=(0.2, 0.3, 0.4),
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((0.0, 0.0, 0.0, 1.0), abs=1e-6)

    def test_diffuse_hit_equals_direct_shading(self, make_tracer, white_diffuse):
        """Test a purely diffuse surface is not affected by the bounce limit."""
        from src.whitted.scene.config import LightSpec, SphereSpec

        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)],
            [LightSpec(position=(0.0, 5.0, 0.0))],
            env_color=(1.0, 1.0, 1.0),
            bounce_limit=5,
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        direct = tracer.shade_point(
            white_diffuse, (0.0, 0.0, -4.0), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0)
        )

        assert color[:3] == pytest.approx(direct, abs=1e-5)
        assert color[3] == 1.0
        assert color[0] == pytest.approx(4.0 / np.sqrt(41.0), abs=1e-5)

    def test_unnormalized_primary_direction(self, make_tracer, white_diffuse):
        """Test scaling the primary direction does not change the color."""
        from src.whitted.scene.config import LightSpec, SphereSpec

        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)],
            [LightSpec(position=(0.0, 5.0, 0.0))],
        )
        unit = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        scaled = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -7.5))

        assert scaled == pytest.approx(unit, abs=1e-5)


class TestReflectionChain:
    """Tests for mirror bounces after the primary hit."""

    def test_bounce_limit_zero_is_direct_shading(self, make_tracer, facing_mirrors):
        """Test no reflection rays are cast when the bounce limit is 0."""
        spheres, lights = facing_mirrors
        tracer = make_tracer(spheres, lights, bounce_limit=0)

        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        direct = tracer.shade_point(
            spheres[0].material, (0.0, 0.0, -4.0), (0.0, 0.0, 1.0), (0.0, 0.0, 1.0)
        )

        assert color[:3] == pytest.approx(direct, abs=1e-5)
        assert color == pytest.approx((1.5, 1.5, 1.5, 1.0), abs=1e-5)

    @pytest.mark.parametrize("bounces", [1, 2, 3])
    def test_attenuated_chain(self, make_tracer, facing_mirrors, bounces):
        """Test each bounce adds the next surface scaled by the specular product."""
        spheres, lights = facing_mirrors
        tracer = make_tracer(spheres, lights, bounce_limit=bounces)

        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        expected = _chain_value(bounces)

        assert color[:3] == pytest.approx((expected,) * 3, rel=1e-5)
        assert color[3] == 1.0

    def test_chain_stops_at_max_bounces(self, make_tracer, facing_mirrors):
        """Test an endless mirror corridor is cut off at MAX_BOUNCES."""
        from src.whitted.scene.config import MAX_BOUNCES

        spheres, lights = facing_mirrors
        tracer = make_tracer(spheres, lights, bounce_limit=MAX_BOUNCES)

        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color[0] == pytest.approx(_chain_value(MAX_BOUNCES), rel=1e-5)
        assert color[0] < 3.0

    def test_reflection_escapes_to_environment(self, make_tracer):
        """Test a reflection ray that misses adds the attenuated environment."""
        from src.whitted.scene.config import MaterialSpec, SphereSpec

        mirror = MaterialSpec(diffuse=(0.0, 0.0, 0.0), specular=(0.5, 0.5, 0.5), shininess=1.0)
        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, mirror)],
            env_color=(0.2, 0.3, 0.4),
            bounce_limit=1,
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((0.1, 0.15, 0.2, 1.0), abs=1e-6)

    def test_escape_uses_reflected_direction(self, make_scene):
        """Test the environment is sampled along the mirrored ray."""
        from src.whitted.core.tracer import WhittedTracer
        from src.whitted.scene.config import MaterialSpec, SphereSpec
        from src.whitted.scene.environment import GradientEnvironment

        mirror = MaterialSpec(specular=(1.0, 1.0, 1.0), shininess=1.0)
        scene = make_scene([SphereSpec((0.0, 0.0, -5.0), 1.0, mirror)], bounce_limit=1)
        # +z maps to zenith, -z to horizon
        sky = GradientEnvironment(horizon=(1.0, 0.0, 0.0), zenith=(0.0, 0.0, 1.0), up_axis=2)
        tracer = WhittedTracer(scene, sky)

        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((0.0, 0.0, 1.0, 1.0), abs=1e-5)

    def test_chain_stops_when_attenuation_reaches_zero(self, make_tracer):
        """Test a matte surface ends the chain before the bounce limit."""
        from src.whitted.scene.config import LightSpec, MaterialSpec, SphereSpec

        mirror = MaterialSpec(specular=(0.5, 0.5, 0.5), shininess=10.0)
        matte = MaterialSpec(diffuse=(1.0, 1.0, 1.0), specular=(0.0, 0.0, 0.0), shininess=1.0)
        tracer = make_tracer(
            [
                SphereSpec((0.0, 0.0, -5.0), 1.0, mirror),
                SphereSpec((0.0, 0.0, 5.0), 1.0, matte),
            ],
            [LightSpec(position=(0.0, 0.0, 0.0))],
            env_color=(1.0, 1.0, 1.0),
            bounce_limit=3,
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        # Mirror highlight 0.5 plus the matte sphere's diffuse 1.0 seen at half
        # strength; no environment term
        assert color == pytest.approx((1.0, 1.0, 1.0, 1.0), abs=1e-5)

    def test_mirror_facing_zero_specular_surface_adds_no_environment(self, make_tracer):
        """Test an unlit mirror facing a black matte sphere stays black."""
        from src.whitted.scene.config import MaterialSpec, SphereSpec

        mirror = MaterialSpec(specular=(1.0, 1.0, 1.0), shininess=1.0)
        matte = MaterialSpec(diffuse=(0.0, 0.0, 0.0), specular=(0.0, 0.0, 0.0), shininess=1.0)
        tracer = make_tracer(
            [
                SphereSpec((0.0, 0.0, -5.0), 1.0, mirror),
                SphereSpec((0.0, 0.0, 5.0), 1.0, matte),
            ],
            env_color=(1.0, 1.0, 1.0),
            bounce_limit=3,
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((0.0, 0.0, 0.0, 1.0), abs=1e-6)

    def test_step_with_zero_attenuation_is_done(self, make_scene):
        """Test step_chain stops on zero attenuation without casting a ray."""
        import taichi as ti

        from src.whitted.core.ray import vec3
        from src.whitted.core.tracer import DONE, ESCAPED, TRACING, TraceState, step_chain
        from src.whitted.scene.environment import ConstantEnvironment

        scene = make_scene([], bounce_limit=3)
        env = ConstantEnvironment((1.0, 1.0, 1.0))

        status = ti.field(dtype=ti.i32, shape=(2,))
        depth = ti.field(dtype=ti.i32, shape=(2,))
        color = ti.Vector.field(3, dtype=ti.f32, shape=(2,))

        @ti.kernel
        def test_kernel(s: ti.template(), e: ti.template()):
            exhausted = TraceState(
                status=TRACING,
                depth=1,
                position=vec3(0.0, 0.0, -4.0),
                normal=vec3(0.0, 0.0, 1.0),
                view=vec3(0.0, 0.0, 1.0),
                attenuation=vec3(0.0),
                color=vec3(0.25),
            )
            live = TraceState(
                status=TRACING,
                depth=1,
                position=vec3(0.0, 0.0, -4.0),
                normal=vec3(0.0, 0.0, 1.0),
                view=vec3(0.0, 0.0, 1.0),
                attenuation=vec3(0.5),
                color=vec3(0.25),
            )

            stopped = step_chain(s, e, exhausted)
            escaped = step_chain(s, e, live)
            status[0] = stopped.status
            depth[0] = stopped.depth
            color[0] = stopped.color
            status[1] = escaped.status
            depth[1] = escaped.depth
            color[1] = escaped.color

        test_kernel(scene, env)
        assert status[0] == DONE
        assert depth[0] == 1
        assert abs(color[0][0] - 0.25) < 1e-6
        # Same state with attenuation left escapes into the environment
        assert status[1] == ESCAPED
        assert abs(color[1][0] - 0.75) < 1e-6

    def test_specular_attenuation_is_per_channel(self, make_tracer):
        """Test a colored mirror tints the environment per channel."""
        from src.whitted.scene.config import MaterialSpec, SphereSpec

        tinted = MaterialSpec(specular=(1.0, 0.5, 0.0), shininess=1.0)
        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, tinted)],
            env_color=(1.0, 1.0, 1.0),
            bounce_limit=3,
        )
        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((1.0, 0.5, 0.0, 1.0), abs=1e-6)

    def test_bounce_limit_update_applies_to_next_trace(self, make_tracer, facing_mirrors):
        """Test set_bounce_limit between traces changes the result."""
        spheres, lights = facing_mirrors
        tracer = make_tracer(spheres, lights, bounce_limit=0)

        before = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))
        tracer.scene.set_bounce_limit(2)
        after = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert before[0] == pytest.approx(_chain_value(0), rel=1e-5)
        assert after[0] == pytest.approx(_chain_value(2), rel=1e-5)

    def test_environment_update_applies_to_next_trace(self, make_tracer):
        """Test changing the environment color is seen by the next trace."""
        tracer = make_tracer([], env_color=(0.0, 0.0, 0.0))
        tracer.environment.set_color((0.5, 0.5, 0.5))

        color = tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, -1.0))

        assert color == pytest.approx((0.5, 0.5, 0.5, 0.0), abs=1e-6)


class TestBatchTracing:
    """Tests for trace_rays and trace_image."""

    def test_trace_rays_matches_single_rays(self, make_tracer, facing_mirrors):
        """Test the batch kernel agrees with per-ray tracing."""
        spheres, lights = facing_mirrors
        tracer = make_tracer(spheres, lights, env_color=(0.1, 0.2, 0.3), bounce_limit=2)

        origins = np.zeros((4, 3), dtype=np.float32)
        directions = np.array(
            [
                [0.0, 0.0, -1.0],
                [0.0, 0.0, 1.0],
                [0.0, 1.0, 0.0],
                [0.05, 0.05, -1.0],
            ],
            dtype=np.float32,
        )
        colors = tracer.trace_rays(origins, directions)

        assert colors.shape == (4, 4)
        assert colors.dtype == np.float32
        for i in range(4):
            single = tracer.trace_ray(tuple(origins[i]), tuple(directions[i]))
            assert tuple(colors[i]) == pytest.approx(single, abs=1e-5)
        assert colors[2, 3] == 0.0

    def test_trace_rays_empty(self, make_tracer):
        """Test an empty batch returns an empty (0, 4) array."""
        tracer = make_tracer([])
        colors = tracer.trace_rays(np.zeros((0, 3)), np.zeros((0, 3)))

        assert colors.shape == (0, 4)

    def test_trace_image_shape_and_shared_origin(self, make_tracer, white_diffuse):
        """Test a grid of directions with one shared origin."""
        from src.whitted.scene.config import SphereSpec

        tracer = make_tracer(
            [SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)],
            env_color=(0.3, 0.3, 0.3),
        )
        directions = np.array(
            [
                [[0.0, 0.0, -1.0], [0.0, 1.0, 0.0], [1.0, 0.0, 0.0]],
                [[0.0, 0.0, 1.0], [0.01, 0.0, -1.0], [-1.0, 0.0, 0.0]],
            ],
            dtype=np.float32,
        )
        image = tracer.trace_image((0.0, 0.0, 0.0), directions)

        assert image.shape == (2, 3, 4)
        np.testing.assert_allclose(image[..., 3], [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        np.testing.assert_allclose(image[0, 1, :3], [0.3, 0.3, 0.3], atol=1e-6)

    def test_trace_image_per_pixel_origins(self, make_tracer, white_diffuse):
        """Test a full (H, W, 3) origin grid is used pixel by pixel."""
        from src.whitted.scene.config import SphereSpec

        tracer = make_tracer([SphereSpec((0.0, 0.0, -5.0), 1.0, white_diffuse)])
        origins = np.array([[[0.0, 0.0, 0.0], [5.0, 0.0, 0.0]]], dtype=np.float32)
        directions = np.array([[[0.0, 0.0, -1.0], [0.0, 0.0, -1.0]]], dtype=np.float32)

        image = tracer.trace_image(origins, directions)

        np.testing.assert_allclose(image[0, :, 3], [1.0, 0.0])


class TestTracerValidation:
    """Tests for Python-side argument checks."""

    def test_trace_ray_rejects_zero_direction(self, make_tracer):
        """Test a zero direction raises ValueError."""
        tracer = make_tracer([])
        with pytest.raises(ValueError):
            tracer.trace_ray((0.0, 0.0, 0.0), (0.0, 0.0, 0.0))

    def test_trace_rays_rejects_bad_shape(self, make_tracer):
        """Test arrays that are not (N, 3) raise ValueError."""
        tracer = make_tracer([])
        with pytest.raises(ValueError, match="shape"):
            tracer.trace_rays(np.zeros((2, 2)), np.ones((2, 2)))

    def test_trace_rays_rejects_length_mismatch(self, make_tracer):
        """Test origin and direction counts must agree."""
        tracer = make_tracer([])
        with pytest.raises(ValueError):
            tracer.trace_rays(np.zeros((2, 3)), np.ones((3, 3)))

    def test_trace_rays_rejects_zero_direction(self, make_tracer):
        """Test any zero direction in a batch raises ValueError."""
        tracer = make_tracer([])
        directions = np.array([[0.0, 0.0, -1.0], [0.0, 0.0, 0.0]])
        with pytest.raises(ValueError, match="zero"):
            tracer.trace_rays(np.zeros((2, 3)), directions)

    def test_trace_image_rejects_flat_directions(self, make_tracer):
        """Test trace_image needs an (H, W, 3) direction grid."""
        tracer = make_tracer([])
        with pytest.raises(ValueError):
            tracer.trace_image((0.0, 0.0, 0.0), np.ones((4, 3)))

    def test_shade_point_rejects_invalid_material(self, make_tracer):
        """Test shade_point validates the material."""
        from src.whitted.scene.config import MaterialSpec

        tracer = make_tracer([])
        with pytest.raises(ValueError):
            tracer.shade_point(
                MaterialSpec(shininess=-1.0),
                (0.0, 0.0, 0.0),
                (0.0, 1.0, 0.0),
                (0.0, 1.0, 0.0),
            )
