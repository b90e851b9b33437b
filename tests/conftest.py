"""Pytest configuration for raytracer tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session, and small scene
builders used across the intersector, shader and tracer tests.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Using session scope prevents multiple ti.init() calls which can cause
    segmentation faults due to Taichi runtime conflicts.
    """
    ti.init(arch=ti.cpu)
    yield


@pytest.fixture
def white_diffuse():
    """Purely diffuse white material (no specular, no reflections)."""
    from src.whitted.scene.config import MaterialSpec

    return MaterialSpec(diffuse=(1.0, 1.0, 1.0), specular=(0.0, 0.0, 0.0), shininess=1.0)


@pytest.fixture
def make_scene():
    """Factory building a Scene from sphere/light descriptions.

    Usage:
        scene = make_scene(spheres, lights, bounce_limit=2)
    """
    from src.whitted.scene.scene import Scene

    def _make(spheres, lights=(), **kwargs):
        return Scene(list(spheres), list(lights), **kwargs)

    return _make


@pytest.fixture
def make_tracer(make_scene):
    """Factory building a WhittedTracer with a constant environment.

    Usage:
        tracer = make_tracer(spheres, lights, env_color=(0.2, 0.3, 0.4))
    """
    from src.whitted.core.tracer import WhittedTracer
    from src.whitted.scene.environment import ConstantEnvironment

    def _make(spheres, lights=(), env_color=(0.0, 0.0, 0.0), **kwargs):
        scene = make_scene(spheres, lights, **kwargs)
        return WhittedTracer(scene, ConstantEnvironment(env_color))

    return _make
