"""Import tests for the package modules.

Every module that declares Taichi structs must load on its own and through
its package, so a broken struct declaration shows up here first.
"""

import importlib

import pytest


class TestModuleImports:
    """Test that every public module imports cleanly."""

    @pytest.mark.parametrize(
        "module_name",
        [
            "src.whitted",
            "src.whitted.core",
            "src.whitted.core.ray",
            "src.whitted.core.shading",
            "src.whitted.core.tracer",
            "src.whitted.geometry",
            "src.whitted.geometry.sphere",
            "src.whitted.scene",
            "src.whitted.scene.config",
            "src.whitted.scene.environment",
            "src.whitted.scene.intersection",
            "src.whitted.scene.scene",
            "src.whitted.preview",
            "src.whitted.preview.export",
        ],
    )
    def test_module_imports(self, module_name):
        """Test the module can be imported."""
        module = importlib.import_module(module_name)
        assert module is not None

    def test_scene_package_exports(self):
        """Test the scene package exposes the scene context and intersector."""
        import src.whitted.scene as scene_pkg

        for name in ("Scene", "Light", "HitResult", "intersect_ray", "SceneConfig"):
            assert hasattr(scene_pkg, name)

    def test_tracer_exports(self):
        """Test the tracer module exposes its struct, entry points and class."""
        from src.whitted.core import tracer

        for name in ("TraceState", "trace", "step_chain", "begin_chain", "WhittedTracer"):
            assert hasattr(tracer, name)
