"""Pytest configuration for flatlight tests.

This module provides shared fixtures for all test modules, including
Taichi initialization which must happen once per session.
"""

import pytest
import taichi as ti


@pytest.fixture(scope="session", autouse=True)
def init_taichi_session():
    """Initialize Taichi once for the entire test session.

    Modules that allocate fields are imported inside tests, after this
    fixture has run.
    """
    ti.init(arch=ti.cpu, random_seed=42)
    yield


@pytest.fixture(autouse=True)
def clear_all_scene_data():
    """Clear entities, shapes, materials and the render target around each test."""
    from flatlight.core.integrator import clear_render_target
    from flatlight.materials.material import clear_materials
    from flatlight.scene.intersection import clear_entities

    def _clear_all():
        clear_entities()
        clear_materials()
        clear_render_target()

    _clear_all()
    yield
    _clear_all()
