"""Unit tests for render configuration, logging setup and the demo script.

Tests cover:
- RenderConfig defaults, validation and dict round trip
- Viewport construction from a config
- setup_logging handler installation
- Command-line parsing of the demo script
"""

import logging
import sys
from pathlib import Path

import pytest


class TestRenderConfig:
    """Tests for RenderConfig."""

    def test_defaults_are_valid(self):
        from flatlight.core.config import RenderConfig

        config = RenderConfig()
        config.validate()
        assert config.width == 512
        assert config.arch == "cpu"
        assert config.cpu_threads is None

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"width": 0},
            {"height": -4},
            {"samples_per_pixel": 0},
            {"max_depth": 0},
            {"passes": 0},
            {"width": 12.5},
            {"cpu_threads": 0},
            {"arch": "opengl"},
            {"viewport": (1.0, 0.0, 0.0, 1.0)},
            {"viewport": (0.0, 1.0, 1.0, 1.0)},
        ],
    )
    def test_invalid_values(self, kwargs):
        from flatlight.core.config import RenderConfig

        with pytest.raises(ValueError):
            RenderConfig(**kwargs).validate()

    def test_dict_round_trip(self):
        from flatlight.core.config import RenderConfig

        config = RenderConfig(width=64, height=32, viewport=(-1.0, 1.0, -0.5, 0.5), cpu_threads=2)
        data = config.to_dict()
        data["viewport"] = list(data["viewport"])
        assert RenderConfig.from_dict(data) == config

    def test_make_viewport(self):
        from flatlight.core.config import RenderConfig

        viewport = RenderConfig(viewport=(-1.0, 1.0, 0.0, 4.0)).make_viewport()
        assert (viewport.x_min, viewport.x_max, viewport.y_min, viewport.y_max) == (
            -1.0,
            1.0,
            0.0,
            4.0,
        )


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_installs_stream_handler(self):
        from flatlight.logconfig import setup_logging

        logger = setup_logging("flatlight.test_stream", level=logging.DEBUG)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_repeated_calls_replace_handlers(self, tmp_path):
        from flatlight.logconfig import setup_logging

        log_file = tmp_path / "render.log"
        setup_logging("flatlight.test_file")
        logger = setup_logging("flatlight.test_file", log_file=str(log_file))
        assert len(logger.handlers) == 2

        logger.info("hello from the renderer")
        for handler in logger.handlers:
            handler.flush()
        assert "hello from the renderer" in log_file.read_text()

        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()


class TestDemoScript:
    """Tests for the demo script's argument handling."""

    @pytest.fixture
    def script(self, monkeypatch):
        examples_dir = Path(__file__).resolve().parent.parent / "examples"
        monkeypatch.syspath_prepend(str(examples_dir))
        import render_demo_scene

        yield render_demo_scene
        sys.modules.pop("render_demo_scene", None)

    def test_defaults(self, script):
        args = script.parse_args([])
        assert args.width == 512
        assert args.tone_map == "reinhard"
        assert args.preview is False

    def test_overrides(self, script):
        args = script.parse_args(
            ["--width", "64", "--passes", "2", "--arch", "cpu", "--output", "out.png"]
        )
        assert args.width == 64
        assert args.passes == 2
        assert args.output == "out.png"

    def test_render_demo_scene(self, script, tmp_path):
        from PIL import Image

        from flatlight.core.config import RenderConfig

        config = RenderConfig(width=16, height=16, samples_per_pixel=4, max_depth=4, passes=1)
        output = script.render_demo_scene(config, str(tmp_path / "demo.png"), "reinhard", False)

        with Image.open(output) as img:
            assert img.size == (16, 16)
