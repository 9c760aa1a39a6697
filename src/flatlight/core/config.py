"""Render configuration and Taichi runtime initialization.

Example:
    >>> from flatlight.core.config import RenderConfig, init_taichi
    >>> config = RenderConfig(width=256, height=256, samples_per_pixel=32)
    >>> init_taichi(config)
"""

import logging
from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING, Any

import taichi as ti

if TYPE_CHECKING:
    from flatlight.camera.viewport import Viewport

logger = logging.getLogger(__name__)

# Accepted values for RenderConfig.arch
ARCH_NAMES = ("cpu", "gpu", "cuda", "vulkan", "metal")


@dataclass
class RenderConfig:
    """Knobs consumed by the renderer.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
        samples_per_pixel: Angular samples per pixel per pass.
        max_depth: Maximum number of scattering events per path.
        passes: Number of passes accumulated into the image.
        viewport: Region of the scene plane covered by the image, as
            (x_min, x_max, y_min, y_max).
        arch: Taichi backend name, one of ARCH_NAMES.
        cpu_threads: Worker threads for the CPU backend; None lets Taichi
            use every core.
        random_seed: Seed of Taichi's per-thread random states.
    """

    width: int = 512
    height: int = 512
    samples_per_pixel: int = 64
    max_depth: int = 64
    passes: int = 1
    viewport: tuple[float, float, float, float] = (0.0, 1.0, 0.0, 1.0)
    arch: str = "cpu"
    cpu_threads: int | None = None
    random_seed: int = 0

    def validate(self) -> None:
        """Check every field.

        Raises:
            ValueError: If a count is not positive, the backend is unknown
                or the viewport is invalid.
        """
        for name in ("width", "height", "samples_per_pixel", "max_depth", "passes"):
            value = getattr(self, name)
            if not isinstance(value, int) or value <= 0:
                raise ValueError(f"{name} must be a positive integer, got {value!r}")
        if self.cpu_threads is not None and self.cpu_threads <= 0:
            raise ValueError(f"cpu_threads must be positive, got {self.cpu_threads}")
        if self.arch not in ARCH_NAMES:
            raise ValueError(f"Unknown arch {self.arch!r}, expected one of {ARCH_NAMES}")
        x_min, x_max, y_min, y_max = self.viewport
        if x_max <= x_min or y_max <= y_min:
            raise ValueError(
                f"viewport must have x_min < x_max and y_min < y_max, got {self.viewport}"
            )

    def make_viewport(self) -> "Viewport":
        """Build the Viewport described by this config."""
        from flatlight.camera.viewport import Viewport

        return Viewport(*self.viewport)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RenderConfig":
        values = dict(data)
        if "viewport" in values:
            values["viewport"] = tuple(values["viewport"])
        return cls(**values)


def init_taichi(config: RenderConfig) -> None:
    """Validate ``config`` and initialize the Taichi runtime from it.

    Must run before importing any flatlight module that allocates Taichi
    fields (geometry, materials, scene, camera, integrator).
    """
    config.validate()
    kwargs: dict[str, Any] = {
        "arch": getattr(ti, config.arch),
        "random_seed": config.random_seed,
    }
    if config.cpu_threads is not None:
        kwargs["cpu_max_num_threads"] = config.cpu_threads
    ti.init(**kwargs)
    logger.info(
        "Taichi initialized: arch=%s seed=%d threads=%s",
        config.arch,
        config.random_seed,
        config.cpu_threads or "all",
    )
