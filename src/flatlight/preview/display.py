"""Tone mapping and Matplotlib preview for rendered radiance images.

Rendered images hold linear, unbounded RGB radiance. Before display or
export they go through the same pipeline:

1. Tone mapping ("none", "reinhard" or "exposure")
2. Gamma encoding
3. Clamping to [0, 1]

Example:
    >>> from flatlight.preview.display import show_preview
    >>> renderer = ProgressiveRenderer(256, 256)
    >>> renderer.render(4)
    >>> show_preview(renderer, tone_map="reinhard")
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from flatlight.core.progressive import ProgressiveRenderer

logger = logging.getLogger(__name__)

ToneMapMethod = Literal["none", "reinhard", "exposure"]


def tone_map_reinhard(image: npt.NDArray[np.float32]) -> npt.NDArray[np.float32]:
    """Reinhard operator ``c / (1 + c)`` per channel."""
    image = np.maximum(image, 0.0)
    return (image / (1.0 + image)).astype(np.float32)


def tone_map_exposure(
    image: npt.NDArray[np.float32],
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Exposure operator ``1 - exp(-c * exposure)`` per channel.

    Args:
        image: Linear radiance of shape (H, W, 3).
        exposure: Brightness scale; higher values brighten the image.
    """
    image = np.maximum(image, 0.0)
    return (1.0 - np.exp(-image * exposure)).astype(np.float32)


def apply_gamma(
    image: npt.NDArray[np.float32],
    gamma: float = 2.2,
) -> npt.NDArray[np.float32]:
    """Clamp to [0, 1] and gamma-encode with ``out = in ** (1 / gamma)``.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")
    image = np.clip(image, 0.0, 1.0)
    if gamma == 1.0:
        return image.astype(np.float32)
    return np.power(image, 1.0 / gamma).astype(np.float32)


def process_image_for_display(
    image: npt.NDArray[np.float32],
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Run the full display pipeline on a linear radiance image.

    Non-finite values are treated as black.

    Returns:
        Image of the same shape with values in [0, 1].

    Raises:
        ValueError: If the tone mapping method is unknown.
    """
    operators = {
        "none": lambda img: img,
        "reinhard": tone_map_reinhard,
        "exposure": lambda img: tone_map_exposure(img, exposure),
    }
    if tone_map not in operators:
        raise ValueError(f"Unknown tone mapping method: {tone_map}")

    radiance = np.nan_to_num(np.asarray(image, dtype=np.float32), nan=0.0, posinf=0.0, neginf=0.0)
    return apply_gamma(operators[tone_map](radiance), gamma)


def show_preview(
    renderer: ProgressiveRenderer,
    *,
    tone_map: ToneMapMethod = "none",
    gamma: float = 2.2,
    exposure: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the current render in a Matplotlib window.

    The default title shows the accumulated passes and samples per pixel.

    Args:
        renderer: The ProgressiveRenderer to display.
        tone_map: Tone mapping method.
        gamma: Gamma encoding value.
        exposure: Exposure for the "exposure" tone mapping.
        title: Custom title.
        figsize: Figure size in inches (width, height).
        block: Whether to block until the window is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(
        renderer.get_image_numpy(gamma=1.0),
        tone_map=tone_map,
        gamma=gamma,
        exposure=exposure,
    )

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"{renderer.pass_count} passes, {renderer.sample_count} samples/pixel"
        if tone_map != "none":
            title += f" ({tone_map})"
    ax.set_title(title)

    plt.tight_layout()
    logger.debug("Showing preview: %s", title)
    plt.show(block=block)
