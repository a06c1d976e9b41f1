"""ViewState and Viewport - the inputs every projection is derived from.

ViewState is the single piece of mutable shared state of the map, but the
object itself is frozen: the ViewportController replaces it on every
gesture. Renderer and hit-tester only ever read it.

Viewport carries the pixel size of the map and the width the world frame
was derived from. base_scale and base_world_width depend only on
base_width, never on zoom, so the horizontal wrap period is the same at
every zoom level.
"""

from dataclasses import dataclass
from math import pi


@dataclass(frozen=True)
class ViewState:
    """Zoom factor and pixel pan offset.

    Attributes:
        k: Zoom factor (1 = whole world spans base_width pixels)
        pan_x: Horizontal pan in screen pixels (unbounded, wrapped by projection)
        pan_y: Vertical pan in screen pixels (added to the projection center)
    """

    k: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0

    def __post_init__(self) -> None:
        if not self.k > 0:
            raise ValueError(f"ViewState.k must be positive, got {self.k}")


@dataclass(frozen=True)
class Viewport:
    """Pixel size of the map widget plus its world frame.

    Attributes:
        width: Current widget width in pixels
        height: Current widget height in pixels
        base_width: Width the world frame is derived from (mount or last resize)
    """

    width: float
    height: float
    base_width: float

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0 or self.base_width <= 0:
            raise ValueError(f"Viewport dimensions must be positive: {self}")

    @classmethod
    def of_size(cls, width: float, height: float) -> "Viewport":
        """Viewport whose world frame is derived from its own width."""
        return cls(width=width, height=height, base_width=width)

    @property
    def base_scale(self) -> float:
        """Mercator scale at k=1: one world width equals base_width pixels."""
        return self.base_width / (2 * pi)

    @property
    def base_world_width(self) -> float:
        """Horizontal wrap period in world units (pixels at k=1)."""
        return self.base_width

    @property
    def center(self) -> tuple[float, float]:
        return (self.width / 2, self.height / 2)
